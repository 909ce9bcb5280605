"""
Domain errors raised by the commission services.

Every CommissionError is recoverable: the command boundary
(src.services.commands.run_command) rolls the session back and turns it
into an ActionResult. Anything else is a programming or infrastructure
fault and propagates.
"""

from typing import Optional

from fastapi import status


class CommissionError(Exception):
    """Base class for errors a command can report to its caller."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Forbidden(CommissionError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action"


class NotFound(CommissionError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class DealLocked(CommissionError):
    code = "deal_locked"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Deal is already finalized and cannot be changed"


class InvalidAmount(CommissionError):
    code = "invalid_amount"
    default_message = "Amount must be a positive whole number of yen"


class InvalidDate(CommissionError):
    code = "invalid_date"
    default_message = "Date must be in YYYY-MM-DD format"


class InvalidStatus(CommissionError):
    code = "invalid_status"
    default_message = "Status is not valid for this product"


class InvalidRateConfiguration(CommissionError):
    code = "invalid_rate_configuration"
    default_message = "Connector rate must not exceed the overall rate"


class BelowMinimum(CommissionError):
    code = "below_minimum"
    default_message = "Available amount is below the minimum payout"


class AlreadyPaid(CommissionError):
    code = "already_paid"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Payout request is already paid"


class UsernameTaken(CommissionError):
    code = "username_taken"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Username already exists"


class RateConfigMissing(RuntimeError):
    """The settings singleton does not exist. Startup did not run."""


ERROR_STATUS_CODES = {
    error.code: error.status_code
    for error in (
        Forbidden,
        NotFound,
        DealLocked,
        InvalidAmount,
        InvalidDate,
        InvalidStatus,
        InvalidRateConfiguration,
        BelowMinimum,
        AlreadyPaid,
        UsernameTaken,
    )
}
