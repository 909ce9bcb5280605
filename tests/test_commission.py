"""
Tests for the commission split.

Covers:
- compute_split worked examples and rounding
- Sum invariant across a grid of amounts and rates
- Partner shares never shrink when the base grows
- Rate validation
- Initial reward status per product type
"""

from decimal import Decimal

import pytest

from src.models import ProductType, RewardStatus
from src.services.commission import (
    compute_split,
    initial_reward_status,
    to_rate,
    validate_rates,
)
from src.services.exceptions import InvalidAmount, InvalidRateConfiguration

RATE_PAIRS = [
    ("0.15", "0.05"),
    ("0.15", "0"),
    ("0.15", "0.15"),
    ("0.10", "0.05"),
    ("0.3333", "0.1111"),
    ("1", "0.5"),
    ("0", "0"),
]


# ── compute_split ─────────────────────────────────────────


class TestComputeSplit:
    def test_round_amount(self):
        split = compute_split(100000, Decimal("0.15"), Decimal("0.05"))
        assert split.connector_amount == 5000
        assert split.agency_amount == 10000
        assert split.platform_amount == 85000

    def test_floors_partner_shares(self):
        split = compute_split(333, Decimal("0.15"), Decimal("0.05"))
        assert split.connector_amount == 16   # 16.65
        assert split.agency_amount == 33      # 33.3
        assert split.platform_amount == 284

    def test_zero_base(self):
        split = compute_split(0, Decimal("0.15"), Decimal("0.05"))
        assert (split.connector_amount, split.agency_amount, split.platform_amount) == (0, 0, 0)

    def test_connector_rate_equal_to_overall_leaves_agency_nothing(self):
        split = compute_split(100000, Decimal("0.15"), Decimal("0.15"))
        assert split.agency_amount == 0
        assert split.connector_amount == 15000
        assert split.platform_amount == 85000

    def test_full_overall_rate_leaves_platform_only_rounding(self):
        split = compute_split(101, Decimal("1"), Decimal("0.5"))
        assert split.connector_amount == 50
        assert split.agency_amount == 50
        assert split.platform_amount == 1

    def test_float_rates_do_not_pick_up_binary_noise(self):
        # 0.1 * 1000 as a float product is 100.00000000000001 or 99.99...
        split = compute_split(1000, 0.15, 0.05)
        assert split.connector_amount == 50
        assert split.agency_amount == 100

    def test_rates_are_recorded(self):
        split = compute_split(1000, "0.15", "0.05")
        assert split.overall_rate == Decimal("0.15")
        assert split.connector_rate == Decimal("0.05")
        assert split.agency_rate == Decimal("0.10")

    def test_negative_base_rejected(self):
        with pytest.raises(InvalidAmount):
            compute_split(-1, Decimal("0.15"), Decimal("0.05"))

    def test_non_integer_base_rejected(self):
        with pytest.raises(InvalidAmount):
            compute_split(100.5, Decimal("0.15"), Decimal("0.05"))

    def test_bool_base_rejected(self):
        with pytest.raises(InvalidAmount):
            compute_split(True, Decimal("0.15"), Decimal("0.05"))

    def test_invalid_rates_rejected(self):
        with pytest.raises(InvalidRateConfiguration):
            compute_split(1000, Decimal("0.05"), Decimal("0.15"))


class TestSplitInvariants:
    @pytest.mark.parametrize("overall,connector", RATE_PAIRS)
    def test_shares_sum_to_base(self, overall, connector):
        for base in list(range(0, 1001)) + [9999, 123457, 10**9 + 7]:
            split = compute_split(base, overall, connector)
            assert split.total == base
            assert split.connector_amount >= 0
            assert split.agency_amount >= 0
            assert split.platform_amount >= 0

    @pytest.mark.parametrize("overall,connector", RATE_PAIRS)
    def test_partner_shares_never_decrease(self, overall, connector):
        previous = compute_split(0, overall, connector)
        for base in range(1, 2001):
            split = compute_split(base, overall, connector)
            assert split.connector_amount >= previous.connector_amount
            assert split.agency_amount >= previous.agency_amount
            previous = split

    def test_exact_multiples_have_no_rounding(self):
        for base in range(0, 100001, 100):
            split = compute_split(base, Decimal("0.15"), Decimal("0.05"))
            assert split.connector_amount * 20 == base
            assert split.agency_amount * 10 == base


# ── validate_rates ────────────────────────────────────────


class TestValidateRates:
    def test_valid_pair_returns_decimals(self):
        overall, connector = validate_rates(0.15, 0.05)
        assert overall == Decimal("0.15")
        assert connector == Decimal("0.05")

    def test_bounds_inclusive(self):
        assert validate_rates(0, 0) == (Decimal("0"), Decimal("0"))
        assert validate_rates(1, 1) == (Decimal("1"), Decimal("1"))

    @pytest.mark.parametrize(
        "overall,connector",
        [
            ("0.05", "0.15"),   # connector above overall
            ("-0.01", "0"),
            ("1.01", "0.5"),
            ("0.15", "-0.01"),
            ("NaN", "0.05"),
            ("Infinity", "0.05"),
            ("abc", "0.05"),
            (None, "0.05"),
        ],
    )
    def test_invalid_pairs(self, overall, connector):
        with pytest.raises(InvalidRateConfiguration):
            validate_rates(overall, connector)

    def test_to_rate_float_goes_through_str(self):
        assert to_rate(0.1) == Decimal("0.1")


# ── initial_reward_status ─────────────────────────────────


class TestInitialRewardStatus:
    def test_hotel_membership_is_confirmed_immediately(self):
        assert initial_reward_status(ProductType.HOTEL_MEMBERSHIP) == RewardStatus.CONFIRMED

    @pytest.mark.parametrize("product_type", [ProductType.SIGNAGE, ProductType.AD_SLOT])
    def test_other_types_wait_for_confirmation(self, product_type):
        assert initial_reward_status(product_type) == RewardStatus.UNCONFIRMED
