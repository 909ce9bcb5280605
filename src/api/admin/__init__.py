"""Admin (operator) API router aggregation."""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from src.api.admin.audit import router as audit_router
from src.api.admin.dashboard import router as dashboard_router
from src.api.admin.partners import router as partners_router
from src.api.admin.payouts import router as payouts_router
from src.api.admin.settings import router as settings_router
from src.api.admin.transactions import router as transactions_router

admin_router = APIRouter(prefix="/admin", tags=["Admin"])


@admin_router.get("", include_in_schema=False)
async def admin_root():
    """Redirect /admin to the dashboard summary."""
    return RedirectResponse(url="/admin/dashboard/summary", status_code=302)


admin_router.include_router(dashboard_router, prefix="/dashboard")
admin_router.include_router(transactions_router)
admin_router.include_router(payouts_router)
admin_router.include_router(partners_router)
admin_router.include_router(audit_router)
admin_router.include_router(settings_router)

__all__ = ["admin_router"]
