"""Partner panel API router aggregation."""

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from src.api.panel.deals import router as deals_router
from src.api.panel.rewards import router as rewards_router

panel_router = APIRouter(prefix="/panel", tags=["Panel"])


@panel_router.get("", include_in_schema=False)
async def panel_root():
    """Redirect /panel to the deal list."""
    return RedirectResponse(url="/panel/deals", status_code=302)


panel_router.include_router(deals_router)
panel_router.include_router(rewards_router)

__all__ = ["panel_router"]
