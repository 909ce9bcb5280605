"""
Commission allocation service.

Main FastAPI application with:
- Role-based authentication (operator/agency/connector)
- Admin API for rates, rewards, payouts and partners
- Partner panel API for deals, rewards and payout requests
- Public referral intake
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from sqlalchemy import select

from src.api import admin_router, api_router, panel_router
from src.config import settings
from src.db import get_db_context
from src.models import User, UserRole
from src.services.rates import ensure_system_settings
from src.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def bootstrap(db) -> None:
    """Create the operator account and the commission settings row if missing."""
    result = await db.execute(
        select(User).where(User.role == UserRole.OPERATOR).limit(1)
    )
    operator = result.scalar_one_or_none()

    if not operator:
        logger.info("Creating operator account...")
        db.add(User(
            username=settings.operator_username,
            password_hash=hash_password(settings.operator_password),
            role=UserRole.OPERATOR,
            display_name="Operator",
            is_active=True,
        ))
        logger.info(f"Operator account created: {settings.operator_username}")

    await ensure_system_settings(db)
    await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates operator account if not exists
    - Creates the commission settings row from config defaults
    """
    logger.info("Starting commission service...")

    async with get_db_context() as db:
        await bootstrap(db)

    logger.info("Commission service started")

    yield

    logger.info("Shutting down commission service...")


app = FastAPI(
    title="Commission",
    description="Commission allocation and payout service",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)  # /api/* endpoints
app.include_router(admin_router)  # /admin/* operator API
app.include_router(panel_router)  # /panel/* partner API


@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/docs" if not settings.is_production else "/api/health", status_code=302)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
