"""
freemodule/routes/health.py
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule import __version__
from freemodule.config.settings import Settings
from freemodule.database import get_db
from freemodule.dependencies import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    await db.execute(text("SELECT 1"))
    return {
        "status": "healthy",
        "environment": settings.environment,
        "database": "connected",
        "version": __version__,
    }
