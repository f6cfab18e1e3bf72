"""Shared FastAPI dependencies."""

from datetime import date

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.common.dates import today_local
from workforce.database import get_db
from workforce.system_settings.runtime import RuntimeConfig
from workforce.system_settings.service import SystemSettingsService


async def get_runtime_config(db: AsyncSession = Depends(get_db)) -> RuntimeConfig:
    """Business settings snapshot for the current request."""
    return await SystemSettingsService.load_runtime_config(db)


def get_today() -> date:
    """Today in the organisation's time zone. Overridable in tests."""
    return today_local()
