"""Settings router — admin view and edit of runtime business settings."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import CurrentUser, get_current_user, require_role
from workforce.common.constants import SettingKey, UserRole
from workforce.common.rate_limit import limiter
from workforce.database import get_db
from workforce.system_settings.schemas import (
    RuntimeConfigResponse,
    SettingResponse,
    SettingUpdate,
)
from workforce.system_settings.service import SystemSettingsService

router = APIRouter(prefix="", tags=["settings"])


@router.get("", response_model=list[SettingResponse])
async def list_settings(
    user: CurrentUser = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Stored settings rows."""
    return await SystemSettingsService.list_settings(db)


@router.get("/effective", response_model=RuntimeConfigResponse)
async def effective_settings(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Values actually in force, defaults included. Any signed-in user."""
    config = await SystemSettingsService.load_runtime_config(db)
    return RuntimeConfigResponse(
        fuel_rate_per_km=config.fuel_rate_per_km,
        late_arrival_time=config.late_arrival_time.strftime("%H:%M"),
    )


@router.put("/{key}", response_model=SettingResponse)
@limiter.limit("30/minute")
async def update_setting(
    key: SettingKey,
    body: SettingUpdate,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ip = request.client.host if request.client else None
    return await SystemSettingsService.update_setting(db, user, key, body, ip_address=ip)
