"""System settings service — key/value reads, admin writes, runtime config."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import CurrentUser, ensure_admin
from workforce.common.audit import create_audit_entry
from workforce.common.constants import AuditAction, SettingKey
from workforce.common.exceptions import ConfigurationMissing, ValidationException
from workforce.system_settings.models import SystemSetting
from workforce.system_settings.runtime import PARSERS, RuntimeConfig
from workforce.system_settings.schemas import SETTING_DESCRIPTIONS, SettingUpdate

logger = logging.getLogger(__name__)


class SystemSettingsService:

    @staticmethod
    async def list_settings(db: AsyncSession) -> Sequence[SystemSetting]:
        result = await db.execute(select(SystemSetting).order_by(SystemSetting.key))
        return result.scalars().all()

    @staticmethod
    async def get_value(db: AsyncSession, key: SettingKey) -> str:
        """Raw stored value; ``ConfigurationMissing`` if the key is absent."""
        setting = await db.get(SystemSetting, key.value)
        if setting is None or not setting.value.strip():
            raise ConfigurationMissing(key.value)
        return setting.value

    @staticmethod
    async def load_runtime_config(db: AsyncSession) -> RuntimeConfig:
        """Read every business setting once, falling back to defaults.

        Missing or unparseable values are logged and replaced; this never
        fails because of configuration.
        """
        defaults = RuntimeConfig.defaults()
        values = {
            SettingKey.fuel_rate_per_km: defaults.fuel_rate_per_km,
            SettingKey.late_arrival_time: defaults.late_arrival_time,
        }
        for key, parser in PARSERS.items():
            try:
                values[key] = parser(await SystemSettingsService.get_value(db, key))
            except ConfigurationMissing as exc:
                logger.warning("%s; using default %s", exc.detail, values[key])

        return RuntimeConfig(
            fuel_rate_per_km=values[SettingKey.fuel_rate_per_km],
            late_arrival_time=values[SettingKey.late_arrival_time],
        )

    @staticmethod
    async def update_setting(
        db: AsyncSession,
        requester: CurrentUser,
        key: SettingKey,
        data: SettingUpdate,
        *,
        ip_address: Optional[str] = None,
    ) -> SystemSetting:
        """Validate and store a setting. Admins only."""
        ensure_admin(requester)

        value = data.value.strip()
        try:
            PARSERS[key](value)
        except ConfigurationMissing as exc:
            raise ValidationException({"value": [exc.detail]})

        setting = await db.get(SystemSetting, key.value)
        old_value = setting.value if setting is not None else None
        if setting is None:
            setting = SystemSetting(
                key=key.value,
                value=value,
                description=data.description or SETTING_DESCRIPTIONS.get(key),
                updated_by=requester.id,
            )
            db.add(setting)
        else:
            setting.value = value
            if data.description is not None:
                setting.description = data.description
            setting.updated_by = requester.id
        await db.flush()

        await create_audit_entry(
            db,
            action=AuditAction.update,
            entity_type="system_setting",
            entity_id=key.value,
            actor_id=requester.id,
            old_values={"value": old_value} if old_value is not None else None,
            new_values={"value": value},
            ip_address=ip_address,
        )
        return setting
