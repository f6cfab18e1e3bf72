"""System settings Pydantic v2 schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from workforce.common.constants import SettingKey


class SettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: str
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


class SettingUpdate(BaseModel):
    value: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class RuntimeConfigResponse(BaseModel):
    """Effective values after defaults are applied."""

    model_config = ConfigDict(from_attributes=True)

    fuel_rate_per_km: Decimal
    late_arrival_time: str


SETTING_DESCRIPTIONS: dict[SettingKey, str] = {
    SettingKey.fuel_rate_per_km: "Reimbursement per kilometre",
    SettingKey.late_arrival_time: "Check-ins after this time (HH:MM) are late",
}
