"""Employee Pydantic v2 schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class EmployeeCreate(BaseModel):
    """Payload for creating an employee profile (admin only)."""

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("full_name must not be blank")
        return value


class DeactivateRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    is_active: bool
    deactivated_at: Optional[datetime] = None
    deactivation_reason: Optional[str] = None


class EmployeeBrief(BaseModel):
    """Compact representation for dropdowns and report headers."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    email: str
