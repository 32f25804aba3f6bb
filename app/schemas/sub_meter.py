"""SubMeter Pydantic schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SubMeterCreate(BaseModel):
    """Schema for attaching a sub meter to a main meter.

    The sub meter is owned by the user registered under ``email``.
    """

    email: EmailStr
    meter_id: str | None = Field(default=None, min_length=3, max_length=64)
    financial_balance: float = 0.0


class SubMeterResponse(BaseModel):
    """Schema for sub meter response."""

    id: int
    subid: int
    meter_id: str | None
    financial_balance: float
    main_meter_id: int
    user_id: int
    email: EmailStr
    created_at: datetime

    model_config = {"from_attributes": True}
