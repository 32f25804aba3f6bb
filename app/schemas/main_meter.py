"""MainMeter Pydantic schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.enums import Energy


class MainMeterBase(BaseModel):
    """Base main meter schema."""

    meter_id: str = Field(min_length=3, max_length=64)
    energy: Energy
    address: str = Field(min_length=8, max_length=255)

    @field_validator("meter_id", "address")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Reject values made of whitespace only."""
        if not v.strip():
            raise ValueError("Value cannot be blank")
        return v.strip()


class MainMeterCreate(MainMeterBase):
    """Schema for creating a main meter."""

    pass


class MainMeterResponse(MainMeterBase):
    """Schema for main meter response."""

    id: int
    user_id: int
    created_at: datetime

    model_config = {"from_attributes": True}
