"""SubMeterReading Pydantic schemas for request/response validation."""

from datetime import date

from pydantic import BaseModel, Field


class ReadingCreate(BaseModel):
    """Schema for recording a sub meter reading."""

    reading_value: float = Field(ge=0)
    reading_date: date


class ReadingResponse(ReadingCreate):
    """Schema for sub meter reading response."""

    id: int
    sub_meter_id: int

    model_config = {"from_attributes": True}
