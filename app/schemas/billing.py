"""Billing Pydantic schemas for request/response validation."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.core.config import settings

# Ten years of monthly invoices
MAX_BILLING_PERIODS = 120


class BillingPeriodCreate(BaseModel):
    """One main meter billing period as printed on the utility invoice."""

    begin_date: date
    end_date: date
    begin_reading_value: float = Field(ge=0)
    end_reading_value: float = Field(ge=0)
    consumed_energy_price: float = Field(ge=0)
    service_price: float | None = Field(default=None, ge=0)


class BillingCreate(BaseModel):
    """Schema for calculating a billing of a main meter.

    Periods must be contiguous and ordered earliest to latest.
    """

    max_day_diff: int = Field(default_factory=lambda: settings.DEFAULT_MAX_DAY_DIFF)
    billing_periods: list[BillingPeriodCreate] = Field(max_length=MAX_BILLING_PERIODS)


class Amounts(BaseModel):
    """Consumption and prices shared by every billing record."""

    energy_consumption: float
    consumed_energy_price: float
    service_price: float | None = None
    advance_price: float
    total_price: float

    model_config = {"from_attributes": True}


class SubMeterBillingPeriodResponse(Amounts):
    """Share of one sub meter in one billing period."""

    begin_date: date
    end_date: date


class SubMeterBillingResponse(Amounts):
    """Totals billed to one sub meter."""

    id: int | None = None
    subid: int | None = None
    sub_meter_id: int
    sub_meter_subid: int
    meter_id: str | None
    email: str
    periods: list[SubMeterBillingPeriodResponse]


class MainMeterBillingPeriodResponse(Amounts):
    """Main meter figures of one billing period."""

    id: int | None = None
    subid: int
    begin_date: date
    end_date: date
    begin_reading_value: float
    end_reading_value: float


class MainMeterBillingResponse(Amounts):
    """A complete billing; ``id`` and ``subid`` are unset for previews."""

    id: int | None = None
    subid: int | None = None
    main_meter_id: int
    max_day_diff: int
    begin_date: date
    end_date: date
    created_at: datetime | None = None
    periods: list[MainMeterBillingPeriodResponse]
    sub_meter_billings: list[SubMeterBillingResponse]
    break_points: list[date] = []


class MainMeterBillingSummary(Amounts):
    """Billing as listed for a main meter, without the per sub meter details."""

    id: int
    subid: int
    main_meter_id: int
    max_day_diff: int
    begin_date: date
    end_date: date
    created_at: datetime
