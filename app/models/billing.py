"""Billing database models for main meters and their sub meters."""

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.main_meter import MainMeter
    from app.models.sub_meter import SubMeter


class MainMeterBilling(Base):
    """One invoicing run of a main meter, made of one or more billing periods."""

    __tablename__ = "main_meter_billings"
    __table_args__ = (
        UniqueConstraint("main_meter_id", "subid", name="uq_main_meter_billing_subid"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    subid: Mapped[int]
    max_day_diff: Mapped[int]
    begin_date: Mapped[date]
    end_date: Mapped[date]
    energy_consumption: Mapped[float]
    consumed_energy_price: Mapped[float]
    service_price: Mapped[float | None] = mapped_column(nullable=True)
    advance_price: Mapped[float] = mapped_column(default=0.0)
    total_price: Mapped[float] = mapped_column(default=0.0)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Foreign keys
    main_meter_id: Mapped[int] = mapped_column(ForeignKey("main_meters.id"), index=True)

    # Relationships
    main_meter: Mapped["MainMeter"] = relationship(back_populates="billings")
    periods: Mapped[list["MainMeterBillingPeriod"]] = relationship(
        back_populates="main_billing",
        order_by="MainMeterBillingPeriod.subid",
    )
    sub_meter_billings: Mapped[list["SubMeterBilling"]] = relationship(
        back_populates="main_billing",
        order_by="SubMeterBilling.sub_meter_id",
    )


class MainMeterBillingPeriod(Base):
    """Main meter readings and prices of one billing period."""

    __tablename__ = "main_meter_billing_periods"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    subid: Mapped[int]
    begin_date: Mapped[date]
    end_date: Mapped[date]
    begin_reading_value: Mapped[float]
    end_reading_value: Mapped[float]
    energy_consumption: Mapped[float]
    consumed_energy_price: Mapped[float]
    service_price: Mapped[float | None] = mapped_column(nullable=True)
    advance_price: Mapped[float] = mapped_column(default=0.0)
    total_price: Mapped[float] = mapped_column(default=0.0)

    # Foreign keys
    main_billing_id: Mapped[int] = mapped_column(
        ForeignKey("main_meter_billings.id"),
        index=True,
    )

    # Relationships
    main_billing: Mapped["MainMeterBilling"] = relationship(back_populates="periods")
    sub_meter_periods: Mapped[list["SubMeterBillingPeriod"]] = relationship(
        back_populates="main_billing_period",
    )


class SubMeterBilling(Base):
    """Totals billed to one sub meter within a main meter billing."""

    __tablename__ = "sub_meter_billings"
    __table_args__ = (
        UniqueConstraint("sub_meter_id", "subid", name="uq_sub_meter_billing_subid"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    subid: Mapped[int]
    energy_consumption: Mapped[float]
    consumed_energy_price: Mapped[float]
    service_price: Mapped[float | None] = mapped_column(nullable=True)
    advance_price: Mapped[float]
    total_price: Mapped[float]

    # Foreign keys
    sub_meter_id: Mapped[int] = mapped_column(ForeignKey("sub_meters.id"), index=True)
    main_billing_id: Mapped[int] = mapped_column(
        ForeignKey("main_meter_billings.id"),
        index=True,
    )

    # Relationships
    sub_meter: Mapped["SubMeter"] = relationship()
    main_billing: Mapped["MainMeterBilling"] = relationship(back_populates="sub_meter_billings")
    periods: Mapped[list["SubMeterBillingPeriod"]] = relationship(
        back_populates="sub_billing",
        order_by="SubMeterBillingPeriod.main_billing_period_id",
    )

    @property
    def sub_meter_subid(self) -> int:
        return self.sub_meter.subid

    @property
    def meter_id(self) -> str | None:
        return self.sub_meter.meter_id

    @property
    def email(self) -> str:
        return self.sub_meter.owner.email


class SubMeterBillingPeriod(Base):
    """Share of one sub meter in one main meter billing period."""

    __tablename__ = "sub_meter_billing_periods"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    energy_consumption: Mapped[float]
    consumed_energy_price: Mapped[float]
    service_price: Mapped[float | None] = mapped_column(nullable=True)
    advance_price: Mapped[float]
    total_price: Mapped[float]

    # Foreign keys
    sub_billing_id: Mapped[int] = mapped_column(ForeignKey("sub_meter_billings.id"), index=True)
    main_billing_period_id: Mapped[int] = mapped_column(
        ForeignKey("main_meter_billing_periods.id"),
        index=True,
    )

    # Relationships
    sub_billing: Mapped["SubMeterBilling"] = relationship(back_populates="periods")
    main_billing_period: Mapped["MainMeterBillingPeriod"] = relationship(
        back_populates="sub_meter_periods",
    )

    @property
    def begin_date(self) -> date:
        return self.main_billing_period.begin_date

    @property
    def end_date(self) -> date:
        return self.main_billing_period.end_date
