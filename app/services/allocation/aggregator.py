"""Pricing of allocated consumption into billing records."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from app.services.allocation.break_points import BreakPoint
from app.services.allocation.models import BillingPeriod


@dataclass
class SubMeterBillingPeriodRecord:
    """Share of one sub meter in one main meter billing period."""

    sub_meter_id: int
    energy_consumption: float = 0.0
    consumed_energy_price: float = 0.0
    service_price: float | None = None
    advance_price: float = 0.0
    total_price: float = 0.0


@dataclass
class SubMeterBillingRecord:
    """Totals of one sub meter over the whole billing."""

    sub_meter_id: int
    energy_consumption: float = 0.0
    consumed_energy_price: float = 0.0
    service_price: float | None = None
    advance_price: float = 0.0
    total_price: float = 0.0
    periods: list[SubMeterBillingPeriodRecord] = field(default_factory=list)


@dataclass
class MainMeterBillingPeriodRecord:
    """One main meter billing period with the sub meter shares."""

    begin_date: date
    end_date: date
    begin_reading_value: float
    end_reading_value: float
    energy_consumption: float
    consumed_energy_price: float
    service_price: float | None
    advance_price: float = 0.0
    total_price: float = 0.0
    sub_meter_periods: dict[int, SubMeterBillingPeriodRecord] = field(default_factory=dict)

    @classmethod
    def from_period(cls, period: BillingPeriod) -> "MainMeterBillingPeriodRecord":
        return cls(
            begin_date=period.begin_date,
            end_date=period.end_date,
            begin_reading_value=period.begin_reading_value,
            end_reading_value=period.end_reading_value,
            energy_consumption=period.energy_consumption,
            consumed_energy_price=period.consumed_energy_price,
            service_price=period.service_price,
            total_price=period.total_price,
        )


@dataclass
class MainMeterBillingRecord:
    """Totals of the main meter over the whole billing."""

    max_day_diff: int
    begin_date: date
    end_date: date
    energy_consumption: float = 0.0
    consumed_energy_price: float = 0.0
    service_price: float | None = None
    advance_price: float = 0.0
    total_price: float = 0.0


@dataclass
class BillingResult:
    """Everything a billing run produces, ready to be shown or persisted."""

    billing: MainMeterBillingRecord
    periods: list[MainMeterBillingPeriodRecord]
    sub_meter_billings: list[SubMeterBillingRecord]
    break_points: list[BreakPoint] = field(default_factory=list)


class BillingAggregator:
    """Collects allocated consumption and prices it period by period.

    Periods are addressed by their position in the submitted list (earliest
    first), independently of the order the allocation closes them in.
    """

    def __init__(self, periods: Sequence[BillingPeriod], max_day_diff: int) -> None:
        self.billing = MainMeterBillingRecord(
            max_day_diff=max_day_diff,
            begin_date=periods[0].begin_date,
            end_date=periods[-1].end_date,
        )
        self.periods = [MainMeterBillingPeriodRecord.from_period(period) for period in periods]
        self.sub_meter_billings: dict[int, SubMeterBillingRecord] = {}

        for period in periods:
            self.billing.energy_consumption += period.energy_consumption
            self.billing.consumed_energy_price += period.consumed_energy_price
            if period.service_price is not None:
                previous = self.billing.service_price or 0.0
                self.billing.service_price = previous + period.service_price
            self.billing.total_price += period.total_price

    def add_consumption(
        self,
        period_index: int,
        sub_meter_id: int,
        energy_consumption: float,
        consumed_energy_price: float,
    ) -> None:
        """Accumulate one allocation step of a sub meter."""
        sub_periods = self.periods[period_index].sub_meter_periods
        record = sub_periods.get(sub_meter_id)
        if record is None:
            record = sub_periods[sub_meter_id] = SubMeterBillingPeriodRecord(sub_meter_id)
        record.energy_consumption += energy_consumption
        record.consumed_energy_price += consumed_energy_price

    def close_period(
        self,
        period_index: int,
        service_price_per_sub_meter: float | None,
        consumed_energy_price_per_sub_meter: float | None = None,
    ) -> MainMeterBillingPeriodRecord:
        """Price every sub meter share of a finished period.

        ``consumed_energy_price_per_sub_meter`` replaces the per-unit price for
        periods without consumption.
        """
        period = self.periods[period_index]
        for sub_meter_id in sorted(period.sub_meter_periods):
            record = period.sub_meter_periods[sub_meter_id]
            if consumed_energy_price_per_sub_meter is not None:
                record.consumed_energy_price = consumed_energy_price_per_sub_meter
            record.service_price = service_price_per_sub_meter
            service_price = service_price_per_sub_meter or 0.0
            record.advance_price = record.consumed_energy_price + service_price
            # TODO: subtract the previous billing's advance price once account
            # balances are tracked; until then the advance is counted twice.
            record.total_price = record.consumed_energy_price + service_price + record.advance_price

            sub_billing = self.sub_meter_billings.get(sub_meter_id)
            if sub_billing is None:
                sub_billing = self.sub_meter_billings[sub_meter_id] = SubMeterBillingRecord(
                    sub_meter_id
                )
            sub_billing.energy_consumption += record.energy_consumption
            sub_billing.consumed_energy_price += record.consumed_energy_price
            if service_price_per_sub_meter is not None:
                sub_billing.service_price = (sub_billing.service_price or 0.0) + service_price
            sub_billing.advance_price += record.advance_price
            sub_billing.total_price += record.total_price

            period.advance_price += record.advance_price
            period.total_price += record.advance_price

        self.billing.advance_price += period.advance_price
        self.billing.total_price += period.advance_price
        return period

    def result(self, break_points: Sequence[BreakPoint] = ()) -> BillingResult:
        """Finished billing; sub meter records are ordered by sub meter id."""
        sub_meter_billings = []
        for sub_meter_id in sorted(self.sub_meter_billings):
            sub_billing = self.sub_meter_billings[sub_meter_id]
            sub_billing.periods = [
                period.sub_meter_periods[sub_meter_id]
                for period in self.periods
                if sub_meter_id in period.sub_meter_periods
            ]
            sub_meter_billings.append(sub_billing)
        return BillingResult(
            billing=self.billing,
            periods=self.periods,
            sub_meter_billings=sub_meter_billings,
            break_points=list(break_points),
        )
