"""Allocation of main meter consumption to sub meters between break points."""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from app.services.allocation.aggregator import BillingAggregator, BillingResult
from app.services.allocation.break_points import BreakPointPlan
from app.services.allocation.interpolation import days_between
from app.services.allocation.models import BillingPeriod, RawReading, Reading
from app.services.allocation.resolver import ResolvedReadings, resolve_readings

logger = logging.getLogger(__name__)


@dataclass
class PeriodState:
    """Main meter figures of the billing period being allocated."""

    index: int
    min_time: date
    begin_value: float
    value_per_day: float
    price_per_unit: float | None
    service_price_per_sub_meter: float | None
    consumed_energy_price_per_sub_meter: float | None
    later_value: float

    @classmethod
    def open(cls, index: int, period: BillingPeriod, sub_meter_count: int) -> "PeriodState":
        min_time = period.shifted_begin_date
        consumption = period.energy_consumption
        price_per_unit = None
        price_per_sub_meter = None
        if consumption:
            price_per_unit = period.consumed_energy_price / consumption
        else:
            price_per_sub_meter = period.consumed_energy_price / sub_meter_count
        service_price = None
        if period.service_price is not None:
            service_price = period.service_price / sub_meter_count
        return cls(
            index=index,
            min_time=min_time,
            begin_value=period.begin_reading_value,
            value_per_day=consumption / days_between(period.end_date, min_time),
            price_per_unit=price_per_unit,
            service_price_per_sub_meter=service_price,
            consumed_energy_price_per_sub_meter=price_per_sub_meter,
            later_value=period.end_reading_value,
        )

    def value_at(self, moment: date) -> float:
        """Main meter reading at ``moment``, assuming constant daily consumption."""
        if moment > self.min_time:
            return self.begin_value + self.value_per_day * days_between(moment, self.min_time)
        return self.begin_value


def split_consumption(
    readings: dict[int, Reading],
    later_readings: dict[int, Reading],
    consumption: float,
    sub_meter_ids: Sequence[int],
) -> dict[int, float]:
    """Split one step of main meter consumption between sub meters.

    Sub meters with two valid, non-decreasing readings get their measured
    difference. The remainder goes equally to the sub meters that could not be
    measured, or to all sub meters when every one was measured, so the shares
    always add up to ``consumption``.
    """
    measured: dict[int, float] = {}
    current_sum = 0.0
    later_sum = 0.0
    for sub_meter_id in sub_meter_ids:
        current = readings.get(sub_meter_id)
        later = later_readings.get(sub_meter_id)
        if current is None or later is None or not current.valid or not later.valid:
            continue
        if current.value is None or later.value is None or current.value > later.value:
            continue
        measured[sub_meter_id] = later.value - current.value
        current_sum += current.value
        later_sum += later.value

    unmeasured = [sub_meter_id for sub_meter_id in sub_meter_ids if sub_meter_id not in measured]
    residual = consumption - (later_sum - current_sum)

    shares: dict[int, float] = {}
    if not unmeasured:
        addendum = residual / len(sub_meter_ids)
        for sub_meter_id in sub_meter_ids:
            shares[sub_meter_id] = measured[sub_meter_id] + addendum
    else:
        addendum = residual / len(unmeasured)
        for sub_meter_id in sub_meter_ids:
            shares[sub_meter_id] = measured.get(sub_meter_id, addendum)
    return shares


def allocate(
    periods: Sequence[BillingPeriod],
    resolved: ResolvedReadings,
    aggregator: BillingAggregator,
) -> None:
    """Walk break points latest first and feed per period allocations to the aggregator.

    ``periods`` are ordered earliest to latest, as submitted.
    """
    break_points = resolved.break_points
    sub_meter_ids = resolved.sub_meter_ids
    matrix = resolved.matrix
    sub_meter_count = len(sub_meter_ids)

    period_index = len(periods) - 1
    state = PeriodState.open(period_index, periods[period_index], sub_meter_count)
    later_row = matrix.row(break_points[0].actual)

    for break_point in break_points[1:]:
        actual = break_point.actual
        main_value = state.value_at(actual)
        main_consumption = state.later_value - main_value
        state.later_value = main_value

        row = matrix.row(actual)
        shares = split_consumption(row, later_row, main_consumption, sub_meter_ids)
        for sub_meter_id, consumption in shares.items():
            price = consumption * state.price_per_unit if state.price_per_unit is not None else 0.0
            aggregator.add_consumption(state.index, sub_meter_id, consumption, price)

        if actual == state.min_time:
            aggregator.close_period(
                state.index,
                state.service_price_per_sub_meter,
                state.consumed_energy_price_per_sub_meter,
            )
            if period_index == 0:
                break
            period_index -= 1
            state = PeriodState.open(period_index, periods[period_index], sub_meter_count)
        later_row = row


def calculate_billing(
    periods: Sequence[BillingPeriod],
    plan: BreakPointPlan,
    raw_readings: Sequence[RawReading],
) -> BillingResult:
    """Compute a complete billing from periods, their break point plan and raw readings.

    Raises:
        NoSubMeterError: If there are no sub meter readings at all.

    """
    resolved = resolve_readings(plan, raw_readings)
    logger.debug(
        "Allocating %d sub meters over break points %s",
        len(resolved.sub_meter_ids),
        [bp.actual.isoformat() for bp in resolved.break_points],
    )
    aggregator = BillingAggregator(periods, plan.day_diff)
    allocate(periods, resolved, aggregator)
    result = aggregator.result(resolved.break_points)

    for period in result.periods:
        allocated = math.fsum(r.energy_consumption for r in period.sub_meter_periods.values())
        if not math.isclose(allocated, period.energy_consumption, rel_tol=1e-9, abs_tol=1e-6):
            logger.warning(
                "Allocated consumption %s differs from period consumption %s (%s - %s)",
                allocated,
                period.energy_consumption,
                period.begin_date,
                period.end_date,
            )
    return result
