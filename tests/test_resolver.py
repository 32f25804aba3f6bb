"""Tests for resolving every sub meter's reading at every break point."""

from datetime import date

import pytest

from app.services.allocation.break_points import build_break_point_plan
from app.services.allocation.exceptions import NoSubMeterError
from app.services.allocation.models import (
    BillingPeriod,
    RawReading,
    Reading,
    ReadingKind,
)
from app.services.allocation.resolver import group_series, resolve_readings

JANUARY = BillingPeriod(date(2026, 1, 1), date(2026, 1, 30), 100.0, 150.0, 50.0)


def test_no_rows_means_no_sub_meter():
    plan = build_break_point_plan([JANUARY], 14)
    with pytest.raises(NoSubMeterError, match="There is no sub meter."):
        resolve_readings(plan, [])


def test_group_series_orders_latest_first_with_sentinel_last():
    rows = [
        RawReading(2, None, None),
        RawReading(1, 5.0, date(2026, 1, 1)),
        RawReading(2, 3.0, date(2026, 1, 5)),
        RawReading(1, 9.0, date(2026, 1, 9)),
        RawReading(2, 4.0, date(2026, 1, 7)),
    ]
    series = group_series(rows)
    assert [r.reading_date for r in series[1]] == [date(2026, 1, 9), date(2026, 1, 1)]
    assert [r.reading_date for r in series[2]] == [date(2026, 1, 7), date(2026, 1, 5), None]


def test_matrix_is_complete_for_sub_meter_without_readings():
    plan = build_break_point_plan([JANUARY], 14)
    rows = [
        RawReading(1, 150.0, date(2026, 1, 30)),
        RawReading(1, 100.0, date(2025, 12, 31)),
        RawReading(1, None, None),
        RawReading(2, None, None),
    ]
    resolved = resolve_readings(plan, rows)
    assert resolved.sub_meter_ids == [1, 2]
    assert resolved.supplementary == []
    for break_point in resolved.break_points:
        assert set(resolved.matrix.row(break_point.actual)) == {1, 2}
        assert resolved.matrix.get(break_point.actual, 2) == Reading.invalid()


def test_anomaly_adds_break_point_resolved_in_second_pass():
    plan = build_break_point_plan([JANUARY], 14)
    rows = [
        RawReading(1, 50.0, date(2026, 1, 30)),
        RawReading(1, 80.0, date(2026, 1, 10)),
        RawReading(1, 0.0, date(2025, 12, 31)),
        RawReading(1, None, None),
    ]
    resolved = resolve_readings(plan, rows)

    assert [bp.actual for bp in resolved.supplementary] == [date(2026, 1, 10)]
    assert [bp.actual for bp in resolved.break_points] == [
        date(2026, 1, 30),
        date(2026, 1, 10),
        date(2025, 12, 31),
    ]
    assert resolved.matrix.get(date(2026, 1, 10), 1) == Reading.observed(80.0, date(2026, 1, 10))
    assert resolved.matrix.get(date(2026, 1, 30), 1) == Reading.observed(50.0, date(2026, 1, 30))
    assert resolved.matrix.get(date(2025, 12, 31), 1) == Reading.observed(0.0, date(2025, 12, 31))


def test_reading_before_window_closes_remaining_break_points():
    plan = build_break_point_plan([JANUARY], 14)
    rows = [
        RawReading(1, 300.0, date(2026, 2, 20)),
        RawReading(1, 0.0, date(2025, 11, 22)),
    ]
    resolved = resolve_readings(plan, rows)
    end = resolved.matrix.get(date(2026, 1, 30), 1)
    begin = resolved.matrix.get(date(2025, 12, 31), 1)
    assert end.kind == ReadingKind.ESTIMATED
    assert begin.kind == ReadingKind.ESTIMATED
    # 300 units over 90 days
    assert end.value == pytest.approx(230.0)
    assert begin.value == pytest.approx(130.0)
