"""Tests for break point construction and billing period validation."""

from datetime import date, timedelta

import pytest

from app.services.allocation.break_points import (
    BreakPoint,
    SupplementaryBreakPoints,
    build_break_point_plan,
    merge_break_points,
)
from app.services.allocation.exceptions import BillingInputError
from app.services.allocation.models import BillingPeriod


def make_period(begin: date, end: date, begin_value=0.0, end_value=10.0, price=5.0, service=None):
    return BillingPeriod(begin, end, begin_value, end_value, price, service)


JANUARY = make_period(date(2026, 1, 1), date(2026, 1, 31))
FEBRUARY = make_period(date(2026, 2, 1), date(2026, 2, 28), 10.0, 20.0)


class TestBreakPoint:
    """Tests for the break point value type."""

    def test_around_centers_window(self):
        bp = BreakPoint.around(date(2026, 1, 15), 3)
        assert bp == BreakPoint(date(2026, 1, 12), date(2026, 1, 15), date(2026, 1, 18))

    def test_contains_is_inclusive(self):
        bp = BreakPoint.around(date(2026, 1, 15), 3)
        assert bp.contains(date(2026, 1, 12))
        assert bp.contains(date(2026, 1, 18))
        assert not bp.contains(date(2026, 1, 19))

    def test_merge_deduplicates_by_actual_with_union_window(self):
        first = BreakPoint(date(2026, 1, 10), date(2026, 1, 20), date(2026, 1, 25))
        second = BreakPoint(date(2026, 1, 5), date(2026, 1, 20), date(2026, 1, 22))
        later = BreakPoint.around(date(2026, 2, 1), 1)
        merged = merge_break_points([first, later], [second])
        assert merged == [
            later,
            BreakPoint(date(2026, 1, 5), date(2026, 1, 20), date(2026, 1, 25)),
        ]


class TestBuildPlan:
    """Tests for build_break_point_plan."""

    def test_single_period(self):
        plan = build_break_point_plan([JANUARY], 14)
        assert [bp.actual for bp in plan.break_points] == [date(2026, 1, 31), date(2025, 12, 31)]
        begin = plan.break_points[1]
        # Shifted begin window reaches day_diff past the real begin date
        assert begin.min == date(2025, 12, 17)
        assert begin.max == date(2026, 1, 15)
        assert plan.min_time == date(2025, 12, 17)
        assert plan.max_time == date(2026, 1, 31)

    def test_contiguous_periods_share_a_break_point(self):
        plan = build_break_point_plan([JANUARY, FEBRUARY], 14)
        actuals = [bp.actual for bp in plan.break_points]
        assert actuals == [date(2026, 2, 28), date(2026, 1, 31), date(2025, 12, 31)]
        shared = plan.break_points[1]
        assert shared.min == date(2026, 1, 17)
        assert shared.max == date(2026, 2, 15)

    def test_single_day_period(self):
        period = make_period(date(2026, 3, 1), date(2026, 3, 1))
        plan = build_break_point_plan([period], 1)
        assert [bp.actual for bp in plan.break_points] == [date(2026, 3, 1), date(2026, 2, 28)]


class TestValidation:
    """Tests for billing period validation errors."""

    def test_no_periods(self):
        with pytest.raises(BillingInputError) as exc_info:
            build_break_point_plan([], 14)
        assert exc_info.value.errors[0].message == "No billing period provided."
        assert exc_info.value.to_detail()[0]["loc"] == ["body"]

    def test_end_before_begin(self):
        period = make_period(date(2026, 1, 31), date(2026, 1, 1))
        with pytest.raises(BillingInputError) as exc_info:
            build_break_point_plan([period], 14)
        error = exc_info.value.errors[0]
        assert error.field == "end_date"
        assert error.period_index == 0
        assert error.message == "End date must be greater or equal to begin date."

    def test_gap_between_periods_names_later_begin_date(self):
        late_february = make_period(date(2026, 2, 2), date(2026, 2, 28))
        with pytest.raises(BillingInputError) as exc_info:
            build_break_point_plan([JANUARY, late_february], 14)
        detail = exc_info.value.to_detail()
        assert detail == [
            {
                "loc": ["body", "billing_periods", 1, "begin_date"],
                "msg": "Begin date must follow previous billing period's end date.",
                "type": "value_error",
            }
        ]

    def test_overlapping_periods_rejected(self):
        overlap = make_period(date(2026, 1, 31), date(2026, 2, 28))
        with pytest.raises(BillingInputError):
            build_break_point_plan([JANUARY, overlap], 14)

    @pytest.mark.parametrize("day_diff", [0, 256, -3])
    def test_day_diff_out_of_range(self, day_diff):
        with pytest.raises(BillingInputError) as exc_info:
            build_break_point_plan([JANUARY], day_diff)
        assert exc_info.value.errors[0].field == "max_day_diff"

    @pytest.mark.parametrize("day_diff", [1, 255])
    def test_day_diff_limits_accepted(self, day_diff):
        plan = build_break_point_plan([JANUARY], day_diff)
        assert plan.day_diff == day_diff

    def test_begin_date_at_start_of_calendar(self):
        period = make_period(date(1, 1, 1), date(1, 1, 30))
        with pytest.raises(BillingInputError) as exc_info:
            build_break_point_plan([period], 14)
        [error] = exc_info.value.errors
        assert error.field == "begin_date"
        assert error.period_index == 0
        assert error.message == "Begin date is too early."

    def test_end_date_at_end_of_calendar(self):
        period = make_period(date(9999, 12, 1), date(9999, 12, 31))
        with pytest.raises(BillingInputError) as exc_info:
            build_break_point_plan([period], 14)
        [error] = exc_info.value.errors
        assert error.field == "end_date"
        assert error.message == "End date is too late."

    def test_dates_just_inside_calendar_accepted(self):
        period = make_period(date.min + timedelta(days=3), date.max - timedelta(days=1))
        plan = build_break_point_plan([period], 1)
        assert plan.min_time == date(1, 1, 2)
        assert plan.break_points[0].max == date.max
        found = SupplementaryBreakPoints(plan)
        assert found.propose(plan.min_time) is True
        assert found.sorted()[0].min == date.min

    def test_collects_every_error(self):
        backwards = make_period(date(2026, 3, 10), date(2026, 3, 1))
        with pytest.raises(BillingInputError) as exc_info:
            build_break_point_plan([JANUARY, backwards], 0)
        fields = [error.field for error in exc_info.value.errors]
        assert fields == ["max_day_diff", "end_date", "begin_date"]


class TestSupplementaryBreakPoints:
    """Tests for break points discovered while resolving readings."""

    def test_accepts_only_new_moments_inside_window(self):
        plan = build_break_point_plan([JANUARY], 14)
        found = SupplementaryBreakPoints(plan)
        assert found.propose(date(2026, 1, 10)) is True
        assert found.propose(date(2026, 1, 10)) is False
        assert found.propose(date(2026, 1, 31)) is False  # primary break point
        assert found.propose(date(2026, 2, 1)) is False  # after the window
        assert found.propose(date(2025, 12, 16)) is False  # before the window
        assert found.propose(date(2025, 12, 17)) is True
        assert len(found) == 2
        assert [bp.actual for bp in found.sorted()] == [date(2026, 1, 10), date(2025, 12, 17)]

    def test_found_break_points_use_day_diff_window(self):
        plan = build_break_point_plan([JANUARY], 5)
        found = SupplementaryBreakPoints(plan)
        found.propose(date(2026, 1, 10))
        expected = BreakPoint(date(2026, 1, 5), date(2026, 1, 10), date(2026, 1, 15))
        assert found.sorted()[0] == expected
