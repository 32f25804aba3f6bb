"""Break points: the moments at which every sub meter needs a reading value."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from app.services.allocation.exceptions import BillingInputError, FieldError
from app.services.allocation.models import ONE_DAY, BillingPeriod

MIN_DAY_DIFF = 1
MAX_DAY_DIFF = 255


@dataclass(frozen=True)
class BreakPoint:
    """Moment ``actual`` with the window ``[min, max]`` of usable readings."""

    min: date
    actual: date
    max: date

    @classmethod
    def around(cls, moment: date, day_diff: int) -> "BreakPoint":
        """Break point centered on ``moment``."""
        delta = timedelta(days=day_diff)
        return cls(moment - delta, moment, moment + delta)

    def contains(self, moment: date) -> bool:
        return self.min <= moment <= self.max

    def union(self, other: "BreakPoint") -> "BreakPoint":
        """Merge two break points sharing the same ``actual``."""
        return BreakPoint(min(self.min, other.min), self.actual, max(self.max, other.max))


def merge_break_points(*groups: Iterable[BreakPoint]) -> list[BreakPoint]:
    """De-duplicate break points by ``actual`` and sort them latest first."""
    by_actual: dict[date, BreakPoint] = {}
    for group in groups:
        for break_point in group:
            existing = by_actual.get(break_point.actual)
            by_actual[break_point.actual] = (
                break_point if existing is None else existing.union(break_point)
            )
    return sorted(by_actual.values(), key=lambda bp: bp.actual, reverse=True)


@dataclass(frozen=True)
class BreakPointPlan:
    """Primary break points of a billing and the window readings are fetched for."""

    break_points: list[BreakPoint]
    day_diff: int
    min_time: date
    max_time: date

    def in_window(self, moment: date) -> bool:
        return self.min_time <= moment <= self.max_time


def validate_billing_periods(periods: Sequence[BillingPeriod], day_diff: int) -> None:
    """Check periods are present, well ordered and contiguous."""
    errors: list[FieldError] = []
    if not MIN_DAY_DIFF <= day_diff <= MAX_DAY_DIFF:
        errors.append(
            FieldError(
                f"Enter maximum day difference between {MIN_DAY_DIFF} and {MAX_DAY_DIFF}.",
                field="max_day_diff",
            )
        )
    if not periods:
        errors.append(FieldError("No billing period provided."))
    for index, period in enumerate(periods):
        if period.end_date < period.begin_date:
            errors.append(
                FieldError(
                    "End date must be greater or equal to begin date.",
                    field="end_date",
                    period_index=index,
                )
            )
        if index and periods[index - 1].end_date + ONE_DAY != period.begin_date:
            errors.append(
                FieldError(
                    "Begin date must follow previous billing period's end date.",
                    field="begin_date",
                    period_index=index,
                )
            )
    if MIN_DAY_DIFF <= day_diff <= MAX_DAY_DIFF:
        errors.extend(_calendar_range_errors(periods, day_diff))
    if errors:
        raise BillingInputError(errors)


def _calendar_range_errors(periods: Sequence[BillingPeriod], day_diff: int) -> list[FieldError]:
    # Break points found inside the window reach another day_diff before it,
    # so the earliest date touched is begin - 1 - 2 * day_diff.
    errors: list[FieldError] = []
    for index, period in enumerate(periods):
        if period.begin_date.toordinal() - 1 - 2 * day_diff < date.min.toordinal():
            errors.append(
                FieldError(
                    "Begin date is too early.",
                    field="begin_date",
                    period_index=index,
                )
            )
        if period.end_date.toordinal() + day_diff > date.max.toordinal():
            errors.append(
                FieldError(
                    "End date is too late.",
                    field="end_date",
                    period_index=index,
                )
            )
    return errors


def build_break_point_plan(
    periods: Sequence[BillingPeriod],
    day_diff: int,
) -> BreakPointPlan:
    """Build the primary break points for periods ordered earliest to latest."""
    validate_billing_periods(periods, day_diff)

    delta = timedelta(days=day_diff)
    break_points: list[BreakPoint] = []
    for period in periods:
        break_points.append(BreakPoint.around(period.end_date, day_diff))
        shifted_begin = period.shifted_begin_date
        break_points.append(
            BreakPoint(shifted_begin - delta, shifted_begin, period.begin_date + delta)
        )

    return BreakPointPlan(
        break_points=merge_break_points(break_points),
        day_diff=day_diff,
        min_time=periods[0].shifted_begin_date - delta,
        max_time=periods[-1].end_date,
    )


class SupplementaryBreakPoints:
    """Break points discovered while resolving readings."""

    def __init__(self, plan: BreakPointPlan) -> None:
        self._plan = plan
        self._primary = {bp.actual for bp in plan.break_points}
        self._found: dict[date, BreakPoint] = {}

    def accepts(self, moment: date) -> bool:
        """Whether ``moment`` would be a new break point inside the billing window."""
        return (
            self._plan.in_window(moment)
            and moment not in self._primary
            and moment not in self._found
        )

    def propose(self, moment: date) -> bool:
        """Add a break point at ``moment`` unless it is known or out of the window."""
        if not self.accepts(moment):
            return False
        self._found[moment] = BreakPoint.around(moment, self._plan.day_diff)
        return True

    def sorted(self) -> list[BreakPoint]:
        """Found break points, latest first."""
        return merge_break_points(self._found.values())

    def __len__(self) -> int:
        return len(self._found)
