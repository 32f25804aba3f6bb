"""Estimation of sub meter readings at break points from sparse raw readings."""

from collections.abc import Sequence
from datetime import date

from app.services.allocation.break_points import BreakPoint, SupplementaryBreakPoints
from app.services.allocation.models import RawReading, Reading, ReadingMatrix, ResolverState


def days_between(later: date, earlier: date) -> float:
    return float((later - earlier).days)


def interpolate(later: Reading, earlier: Reading, moment: date) -> float:
    """Linear estimate at ``moment`` on the line through two readings.

    Raises:
        ValueError: If either reading has no value or both share the same date.

    """
    if later.value is None or later.time is None or earlier.value is None or earlier.time is None:
        raise ValueError("Interpolation needs two valid readings")
    span = days_between(later.time, earlier.time)
    if span == 0:
        raise ValueError("Interpolation needs readings on different dates")
    rate = (later.value - earlier.value) / span
    return earlier.value + rate * days_between(moment, earlier.time)


def _is_nearer(break_point: BreakPoint, moment: date, assigned: Reading | None) -> bool:
    """Whether ``moment`` is at least as near to the break point as the assigned reading."""
    if assigned is None or assigned.time is None:
        return True
    distance = abs(days_between(break_point.actual, moment))
    return distance <= abs(days_between(break_point.actual, assigned.time))


def close_series(
    sub_meter_id: int,
    break_points: Sequence[BreakPoint],
    matrix: ReadingMatrix,
    state: ResolverState,
    supplementary: SupplementaryBreakPoints | None = None,
) -> None:
    """Handle the sentinel row: there is no reading older than the window.

    Break points without a reading become invalid. When the sub meter still has
    valid readings, its oldest real reading is proposed as a break point so the
    allocation can start measuring exactly from there.
    """
    later = state.later_readings.get(sub_meter_id)
    has_valid_reading = False
    later_in_window = False
    for break_point in break_points:
        assigned = matrix.get(break_point.actual, sub_meter_id)
        if assigned is None:
            matrix.set(break_point.actual, sub_meter_id, Reading.invalid())
        elif assigned.valid:
            has_valid_reading = True
        if later is not None and later.time is not None and break_point.contains(later.time):
            later_in_window = True
    state.next_indexes[sub_meter_id] = len(break_points)

    if (
        supplementary is not None
        and later is not None
        and later.time is not None
        and has_valid_reading
        and not later_in_window
    ):
        supplementary.propose(later.time)


def assign_reading(
    raw: RawReading,
    break_points: Sequence[BreakPoint],
    matrix: ReadingMatrix,
    state: ResolverState,
    supplementary: SupplementaryBreakPoints | None = None,
) -> None:
    """Use one raw reading to fill the open break points of its sub meter.

    Raw readings of a sub meter must arrive latest first. When ``supplementary``
    is given, anomalies (a later reading lower than an earlier one) and the
    edges of the sub meter's readings are proposed as additional break points.
    """
    sub_meter_id = raw.sub_meter_id
    if raw.is_sentinel:
        close_series(sub_meter_id, break_points, matrix, state, supplementary)
        return
    if raw.value is None or raw.reading_date is None:
        raise ValueError(f"Reading of sub meter {sub_meter_id} has no value")

    reading = Reading.observed(raw.value, raw.reading_date)
    reading_time = raw.reading_date
    later = state.later_readings.get(sub_meter_id)

    monotonic = False
    newest_candidate: date | None = None
    if later is not None and later.value is not None and later.time is not None:
        if later.value >= reading.value:
            monotonic = True
        elif supplementary is not None:
            # Meter went backwards: measure exactly around both readings.
            supplementary.propose(later.time)
            supplementary.propose(reading_time)
    elif supplementary is not None and supplementary.accepts(reading_time):
        newest_candidate = reading_time

    in_window = False
    start = state.next_indexes.get(sub_meter_id, 0)
    for break_point in break_points[start:]:
        if reading_time > break_point.max:
            if not in_window and newest_candidate is not None and supplementary is not None:
                supplementary.propose(newest_candidate)
            break
        if reading_time >= break_point.min:
            assigned = matrix.get(break_point.actual, sub_meter_id)
            if _is_nearer(break_point, reading_time, assigned):
                matrix.set(break_point.actual, sub_meter_id, reading)
            if break_point.actual >= reading_time:
                # Older readings cannot be nearer.
                state.next_indexes[sub_meter_id] = state.next_indexes.get(sub_meter_id, 0) + 1
            in_window = True
        else:
            if monotonic and later is not None:
                estimate = Reading.estimated(
                    interpolate(later, reading, break_point.actual), break_point.actual
                )
                matrix.set(break_point.actual, sub_meter_id, estimate)
            else:
                matrix.set(break_point.actual, sub_meter_id, Reading.invalid())
            state.next_indexes[sub_meter_id] = state.next_indexes.get(sub_meter_id, 0) + 1

    state.later_readings[sub_meter_id] = reading
