"""Resolution of every sub meter's reading at every break point."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from app.services.allocation.break_points import (
    BreakPoint,
    BreakPointPlan,
    SupplementaryBreakPoints,
    merge_break_points,
)
from app.services.allocation.exceptions import NoSubMeterError
from app.services.allocation.interpolation import assign_reading
from app.services.allocation.models import RawReading, ReadingMatrix, ResolverState

logger = logging.getLogger(__name__)


@dataclass
class ResolvedReadings:
    """Complete reading matrix and the break points it is defined for."""

    matrix: ReadingMatrix
    break_points: list[BreakPoint]
    sub_meter_ids: list[int]
    supplementary: list[BreakPoint] = field(default_factory=list)


def group_series(raw_readings: Iterable[RawReading]) -> dict[int, list[RawReading]]:
    """Split raw rows per sub meter, each series latest first with the sentinel last."""
    series: dict[int, list[RawReading]] = {}
    for raw in raw_readings:
        series.setdefault(raw.sub_meter_id, []).append(raw)
    for rows in series.values():
        rows.sort(
            key=lambda r: (r.is_sentinel, -r.reading_date.toordinal() if r.reading_date else 0)
        )
    return series


def run_pass(
    break_points: Sequence[BreakPoint],
    series: dict[int, list[RawReading]],
    matrix: ReadingMatrix,
    state: ResolverState,
    supplementary: SupplementaryBreakPoints | None = None,
) -> None:
    """Feed every raw reading to the interpolation against ``break_points``."""
    state.reset()
    for rows in series.values():
        for raw in rows:
            assign_reading(raw, break_points, matrix, state, supplementary)
    matrix.fill_missing([bp.actual for bp in break_points], list(series))


def resolve_readings(
    plan: BreakPointPlan,
    raw_readings: Sequence[RawReading],
) -> ResolvedReadings:
    """Fill the reading matrix for the primary and any discovered break points.

    Raises:
        NoSubMeterError: If there is no reading row at all.

    """
    if not raw_readings:
        raise NoSubMeterError()

    series = group_series(raw_readings)
    matrix = ReadingMatrix()
    state = ResolverState()
    supplementary = SupplementaryBreakPoints(plan)

    run_pass(plan.break_points, series, matrix, state, supplementary)

    additional = supplementary.sorted()
    logger.debug("Supplementary break points: %s", [bp.actual.isoformat() for bp in additional])
    if additional:
        run_pass(additional, series, matrix, state)

    return ResolvedReadings(
        matrix=matrix,
        break_points=merge_break_points(plan.break_points, additional),
        sub_meter_ids=sorted(series),
        supplementary=additional,
    )
