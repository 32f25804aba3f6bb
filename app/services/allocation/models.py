"""Data types shared by the billing allocation engine."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class BillingPeriod:
    """One main meter billing period as submitted by the user."""

    begin_date: date
    end_date: date
    begin_reading_value: float
    end_reading_value: float
    consumed_energy_price: float
    service_price: float | None = None

    @property
    def shifted_begin_date(self) -> date:
        """Begin date moved one day back, so a January period spans 31 days."""
        return self.begin_date - ONE_DAY

    @property
    def energy_consumption(self) -> float:
        return self.end_reading_value - self.begin_reading_value

    @property
    def total_price(self) -> float:
        return self.consumed_energy_price + (self.service_price or 0.0)


@dataclass(frozen=True)
class RawReading:
    """A sub meter reading row as returned by the reading query.

    A row without a date is the sentinel telling that the sub meter has no
    reading earlier than the queried window.
    """

    sub_meter_id: int
    value: float | None
    reading_date: date | None

    @property
    def is_sentinel(self) -> bool:
        return self.reading_date is None


class ReadingKind(str, Enum):
    """How a break point reading was obtained."""

    INVALID = "invalid"
    ESTIMATED = "estimated"
    OBSERVED = "observed"


@dataclass(frozen=True)
class Reading:
    """Reading value of one sub meter at one moment."""

    kind: ReadingKind
    value: float | None = None
    time: date | None = None

    @classmethod
    def invalid(cls) -> "Reading":
        return cls(ReadingKind.INVALID)

    @classmethod
    def observed(cls, value: float, time: date) -> "Reading":
        return cls(ReadingKind.OBSERVED, value, time)

    @classmethod
    def estimated(cls, value: float, time: date) -> "Reading":
        return cls(ReadingKind.ESTIMATED, value, time)

    @property
    def valid(self) -> bool:
        return self.kind != ReadingKind.INVALID


class ReadingMatrix:
    """Break point date -> sub meter id -> reading.

    Absent cells are "missing"; the resolver fills them with invalid readings
    once a pass is over.
    """

    def __init__(self) -> None:
        self._rows: dict[date, dict[int, Reading]] = {}

    def get(self, actual: date, sub_meter_id: int) -> Reading | None:
        return self._rows.get(actual, {}).get(sub_meter_id)

    def set(self, actual: date, sub_meter_id: int, reading: Reading) -> None:
        self._rows.setdefault(actual, {})[sub_meter_id] = reading

    def row(self, actual: date) -> dict[int, Reading]:
        return self._rows.get(actual, {})

    def fill_missing(self, actuals: list[date], sub_meter_ids: list[int]) -> None:
        """Mark every missing cell of the given break points invalid."""
        for actual in actuals:
            row = self._rows.setdefault(actual, {})
            for sub_meter_id in sub_meter_ids:
                row.setdefault(sub_meter_id, Reading.invalid())

    def __contains__(self, actual: object) -> bool:
        return actual in self._rows


@dataclass
class ResolverState:
    """Per sub meter progress of one resolution pass."""

    later_readings: dict[int, Reading] = field(default_factory=dict)
    next_indexes: dict[int, int] = field(default_factory=dict)

    def reset(self) -> None:
        self.later_readings.clear()
        self.next_indexes.clear()
