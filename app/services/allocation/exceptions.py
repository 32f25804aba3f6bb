"""Errors raised by the billing allocation engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A user-correctable problem tied to one submitted field.

    ``period_index`` is the position of the billing period in the submitted
    list, or ``None`` for errors not tied to a period.
    """

    message: str
    field: str | None = None
    period_index: int | None = None

    def location(self) -> list[str | int]:
        """FastAPI-style location of the offending field in the request body."""
        loc: list[str | int] = ["body"]
        if self.period_index is not None:
            loc.extend(["billing_periods", self.period_index])
        if self.field is not None:
            loc.append(self.field)
        return loc


class BillingError(Exception):
    """Base class for billing computation failures."""


class BillingInputError(BillingError):
    """Submitted billing periods are inconsistent."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("; ".join(error.message for error in errors))

    def to_detail(self) -> list[dict]:
        """Render the errors like a FastAPI request validation error."""
        return [
            {"loc": error.location(), "msg": error.message, "type": "value_error"}
            for error in self.errors
        ]


class NoSubMeterError(BillingError):
    """The main meter has no sub meters to bill."""

    def __init__(self, message: str = "There is no sub meter.") -> None:
        super().__init__(message)
