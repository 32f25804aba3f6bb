"""SubMeterReading database model."""

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.sub_meter import SubMeter


class SubMeterReading(Base):
    """Cumulative reading of a sub meter on a given day."""

    __tablename__ = "sub_meter_readings"
    __table_args__ = (
        UniqueConstraint("sub_meter_id", "reading_date", name="uq_sub_meter_reading_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    reading_value: Mapped[float]
    reading_date: Mapped[date] = mapped_column(index=True)

    # Foreign keys
    sub_meter_id: Mapped[int] = mapped_column(ForeignKey("sub_meters.id"), index=True)

    # Relationships
    sub_meter: Mapped["SubMeter"] = relationship(back_populates="readings")
