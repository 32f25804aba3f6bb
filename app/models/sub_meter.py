"""SubMeter database model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.main_meter import MainMeter
    from app.models.sub_meter_reading import SubMeterReading
    from app.models.user import User


class SubMeter(Base):
    """Meter attached to a main meter, measuring one tenant's share."""

    __tablename__ = "sub_meters"
    __table_args__ = (UniqueConstraint("main_meter_id", "subid", name="uq_main_meter_subid"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    subid: Mapped[int]  # Sequence number within the main meter, starting at 1
    meter_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    financial_balance: Mapped[float] = mapped_column(default=0.0)
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Foreign keys
    main_meter_id: Mapped[int] = mapped_column(ForeignKey("main_meters.id"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    # Relationships
    main_meter: Mapped["MainMeter"] = relationship(back_populates="sub_meters")
    owner: Mapped["User"] = relationship(back_populates="sub_meters")
    readings: Mapped[list["SubMeterReading"]] = relationship(back_populates="sub_meter")

    @property
    def email(self) -> str:
        """Email of the user the sub meter is billed to."""
        return self.owner.email
