"""MainMeter database model."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import Energy

if TYPE_CHECKING:
    from app.models.billing import MainMeterBilling
    from app.models.sub_meter import SubMeter
    from app.models.user import User


class MainMeter(Base):
    """Meter billed by the utility provider, owning the sub meters."""

    __tablename__ = "main_meters"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    meter_id: Mapped[str] = mapped_column(String(64))  # Identification printed on the meter
    energy: Mapped[Energy] = mapped_column(String(20))
    address: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    # Foreign keys
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    # Relationships
    owner: Mapped["User"] = relationship(back_populates="main_meters")
    sub_meters: Mapped[list["SubMeter"]] = relationship(
        back_populates="main_meter",
        order_by="SubMeter.subid",
    )
    billings: Mapped[list["MainMeterBilling"]] = relationship(
        back_populates="main_meter",
        order_by="MainMeterBilling.subid",
    )
