"""MainMeter service for business logic."""

import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.main_meter import MainMeter
from app.models.user import User
from app.schemas.main_meter import MainMeterCreate

logger = logging.getLogger(__name__)


def create_main_meter(db: Session, owner: User, meter_data: MainMeterCreate) -> MainMeter:
    """Create a main meter owned by ``owner``."""
    db_meter = MainMeter(
        meter_id=meter_data.meter_id,
        energy=meter_data.energy,
        address=meter_data.address,
        user_id=owner.id,
    )
    db.add(db_meter)
    db.commit()
    db.refresh(db_meter)
    logger.info("Created main meter %s for user %s", db_meter.id, owner.username)
    return db_meter


def get_main_meter(db: Session, main_meter_id: int) -> MainMeter:
    """Get a main meter by ID."""
    meter = db.query(MainMeter).filter(MainMeter.id == main_meter_id).first()
    if not meter:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Main meter not found",
        )
    return meter


def get_owned_main_meter(db: Session, main_meter_id: int, user: User) -> MainMeter:
    """Get a main meter, refusing access to anyone but its owner."""
    meter = get_main_meter(db, main_meter_id)
    if meter.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return meter


def list_main_meters(db: Session, owner: User) -> list[MainMeter]:
    """Get all main meters of a user."""
    return (
        db.query(MainMeter)
        .filter(MainMeter.user_id == owner.id)
        .order_by(MainMeter.id)
        .all()
    )
