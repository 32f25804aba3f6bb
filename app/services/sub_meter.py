"""SubMeter service for business logic."""

import logging

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models.main_meter import MainMeter
from app.models.sub_meter import SubMeter
from app.schemas.sub_meter import SubMeterCreate
from app.services.auth import get_user_by_email

logger = logging.getLogger(__name__)


def next_sub_meter_subid(db: Session, main_meter_id: int) -> int:
    """Next free sequence number for a sub meter of the main meter."""
    current = (
        db.query(func.coalesce(func.max(SubMeter.subid), 0))
        .filter(SubMeter.main_meter_id == main_meter_id)
        .scalar()
    )
    return current + 1


def create_sub_meter(db: Session, main_meter: MainMeter, meter_data: SubMeterCreate) -> SubMeter:
    """Attach a sub meter, billed to the user registered under the given email."""
    tenant = get_user_by_email(db, meter_data.email)
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User with the given email not found",
        )

    db_meter = SubMeter(
        subid=next_sub_meter_subid(db, main_meter.id),
        meter_id=meter_data.meter_id,
        financial_balance=meter_data.financial_balance,
        main_meter_id=main_meter.id,
        user_id=tenant.id,
    )
    db.add(db_meter)
    db.commit()
    db.refresh(db_meter)
    logger.info("Attached sub meter %s to main meter %s", db_meter.subid, main_meter.id)
    return db_meter


def list_sub_meters(db: Session, main_meter_id: int) -> list[SubMeter]:
    """Get the sub meters of a main meter with their owners loaded."""
    return (
        db.query(SubMeter)
        .options(joinedload(SubMeter.owner))
        .filter(SubMeter.main_meter_id == main_meter_id)
        .order_by(SubMeter.subid)
        .all()
    )


def get_sub_meter(db: Session, main_meter_id: int, subid: int) -> SubMeter:
    """Get a sub meter by its sequence number within the main meter."""
    meter = (
        db.query(SubMeter)
        .filter(SubMeter.main_meter_id == main_meter_id, SubMeter.subid == subid)
        .first()
    )
    if not meter:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sub meter not found",
        )
    return meter
