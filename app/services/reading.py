"""SubMeterReading service for business logic."""

import logging
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.sub_meter import SubMeter
from app.models.sub_meter_reading import SubMeterReading
from app.schemas.reading import ReadingCreate
from app.services.allocation.models import RawReading

logger = logging.getLogger(__name__)


def create_reading(
    db: Session,
    sub_meter: SubMeter,
    reading_data: ReadingCreate,
) -> SubMeterReading:
    """Record a sub meter reading; there can be only one per day."""
    existing = (
        db.query(SubMeterReading)
        .filter(
            SubMeterReading.sub_meter_id == sub_meter.id,
            SubMeterReading.reading_date == reading_data.reading_date,
        )
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reading for the given date already exists.",
        )

    db_reading = SubMeterReading(
        sub_meter_id=sub_meter.id,
        reading_value=reading_data.reading_value,
        reading_date=reading_data.reading_date,
    )
    db.add(db_reading)
    db.commit()
    db.refresh(db_reading)
    return db_reading


def list_readings(db: Session, sub_meter: SubMeter) -> list[SubMeterReading]:
    """Get all readings of a sub meter, latest first."""
    return (
        db.query(SubMeterReading)
        .filter(SubMeterReading.sub_meter_id == sub_meter.id)
        .order_by(SubMeterReading.reading_date.desc())
        .all()
    )


def _to_raw(reading: SubMeterReading) -> RawReading:
    return RawReading(reading.sub_meter_id, reading.reading_value, reading.reading_date)


def get_sub_meter_readings(
    db: Session,
    main_meter_id: int,
    date_min: date,
    date_max: date,
) -> list[RawReading]:
    """
    Get the readings needed to bill the sub meters of a main meter.

    For every sub meter this is the first reading after ``date_max``, all
    readings between ``date_min`` and ``date_max`` and the last reading before
    ``date_min``. A sub meter without a reading before ``date_min`` gets a
    sentinel row with no date instead.

    Returns:
        Rows grouped by sub meter, each group latest first with the sentinel last

    """
    sub_meter_ids = [
        sub_meter_id
        for (sub_meter_id,) in db.query(SubMeter.id)
        .filter(SubMeter.main_meter_id == main_meter_id)
        .order_by(SubMeter.id)
        .all()
    ]

    rows: list[RawReading] = []
    for sub_meter_id in sub_meter_ids:
        readings = db.query(SubMeterReading).filter(SubMeterReading.sub_meter_id == sub_meter_id)

        after = (
            readings.filter(SubMeterReading.reading_date > date_max)
            .order_by(SubMeterReading.reading_date.asc())
            .first()
        )
        if after:
            rows.append(_to_raw(after))

        inside = (
            readings.filter(
                SubMeterReading.reading_date >= date_min,
                SubMeterReading.reading_date <= date_max,
            )
            .order_by(SubMeterReading.reading_date.desc())
            .all()
        )
        rows.extend(_to_raw(reading) for reading in inside)

        before = (
            readings.filter(SubMeterReading.reading_date < date_min)
            .order_by(SubMeterReading.reading_date.desc())
            .first()
        )
        if before:
            rows.append(_to_raw(before))
        else:
            rows.append(RawReading(sub_meter_id, None, None))

    logger.debug(
        "Fetched %d reading rows for main meter %s between %s and %s",
        len(rows),
        main_meter_id,
        date_min,
        date_max,
    )
    return rows
