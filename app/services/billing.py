"""Billing service: runs the allocation engine and stores its results."""

import logging

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.billing import (
    MainMeterBilling,
    MainMeterBillingPeriod,
    SubMeterBilling,
    SubMeterBillingPeriod,
)
from app.models.main_meter import MainMeter
from app.schemas.billing import (
    BillingCreate,
    MainMeterBillingPeriodResponse,
    MainMeterBillingResponse,
    SubMeterBillingPeriodResponse,
    SubMeterBillingResponse,
)
from app.services.allocation.aggregator import BillingResult
from app.services.allocation.break_points import build_break_point_plan
from app.services.allocation.engine import calculate_billing
from app.services.allocation.exceptions import BillingInputError, NoSubMeterError
from app.services.allocation.models import BillingPeriod
from app.services.reading import get_sub_meter_readings
from app.services.sub_meter import list_sub_meters

logger = logging.getLogger(__name__)


def to_billing_periods(billing_data: BillingCreate) -> list[BillingPeriod]:
    """Convert submitted billing periods into engine input."""
    return [
        BillingPeriod(
            begin_date=period.begin_date,
            end_date=period.end_date,
            begin_reading_value=period.begin_reading_value,
            end_reading_value=period.end_reading_value,
            consumed_energy_price=period.consumed_energy_price,
            service_price=period.service_price,
        )
        for period in billing_data.billing_periods
    ]


def calculate(db: Session, main_meter: MainMeter, billing_data: BillingCreate) -> BillingResult:
    """
    Calculate a billing of the main meter without storing it.

    Raises:
        HTTPException: 422 for inconsistent billing periods, 400 when the main
            meter has no sub meters

    """
    periods = to_billing_periods(billing_data)
    try:
        plan = build_break_point_plan(periods, billing_data.max_day_diff)
        raw_readings = get_sub_meter_readings(db, main_meter.id, plan.min_time, plan.max_time)
        result = calculate_billing(periods, plan, raw_readings)
    except BillingInputError as e:
        raise HTTPException(
            status_code=422,
            detail=e.to_detail(),
        ) from e
    except NoSubMeterError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    logger.info(
        "Calculated billing of main meter %s from %s to %s for %d sub meters",
        main_meter.id,
        result.billing.begin_date,
        result.billing.end_date,
        len(result.sub_meter_billings),
    )
    return result


def preview_billing(
    db: Session,
    main_meter: MainMeter,
    billing_data: BillingCreate,
) -> MainMeterBillingResponse:
    """Calculate a billing and render it like a stored one."""
    result = calculate(db, main_meter, billing_data)
    sub_meters = {sub_meter.id: sub_meter for sub_meter in list_sub_meters(db, main_meter.id)}

    periods = [
        MainMeterBillingPeriodResponse(
            subid=index,
            begin_date=period.begin_date,
            end_date=period.end_date,
            begin_reading_value=period.begin_reading_value,
            end_reading_value=period.end_reading_value,
            energy_consumption=period.energy_consumption,
            consumed_energy_price=period.consumed_energy_price,
            service_price=period.service_price,
            advance_price=period.advance_price,
            total_price=period.total_price,
        )
        for index, period in enumerate(result.periods, start=1)
    ]

    sub_meter_billings = []
    for record in result.sub_meter_billings:
        sub_meter = sub_meters[record.sub_meter_id]
        sub_periods = [
            SubMeterBillingPeriodResponse(
                begin_date=period.begin_date,
                end_date=period.end_date,
                energy_consumption=share.energy_consumption,
                consumed_energy_price=share.consumed_energy_price,
                service_price=share.service_price,
                advance_price=share.advance_price,
                total_price=share.total_price,
            )
            for period in result.periods
            if (share := period.sub_meter_periods.get(record.sub_meter_id)) is not None
        ]
        sub_meter_billings.append(
            SubMeterBillingResponse(
                sub_meter_id=sub_meter.id,
                sub_meter_subid=sub_meter.subid,
                meter_id=sub_meter.meter_id,
                email=sub_meter.email,
                energy_consumption=record.energy_consumption,
                consumed_energy_price=record.consumed_energy_price,
                service_price=record.service_price,
                advance_price=record.advance_price,
                total_price=record.total_price,
                periods=sub_periods,
            )
        )

    billing = result.billing
    return MainMeterBillingResponse(
        main_meter_id=main_meter.id,
        max_day_diff=billing.max_day_diff,
        begin_date=billing.begin_date,
        end_date=billing.end_date,
        energy_consumption=billing.energy_consumption,
        consumed_energy_price=billing.consumed_energy_price,
        service_price=billing.service_price,
        advance_price=billing.advance_price,
        total_price=billing.total_price,
        periods=periods,
        sub_meter_billings=sub_meter_billings,
        break_points=[break_point.actual for break_point in result.break_points],
    )


def _next_main_billing_subid(db: Session, main_meter_id: int) -> int:
    current = (
        db.query(func.coalesce(func.max(MainMeterBilling.subid), 0))
        .filter(MainMeterBilling.main_meter_id == main_meter_id)
        .scalar()
    )
    return current + 1


def _next_sub_billing_subid(db: Session, sub_meter_id: int) -> int:
    current = (
        db.query(func.coalesce(func.max(SubMeterBilling.subid), 0))
        .filter(SubMeterBilling.sub_meter_id == sub_meter_id)
        .scalar()
    )
    return current + 1


def save_billing(db: Session, main_meter: MainMeter, result: BillingResult) -> MainMeterBilling:
    """
    Store a calculated billing in a single transaction.

    Raises:
        HTTPException: 500 if the database rejects any of the rows

    """
    billing = result.billing
    try:
        db_billing = MainMeterBilling(
            main_meter_id=main_meter.id,
            subid=_next_main_billing_subid(db, main_meter.id),
            max_day_diff=billing.max_day_diff,
            begin_date=billing.begin_date,
            end_date=billing.end_date,
            energy_consumption=billing.energy_consumption,
            consumed_energy_price=billing.consumed_energy_price,
            service_price=billing.service_price,
            advance_price=billing.advance_price,
            total_price=billing.total_price,
        )
        db.add(db_billing)
        db.flush()

        db_sub_billings: dict[int, SubMeterBilling] = {}
        for record in result.sub_meter_billings:
            db_sub_billing = SubMeterBilling(
                sub_meter_id=record.sub_meter_id,
                main_billing_id=db_billing.id,
                subid=_next_sub_billing_subid(db, record.sub_meter_id),
                energy_consumption=record.energy_consumption,
                consumed_energy_price=record.consumed_energy_price,
                service_price=record.service_price,
                advance_price=record.advance_price,
                total_price=record.total_price,
            )
            db.add(db_sub_billing)
            db.flush()
            db_sub_billings[record.sub_meter_id] = db_sub_billing

        for index, period in enumerate(result.periods, start=1):
            db_period = MainMeterBillingPeriod(
                main_billing_id=db_billing.id,
                subid=index,
                begin_date=period.begin_date,
                end_date=period.end_date,
                begin_reading_value=period.begin_reading_value,
                end_reading_value=period.end_reading_value,
                energy_consumption=period.energy_consumption,
                consumed_energy_price=period.consumed_energy_price,
                service_price=period.service_price,
                advance_price=period.advance_price,
                total_price=period.total_price,
            )
            db.add(db_period)
            db.flush()

            for sub_meter_id, share in sorted(period.sub_meter_periods.items()):
                db.add(
                    SubMeterBillingPeriod(
                        sub_billing_id=db_sub_billings[sub_meter_id].id,
                        main_billing_period_id=db_period.id,
                        energy_consumption=share.energy_consumption,
                        consumed_energy_price=share.consumed_energy_price,
                        service_price=share.service_price,
                        advance_price=share.advance_price,
                        total_price=share.total_price,
                    )
                )
            db.flush()

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Could not save billing of main meter %s", main_meter.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not save the billing",
        ) from e

    db.refresh(db_billing)
    logger.info("Saved billing %s of main meter %s", db_billing.subid, main_meter.id)
    return db_billing


def create_billing(
    db: Session,
    main_meter: MainMeter,
    billing_data: BillingCreate,
) -> MainMeterBilling:
    """Calculate a billing of the main meter and store it."""
    result = calculate(db, main_meter, billing_data)
    return save_billing(db, main_meter, result)


def list_billings(db: Session, main_meter: MainMeter) -> list[MainMeterBilling]:
    """Get the stored billings of a main meter, oldest first."""
    return (
        db.query(MainMeterBilling)
        .filter(MainMeterBilling.main_meter_id == main_meter.id)
        .order_by(MainMeterBilling.subid)
        .all()
    )


def get_billing(db: Session, main_meter: MainMeter, subid: int) -> MainMeterBilling:
    """Get a stored billing by its sequence number within the main meter."""
    billing = (
        db.query(MainMeterBilling)
        .filter(
            MainMeterBilling.main_meter_id == main_meter.id,
            MainMeterBilling.subid == subid,
        )
        .first()
    )
    if not billing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Billing not found",
        )
    return billing
