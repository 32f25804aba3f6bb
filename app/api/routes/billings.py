"""Billing API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_main_meter_for_user
from app.core.database import get_db
from app.models.main_meter import MainMeter
from app.schemas.billing import BillingCreate, MainMeterBillingResponse, MainMeterBillingSummary
from app.services import billing as billing_service

router = APIRouter(prefix="/main-meters/{main_meter_id}/billings", tags=["billings"])


@router.post("/calculate", response_model=MainMeterBillingResponse)
def calculate_billing(
    billing_data: BillingCreate,
    main_meter: MainMeter = Depends(get_main_meter_for_user),
    db: Session = Depends(get_db),
) -> MainMeterBillingResponse:
    """Calculate a billing without storing it."""
    return billing_service.preview_billing(db, main_meter, billing_data)


@router.post("", response_model=MainMeterBillingResponse, status_code=status.HTTP_201_CREATED)
def create_billing(
    billing_data: BillingCreate,
    main_meter: MainMeter = Depends(get_main_meter_for_user),
    db: Session = Depends(get_db),
) -> MainMeterBillingResponse:
    """Calculate a billing and store it."""
    billing = billing_service.create_billing(db, main_meter, billing_data)
    return MainMeterBillingResponse.model_validate(billing)


@router.get("", response_model=list[MainMeterBillingSummary])
def list_billings(
    main_meter: MainMeter = Depends(get_main_meter_for_user),
    db: Session = Depends(get_db),
) -> list[MainMeterBillingSummary]:
    """List the stored billings of the main meter."""
    billings = billing_service.list_billings(db, main_meter)
    return [MainMeterBillingSummary.model_validate(b) for b in billings]


@router.get("/{subid}", response_model=MainMeterBillingResponse)
def get_billing(
    subid: int,
    main_meter: MainMeter = Depends(get_main_meter_for_user),
    db: Session = Depends(get_db),
) -> MainMeterBillingResponse:
    """Get a stored billing with its periods and sub meter shares."""
    billing = billing_service.get_billing(db, main_meter, subid)
    return MainMeterBillingResponse.model_validate(billing)
