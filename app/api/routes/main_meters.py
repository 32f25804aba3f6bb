"""Main meter API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_main_meter_for_user
from app.core.database import get_db
from app.models.main_meter import MainMeter
from app.models.user import User
from app.schemas.main_meter import MainMeterCreate, MainMeterResponse
from app.services import main_meter as main_meter_service

router = APIRouter(prefix="/main-meters", tags=["main meters"])


@router.post("", response_model=MainMeterResponse, status_code=status.HTTP_201_CREATED)
def create_main_meter(
    meter_data: MainMeterCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MainMeterResponse:
    """Create a main meter owned by the current user."""
    meter = main_meter_service.create_main_meter(db, current_user, meter_data)
    return MainMeterResponse.model_validate(meter)


@router.get("", response_model=list[MainMeterResponse])
def list_main_meters(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[MainMeterResponse]:
    """List the main meters of the current user."""
    meters = main_meter_service.list_main_meters(db, current_user)
    return [MainMeterResponse.model_validate(m) for m in meters]


@router.get("/{main_meter_id}", response_model=MainMeterResponse)
def get_main_meter(
    main_meter: MainMeter = Depends(get_main_meter_for_user),
) -> MainMeterResponse:
    """Get a main meter by ID."""
    return MainMeterResponse.model_validate(main_meter)
