"""Sub meter API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_main_meter_for_user, get_sub_meter_for_user
from app.core.database import get_db
from app.models.main_meter import MainMeter
from app.models.sub_meter import SubMeter
from app.schemas.sub_meter import SubMeterCreate, SubMeterResponse
from app.services import sub_meter as sub_meter_service

router = APIRouter(prefix="/main-meters/{main_meter_id}/sub-meters", tags=["sub meters"])


@router.post("", response_model=SubMeterResponse, status_code=status.HTTP_201_CREATED)
def create_sub_meter(
    meter_data: SubMeterCreate,
    main_meter: MainMeter = Depends(get_main_meter_for_user),
    db: Session = Depends(get_db),
) -> SubMeterResponse:
    """Attach a sub meter to the main meter."""
    meter = sub_meter_service.create_sub_meter(db, main_meter, meter_data)
    return SubMeterResponse.model_validate(meter)


@router.get("", response_model=list[SubMeterResponse])
def list_sub_meters(
    main_meter: MainMeter = Depends(get_main_meter_for_user),
    db: Session = Depends(get_db),
) -> list[SubMeterResponse]:
    """List the sub meters of the main meter."""
    meters = sub_meter_service.list_sub_meters(db, main_meter.id)
    return [SubMeterResponse.model_validate(m) for m in meters]


@router.get("/{subid}", response_model=SubMeterResponse)
def get_sub_meter(sub_meter: SubMeter = Depends(get_sub_meter_for_user)) -> SubMeterResponse:
    """Get a sub meter by its number within the main meter."""
    return SubMeterResponse.model_validate(sub_meter)
