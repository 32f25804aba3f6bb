"""Sub meter reading API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_sub_meter_for_user
from app.core.database import get_db
from app.models.sub_meter import SubMeter
from app.schemas.reading import ReadingCreate, ReadingResponse
from app.services import reading as reading_service

router = APIRouter(
    prefix="/main-meters/{main_meter_id}/sub-meters/{subid}/readings",
    tags=["readings"],
)


@router.post("", response_model=ReadingResponse, status_code=status.HTTP_201_CREATED)
def create_reading(
    reading_data: ReadingCreate,
    sub_meter: SubMeter = Depends(get_sub_meter_for_user),
    db: Session = Depends(get_db),
) -> ReadingResponse:
    """Record a reading of the sub meter."""
    reading = reading_service.create_reading(db, sub_meter, reading_data)
    return ReadingResponse.model_validate(reading)


@router.get("", response_model=list[ReadingResponse])
def list_readings(
    sub_meter: SubMeter = Depends(get_sub_meter_for_user),
    db: Session = Depends(get_db),
) -> list[ReadingResponse]:
    """List the readings of the sub meter, latest first."""
    readings = reading_service.list_readings(db, sub_meter)
    return [ReadingResponse.model_validate(r) for r in readings]
