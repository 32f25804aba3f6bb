"""Shared dependencies for authenticated API routes."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.main_meter import MainMeter
from app.models.sub_meter import SubMeter
from app.models.user import User
from app.services.auth import decode_token, get_user_by_username
from app.services.main_meter import get_owned_main_meter
from app.services.sub_meter import get_sub_meter

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user."""
    token_data = decode_token(token)
    user = get_user_by_username(db, token_data.username or "")
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user


def get_main_meter_for_user(
    main_meter_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MainMeter:
    """Main meter from the path, owned by the current user."""
    return get_owned_main_meter(db, main_meter_id, current_user)


def get_sub_meter_for_user(
    subid: int,
    main_meter: MainMeter = Depends(get_main_meter_for_user),
    db: Session = Depends(get_db),
) -> SubMeter:
    """Sub meter from the path, attached to a main meter of the current user."""
    return get_sub_meter(db, main_meter.id, subid)
