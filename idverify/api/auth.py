"""Registration, login and current-user routes."""

import logging
from typing import Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.security import create_access_token
from ..db.database import get_db
from ..db.models import User
from ..models.types import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from ..services.users import authenticate, create_user, serialize_user
from .deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_response(user: User, settings: Settings) -> Dict:
    return {
        "accessToken": create_access_token(user.id, settings, extra={"role": user.role.value}),
        "tokenType": "bearer",
        "user": serialize_user(user),
    }


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    request_data: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Dict:
    # New registrations always get the plain user role
    user = create_user(
        db,
        request_data["username"],
        request_data["password"],
        full_name=request_data.get("fullName"),
        email=request_data.get("email"),
        department=request_data.get("department"),
    )
    return _token_response(user, settings)


@router.post("/login", response_model=TokenResponse)
def login(
    request_data: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Dict:
    user = authenticate(db, request_data["username"], request_data["password"])
    logger.info(f"User {user.username} logged in")
    return _token_response(user, settings)


@router.get("/user", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)) -> Dict:
    return serialize_user(user)
