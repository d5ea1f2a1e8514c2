"""User administration routes."""

from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db.database import get_db
from ..db.models import User
from ..models.types import UserResponse, UserStatusRequest, UserUpdateRequest
from ..services.users import list_users, serialize_user, set_user_status, update_user
from .deps import get_current_user, require_admin

router = APIRouter()


@router.get("/users", response_model=List[UserResponse])
def users(admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> List[Dict]:
    return [serialize_user(u) for u in list_users(db)]


@router.patch("/users/{user_id}", response_model=UserResponse)
def edit_user(
    user_id: int,
    request_data: UserUpdateRequest,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict:
    return serialize_user(update_user(db, actor, user_id, dict(request_data)))


@router.patch("/users/{user_id}/status", response_model=UserResponse)
def edit_user_status(
    user_id: int,
    request_data: UserStatusRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Dict:
    return serialize_user(set_user_status(db, user_id, request_data["status"]))
