"""Account management."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..core.security import hash_password, verify_password
from ..db.models import AccountStatus, User, UserRole, Verification

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PROFILE_FIELDS = {"fullName": "full_name", "email": "email", "department": "department"}


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "role": user.role.value,
        "status": user.status.value,
        "fullName": user.full_name,
        "email": user.email,
        "department": user.department,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def serialize_verification(verification: Verification, include_user: bool = False) -> Dict[str, Any]:
    data = {
        "id": verification.id,
        "userId": verification.user_id,
        "merchantId": verification.merchant_id,
        "pinNumber": verification.pin_number,
        "imageData": verification.image_data,
        "status": verification.status.value,
        "response": verification.response,
        "createdAt": verification.created_at.isoformat() if verification.created_at else None,
        "updatedAt": verification.updated_at.isoformat() if verification.updated_at else None,
    }
    if include_user and verification.user is not None:
        data["user"] = serialize_user(verification.user)
    return data


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def create_user(
    db: Session,
    username: str,
    password: str,
    role: UserRole = UserRole.USER,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
    department: Optional[str] = None,
) -> User:
    """Create an active account.

    Raises:
        ValidationError: Blank username or short password.
        ConflictError: Username already taken.
    """
    if not username or not username.strip():
        raise ValidationError("Username is required", field="username")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )

    username = username.strip()
    if db.query(User).filter(User.username == username).first() is not None:
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        password=hash_password(password),
        role=role,
        status=AccountStatus.ACTIVE,
        full_name=full_name,
        email=email,
        department=department,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username already exists")
    db.refresh(user)
    logger.info(f"User {user.username} registered with role {user.role.value}")
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    """Check credentials.

    Raises:
        AuthenticationError: Unknown user or wrong password.
        PermissionDeniedError: Account suspended.
    """
    user = db.query(User).filter(User.username == (username or "").strip()).first()
    if user is None or not verify_password(password or "", user.password):
        raise AuthenticationError("Invalid credentials")
    if user.status is AccountStatus.SUSPENDED:
        raise PermissionDeniedError("Account suspended")
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()


def update_user(db: Session, actor: User, user_id: int, changes: Dict[str, Any]) -> User:
    """Update a profile. Admins may edit anyone; others only themselves and never roles."""
    is_admin = actor.role is UserRole.ADMIN
    if not is_admin and actor.id != user_id:
        raise PermissionDeniedError("Cannot modify another user")
    if changes.get("role") and not is_admin:
        raise PermissionDeniedError("Only administrators can change roles")

    user = get_user(db, user_id)

    if changes.get("username") is not None:
        username = changes["username"]
        if not isinstance(username, str) or not username.strip():
            raise ValidationError("Username is required", field="username")
        username = username.strip()
        taken = db.query(User).filter(User.username == username, User.id != user.id).first()
        if taken is not None:
            raise ConflictError("Username already exists")
        user.username = username

    if changes.get("role"):
        try:
            user.role = UserRole(changes["role"])
        except ValueError:
            raise ValidationError("Role must be one of admin, user, guest", field="role")

    for key, attribute in PROFILE_FIELDS.items():
        if changes.get(key):
            setattr(user, attribute, changes[key])

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Username already exists")
    db.refresh(user)
    return user


def set_user_status(db: Session, user_id: int, status: Any) -> User:
    try:
        new_status = AccountStatus(status)
    except ValueError:
        raise ValidationError("Status must be one of pending, active, suspended", field="status")

    user = get_user(db, user_id)
    user.status = new_status
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.username} status set to {new_status.value}")
    return user


def ensure_admin(db: Session, username: str, password: str) -> User:
    """Create the bootstrap administrator unless the username already exists."""
    user = db.query(User).filter(User.username == username.strip()).first()
    if user is not None:
        return user
    return create_user(db, username, password, role=UserRole.ADMIN)
