"""Shared route dependencies: current user, admin guard, service clients."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..capture.session import CaptureSessionStore
from ..core.config import Settings, get_settings
from ..core.exceptions import AuthenticationError, PermissionDeniedError
from ..core.security import decode_access_token
from ..db.database import get_db
from ..db.models import AccountStatus, User, UserRole
from ..services.nia_client import NIAClient

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    if credentials is None:
        raise AuthenticationError()

    user_id = decode_access_token(credentials.credentials, settings)
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    if user.status is AccountStatus.SUSPENDED:
        raise PermissionDeniedError("Account suspended")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role is not UserRole.ADMIN:
        raise PermissionDeniedError()
    return user


def get_nia_client(settings: Settings = Depends(get_settings)) -> NIAClient:
    return NIAClient(
        url=settings.nia_verify_url,
        merchant_key=settings.merchant_key or "",
        timeout=settings.nia_timeout_seconds,
    )


def get_capture_store(request: Request) -> CaptureSessionStore:
    return request.app.state.capture_store
