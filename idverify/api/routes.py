"""Verification API routes.

This module provides the endpoints for submitting a selfie with a Ghana Card
PIN and for reviewing submitted verifications.
"""

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..capture.session import CaptureSessionStore
from ..core.config import Settings, get_settings
from ..db.database import get_db
from ..db.models import User
from ..models.types import VerificationResponse, VerificationUpdateRequest, VerifyRequest
from ..services.nia_client import NIAClient
from ..services.users import serialize_verification
from ..services.verification import (
    get_verification,
    list_verifications,
    review_verification,
    submit_verification,
)
from .deps import get_capture_store, get_current_user, get_nia_client, require_admin

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/verify")
async def verify(
    request_data: VerifyRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: NIAClient = Depends(get_nia_client),
    settings: Settings = Depends(get_settings),
    store: CaptureSessionStore = Depends(get_capture_store),
) -> JSONResponse:
    """Submit a selfie and Ghana Card PIN for verification.

    Args:
        request_data: Dictionary containing the submission.
            - pinNumber: Ghana Card PIN, e.g. GHA-12345678-1
            - imageData: Base64 selfie, raw or as a data URI

    Returns:
        The verification service's JSON response, unchanged.

    Raises:
        ValidationError: Missing or malformed fields (400), image too small
            (422) or too large (413).
        ExternalServiceError: The verification service failed; its HTTP status
            is mirrored when it answered, 502 otherwise.
    """
    logger.info(f"Verification submitted by user {user.id}")
    outcome = await submit_verification(
        db,
        user,
        request_data.get("pinNumber"),
        request_data.get("imageData"),
        client,
        settings,
    )
    # the submitted selfie ends this user's capture session
    store.discard(user.id)
    return JSONResponse(content=outcome.body)


@router.get("/user/verifications", response_model=List[VerificationResponse])
def my_verifications(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Dict]:
    return [serialize_verification(v) for v in list_verifications(db, user_id=user.id)]


@router.get("/verifications", response_model=List[VerificationResponse])
def all_verifications(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> List[Dict]:
    return [serialize_verification(v, include_user=True) for v in list_verifications(db)]


@router.get("/verifications/{verification_id}", response_model=VerificationResponse)
def verification_detail(
    verification_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Dict:
    return serialize_verification(get_verification(db, verification_id), include_user=True)


@router.patch("/verifications/{verification_id}", response_model=VerificationResponse)
def update_verification(
    verification_id: int,
    request_data: VerificationUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Dict:
    """Manually approve or reject a pending verification."""
    verification = review_verification(
        db, verification_id, request_data.get("status"), request_data.get("response")
    )
    logger.info(f"Admin {admin.username} reviewed verification {verification_id}")
    return serialize_verification(verification, include_user=True)
