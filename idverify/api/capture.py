"""Guided selfie capture routes.

The browser streams preview frames; each frame runs one analysis cycle of the
caller's capture session and the response carries the resulting guidance. A
capture is only accepted while the gate is open.
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends, Header

from ..capture.normalizer import (
    CropStrategy,
    NormalizationError,
    NormalizationPolicy,
    policy_for_user_agent,
)
from ..capture.session import CaptureNotAllowedError, CaptureSessionStore
from ..core.exceptions import AppException, ValidationError
from ..db.models import User
from ..models.types import CaptureRequest, CaptureResponse, FrameRequest
from ..utils.image import ImageProcessingError, decode_base64_image, encode_base64
from .deps import get_capture_store, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/capture")


def _policy(request_data: Optional[CaptureRequest], user_agent: Optional[str]) -> NormalizationPolicy:
    base = policy_for_user_agent(user_agent)
    strategy = (request_data or {}).get("cropStrategy")
    if not strategy:
        return base
    try:
        crop_strategy = CropStrategy(strategy)
    except ValueError:
        raise ValidationError(
            "cropStrategy must be 'letterbox' or 'face_crop'", field="cropStrategy"
        )
    return NormalizationPolicy(crop_strategy=crop_strategy)


@router.post("/frames")
def push_frame(
    request_data: FrameRequest,
    user: User = Depends(get_current_user),
    store: CaptureSessionStore = Depends(get_capture_store),
) -> Dict:
    """Analyze one preview frame and return the updated capture state.

    Args:
        request_data: Dictionary containing the frame.
            - frame: Base64 image, raw or as a data URI

    Returns:
        Faces with their heuristics, liveness, lighting and the gate decision.

    Raises:
        ValidationError: If the frame cannot be decoded.
    """
    try:
        frame = decode_base64_image(request_data["frame"])
    except ImageProcessingError as e:
        raise ValidationError(str(e), field="frame", code="INVALID_IMAGE")

    session = store.get(user.id)
    session.push_frame(frame)
    return session.snapshot()


@router.get("/state")
def capture_state(
    user: User = Depends(get_current_user),
    store: CaptureSessionStore = Depends(get_capture_store),
) -> Dict:
    return store.get(user.id).snapshot()


@router.post("", response_model=CaptureResponse)
def capture(
    request_data: Optional[CaptureRequest] = Body(default=None),
    user_agent: Optional[str] = Header(default=None),
    user: User = Depends(get_current_user),
    store: CaptureSessionStore = Depends(get_capture_store),
) -> Dict:
    """Capture and normalize the latest frame.

    Raises:
        AppException: 409 while the gate is closed, 422 if normalization fails.
    """
    policy = _policy(request_data, user_agent)
    session = store.get(user.id)
    try:
        image = session.capture(policy)
    except CaptureNotAllowedError as e:
        raise AppException(
            e.reason.message,
            code="CAPTURE_NOT_ALLOWED",
            status_code=409,
            details={"reason": e.reason.value, "label": e.reason.label},
        )
    except NormalizationError as e:
        logger.warning(f"Normalization failed for user {user.id}: {str(e)}")
        raise AppException(str(e), code="NORMALIZATION_FAILED", status_code=422)

    return {
        "imageData": f"data:{image.mime_type};base64,{encode_base64(image.data)}",
        "mimeType": image.mime_type,
        "width": image.width,
        "height": image.height,
        "byteSize": image.byte_size,
        "quality": image.quality,
    }


@router.delete("")
def retake(
    user: User = Depends(get_current_user),
    store: CaptureSessionStore = Depends(get_capture_store),
) -> Dict:
    """Drop the captured image and restart liveness confirmation."""
    session = store.get(user.id)
    session.retake()
    return session.snapshot()
