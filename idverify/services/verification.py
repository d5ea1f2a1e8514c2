"""Verification submission and review.

Submission validates the payload, records the attempt as pending, forwards it
to the external service and resolves the status from whatever response shape
comes back. Review lets an administrator settle a pending record by hand.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.exceptions import (
    AppException,
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    ImageTooSmallError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from ..db.models import User, Verification, VerificationStatus
from ..utils.image import ImageDecodingError, decode_base64_bytes, strip_data_uri
from .nia_client import NIAClient, NIAUnavailableError
from .pin_number import validate_pin

logger = logging.getLogger(__name__)


# === Collaborator response shapes ===

@dataclass(frozen=True)
class ResponseCodeResult:
    """``{"responseCode": "00"}`` style answer."""
    code: str


@dataclass(frozen=True)
class VerifiedResult:
    """``{"data": {"verified": true, "person": {...}}}`` style answer."""
    verified: bool
    person: Optional[dict] = None


@dataclass(frozen=True)
class UnknownResult:
    pass


CollaboratorResult = Union[ResponseCodeResult, VerifiedResult, UnknownResult]

RESPONSE_CODE_STATUS = {
    "00": VerificationStatus.APPROVED,
    "01": VerificationStatus.REJECTED,
}

_TRUE_VALUES = {"true", "yes", "1", "y", "verified"}
_FALSE_VALUES = {"false", "no", "0", "n", "unverified"}


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    return None


def _response_code_shape(body: Any) -> Optional[ResponseCodeResult]:
    if not isinstance(body, dict) or "responseCode" not in body:
        return None
    code = body["responseCode"]
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return ResponseCodeResult(code=f"{code:02d}")
    if isinstance(code, str) and code.strip():
        return ResponseCodeResult(code=code.strip())
    return None


def _verified_shape(body: Any) -> Optional[VerifiedResult]:
    if not isinstance(body, dict):
        return None
    data = body.get("data")
    if isinstance(data, dict) and "verified" in data:
        verified = _as_bool(data["verified"])
        if verified is not None:
            person = data.get("person")
            return VerifiedResult(verified=verified, person=person if isinstance(person, dict) else None)
    if "verified" in body:
        verified = _as_bool(body["verified"])
        if verified is not None:
            return VerifiedResult(verified=verified)
    return None


SHAPE_GUARDS: Sequence[Callable[[Any], Optional[CollaboratorResult]]] = (
    _response_code_shape,
    _verified_shape,
)


def parse_collaborator_response(body: Any) -> CollaboratorResult:
    """Classify a response body by trying each shape guard in order."""
    for guard in SHAPE_GUARDS:
        result = guard(body)
        if result is not None:
            return result
    return UnknownResult()


def derive_status(result: CollaboratorResult) -> VerificationStatus:
    if isinstance(result, ResponseCodeResult):
        return RESPONSE_CODE_STATUS.get(result.code, VerificationStatus.PENDING)
    if isinstance(result, VerifiedResult):
        return VerificationStatus.APPROVED if result.verified else VerificationStatus.REJECTED
    return VerificationStatus.PENDING


def status_from_response(body: Any) -> VerificationStatus:
    return derive_status(parse_collaborator_response(body))


# === Submission ===

@dataclass
class SubmissionOutcome:
    verification: Verification
    body: Any


def validate_submission(pin_number: Any, image_data: Any, settings: Settings) -> str:
    """Check a submission payload and return the bare base64 image.

    Raises:
        ValidationError: Missing fields (400), bad PIN (400), bad base64 (400).
        ImageTooSmallError: Image shorter than the plausible minimum (422).
        PayloadTooLargeError: Decoded image above the byte ceiling (413).
    """
    if not isinstance(pin_number, str) or not pin_number.strip():
        raise ValidationError("Ghana Card Number is required", field="pinNumber")
    if not isinstance(image_data, str) or not image_data.strip():
        raise ValidationError("Image data is required", field="imageData")

    validate_pin(pin_number, strict=settings.strict_pin_validation)

    image_base64 = strip_data_uri(image_data)
    if len(image_base64) < settings.min_image_base64_length:
        raise ImageTooSmallError(len(image_base64), settings.min_image_base64_length)

    try:
        image_bytes = decode_base64_bytes(image_base64)
    except ImageDecodingError as e:
        raise ValidationError(str(e), field="imageData", code="INVALID_IMAGE")

    if len(image_bytes) > settings.max_image_bytes:
        raise PayloadTooLargeError(len(image_bytes), settings.max_image_bytes)

    return image_base64


def _commit(db: Session, operation: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during {operation}: {str(e)}", exc_info=True)
        raise DatabaseError(operation)


async def submit_verification(
    db: Session,
    user: User,
    pin_number: Any,
    image_data: Any,
    client: NIAClient,
    settings: Settings,
) -> SubmissionOutcome:
    """Validate, record and forward one verification attempt.

    Exactly one record is written per attempt that passes validation. A failed
    call to the external service leaves that record ``pending`` for manual
    review and is re-raised as ``ExternalServiceError``.

    Raises:
        ValidationError: Payload problems; nothing is recorded or sent.
        ExternalServiceError: The service failed, answered non-2xx, or answered
            with something other than JSON.
        DatabaseError: The record could not be stored.
    """
    image_base64 = validate_submission(pin_number, image_data, settings)
    if not client.merchant_key:
        raise AppException(
            "Verification service is not configured",
            code="CONFIGURATION_ERROR",
            status_code=500,
        )

    verification = Verification(
        user_id=user.id,
        merchant_id=settings.merchant_id,
        pin_number=pin_number,
        image_data=image_base64,
        status=VerificationStatus.PENDING,
        response=None,
    )
    db.add(verification)
    _commit(db, "create verification")
    db.refresh(verification)
    logger.info(f"Verification {verification.id} created for user {user.id}")

    try:
        response = await client.verify(pin_number, image_base64)
    except NIAUnavailableError as e:
        verification.response = json.dumps({"error": str(e)})
        _commit(db, "record service failure")
        logger.warning(f"Verification {verification.id} left pending: {str(e)}")
        raise ExternalServiceError(details={"error": str(e), "verificationId": verification.id})

    verification.response = response.text
    body = response.json()

    if not response.ok:
        _commit(db, "record service error")
        logger.warning(
            f"Verification {verification.id} left pending: service answered {response.status_code}"
        )
        raise ExternalServiceError(
            status_code=response.status_code,
            details={
                "status": response.status_code,
                "response": body if body is not None else response.text,
                "verificationId": verification.id,
            },
        )

    if body is None:
        _commit(db, "record malformed response")
        logger.warning(f"Verification {verification.id} left pending: response is not JSON")
        raise ExternalServiceError(
            details={"error": "Malformed response from verification service",
                     "verificationId": verification.id},
        )

    verification.status = status_from_response(body)
    _commit(db, "update verification status")
    logger.info(f"Verification {verification.id} resolved as {verification.status.value}")
    return SubmissionOutcome(verification=verification, body=body)


# === Queries and review ===

def list_verifications(db: Session, user_id: Optional[int] = None) -> List[Verification]:
    query = db.query(Verification)
    if user_id is not None:
        query = query.filter(Verification.user_id == user_id)
    return query.order_by(Verification.created_at.desc(), Verification.id.desc()).all()


def get_verification(db: Session, verification_id: int) -> Verification:
    verification = db.get(Verification, verification_id)
    if verification is None:
        raise NotFoundError("Verification", verification_id)
    return verification


def review_verification(
    db: Session, verification_id: int, status: Any, note: Optional[str] = None
) -> Verification:
    """Settle a pending verification by hand.

    Raises:
        ValidationError: ``status`` is not approved or rejected.
        NotFoundError: No such verification.
        ConflictError: The verification is no longer pending.
    """
    try:
        new_status = VerificationStatus(status)
    except ValueError:
        new_status = None
    if new_status not in (VerificationStatus.APPROVED, VerificationStatus.REJECTED):
        raise ValidationError("Status must be 'approved' or 'rejected'", field="status")

    verification = get_verification(db, verification_id)
    if verification.status is not VerificationStatus.PENDING:
        raise ConflictError(
            f"Verification is already {verification.status.value}",
            details={"status": verification.status.value},
        )

    verification.status = new_status
    if note is not None:
        verification.response = note
    _commit(db, "review verification")
    logger.info(f"Verification {verification.id} manually set to {new_status.value}")
    return verification
