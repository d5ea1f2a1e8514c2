import pytest

from idverify.db.models import VerificationStatus
from idverify.services.verification import (
    ResponseCodeResult,
    UnknownResult,
    VerifiedResult,
    parse_collaborator_response,
    status_from_response,
)


@pytest.mark.parametrize(
    "body, status",
    [
        ({"responseCode": "00"}, VerificationStatus.APPROVED),
        ({"responseCode": "01"}, VerificationStatus.REJECTED),
        ({"responseCode": "02"}, VerificationStatus.PENDING),
        ({"responseCode": 0}, VerificationStatus.APPROVED),
        ({"responseCode": 1}, VerificationStatus.REJECTED),
        ({"data": {"verified": True}}, VerificationStatus.APPROVED),
        ({"data": {"verified": False}}, VerificationStatus.REJECTED),
        ({"data": {"verified": "true"}}, VerificationStatus.APPROVED),
        ({"verified": False}, VerificationStatus.REJECTED),
        ({"message": "queued"}, VerificationStatus.PENDING),
        ([], VerificationStatus.PENDING),
        (None, VerificationStatus.PENDING),
    ],
)
def test_status_from_response(body, status):
    assert status_from_response(body) is status


def test_response_code_takes_precedence():
    body = {"responseCode": "01", "data": {"verified": True}}
    assert parse_collaborator_response(body) == ResponseCodeResult(code="01")


def test_verified_shape_keeps_person():
    body = {"data": {"verified": True, "person": {"forenames": "Ama"}}}
    result = parse_collaborator_response(body)
    assert isinstance(result, VerifiedResult)
    assert result.person == {"forenames": "Ama"}


def test_unrecognised_values_fall_through():
    assert parse_collaborator_response({"responseCode": True}) == UnknownResult()
    assert parse_collaborator_response({"data": {"verified": "maybe"}}) == UnknownResult()
