import httpx
import pytest

from idverify.api.deps import get_nia_client
from idverify.services.nia_client import NIAClient

from .conftest import VALID_PIN, auth_header


def _submit(client, headers, image_data, pin=VALID_PIN):
    return client.post(
        "/api/verify", json={"pinNumber": pin, "imageData": image_data}, headers=headers
    )


def _my_verifications(client, headers):
    response = client.get("/api/user/verifications", headers=headers)
    assert response.status_code == 200
    return response.json()


@pytest.mark.parametrize(
    "body, status",
    [
        ({"responseCode": "00", "message": "Match"}, "approved"),
        ({"responseCode": "01", "message": "No match"}, "rejected"),
        ({"data": {"verified": True, "person": {"surname": "Mensah"}}}, "approved"),
        ({"data": {"verified": False}}, "rejected"),
        ({"responseCode": "05"}, "pending"),
        ({"message": "queued"}, "pending"),
    ],
)
def test_status_derived_from_response(client, user_headers, image_data, nia, body, status):
    nia.respond(body)
    response = _submit(client, user_headers, image_data)

    assert response.status_code == 200
    assert response.json() == body
    records = _my_verifications(client, user_headers)
    assert len(records) == 1
    assert records[0]["status"] == status
    assert records[0]["pinNumber"] == VALID_PIN


def test_request_sent_to_service(client, user_headers, image_data, nia, settings):
    _submit(client, user_headers, image_data)
    assert len(nia.requests) == 1
    sent = nia.requests[0]
    assert sent["merchantKey"] == settings.merchant_key
    assert sent["pinNumber"] == VALID_PIN
    # data-URI prefix stripped
    assert sent["image"] == image_data.split(",", 1)[1]

    record = _my_verifications(client, user_headers)[0]
    assert record["imageData"] == sent["image"]
    assert record["merchantId"] == settings.merchant_id


def test_requires_authentication(client, image_data, nia):
    response = client.post("/api/verify", json={"pinNumber": VALID_PIN, "imageData": image_data})
    assert response.status_code == 401
    assert nia.requests == []


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"imageData": "abc"}, "pinNumber"),
        ({"pinNumber": VALID_PIN}, "imageData"),
        ({"pinNumber": "  ", "imageData": "abc"}, "pinNumber"),
    ],
)
def test_missing_fields(client, user_headers, nia, payload, field):
    response = client.post("/api/verify", json=payload, headers=user_headers)
    assert response.status_code == 400
    assert response.json()["details"] == {"field": field}
    assert nia.requests == []


def test_malformed_pin(client, user_headers, image_data, nia):
    response = _submit(client, user_headers, image_data, pin="12345678")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PIN"
    assert nia.requests == []


def test_short_image_rejected_before_any_call(client, user_headers, nia):
    response = _submit(client, user_headers, "data:image/jpeg;base64,AAAA")
    assert response.status_code == 422
    assert response.json()["code"] == "IMAGE_TOO_SMALL"
    assert nia.requests == []
    assert _my_verifications(client, user_headers) == []


def test_invalid_base64_rejected(client, user_headers, nia):
    response = _submit(client, user_headers, "!" * 2000)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_IMAGE"
    assert nia.requests == []


def test_oversized_image_rejected(client, user_headers, nia, settings):
    settings.max_image_bytes = 1000
    response = _submit(client, user_headers, "QUFB" * 500)
    assert response.status_code == 413
    assert nia.requests == []


def test_service_error_status_is_mirrored(client, user_headers, image_data, nia):
    nia.respond({"message": "Invalid merchant"}, status_code=403)
    response = _submit(client, user_headers, image_data)

    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "Verification failed"
    assert body["details"]["response"] == {"message": "Invalid merchant"}

    records = _my_verifications(client, user_headers)
    assert len(records) == 1
    assert records[0]["status"] == "pending"
    assert body["details"]["verificationId"] == records[0]["id"]


def test_unreachable_service_is_bad_gateway(client, user_headers, image_data, nia):
    nia.fail(httpx.ConnectError("connection refused"))
    response = _submit(client, user_headers, image_data)

    assert response.status_code == 502
    assert "unreachable" in response.json()["details"]["error"]
    assert _my_verifications(client, user_headers)[0]["status"] == "pending"


def test_timeout_is_bad_gateway(client, user_headers, image_data, nia):
    nia.fail(httpx.ReadTimeout("too slow"))
    response = _submit(client, user_headers, image_data)
    assert response.status_code == 502
    assert "timed out" in response.json()["details"]["error"]


def test_non_json_success_is_bad_gateway(client, user_headers, image_data, nia):
    nia.respond(raw="<html>gateway</html>")
    response = _submit(client, user_headers, image_data)
    assert response.status_code == 502
    record = _my_verifications(client, user_headers)[0]
    assert record["status"] == "pending"
    assert record["response"] == "<html>gateway</html>"


def test_missing_merchant_key(client, user_headers, image_data, nia, settings):
    client.app.dependency_overrides[get_nia_client] = lambda: NIAClient(
        url=settings.nia_verify_url, merchant_key="", transport=httpx.MockTransport(nia.handler)
    )
    response = _submit(client, user_headers, image_data)
    assert response.status_code == 500
    assert response.json()["code"] == "CONFIGURATION_ERROR"
    assert nia.requests == []


def test_lenient_pin_mode(client, user_headers, image_data, settings):
    settings.strict_pin_validation = False
    response = _submit(client, user_headers, image_data, pin="P0012345")
    assert response.status_code == 200


def test_history_is_newest_first_and_per_user(client, register, image_data, nia):
    ama = auth_header(register("ama"))
    kofi = auth_header(register("kofi"))
    nia.respond({"responseCode": "00"})
    _submit(client, ama, image_data)
    nia.respond({"responseCode": "01"})
    _submit(client, ama, image_data)
    _submit(client, kofi, image_data)

    records = _my_verifications(client, ama)
    assert [r["status"] for r in records] == ["rejected", "approved"]
    assert len(_my_verifications(client, kofi)) == 1
