"""Shared fixtures: synthetic faces and frames, a scripted analyzer and an API client."""

import base64
import json
from typing import Callable, List, Optional

import cv2
import httpx
import numpy as np
import pytest
from fastapi.testclient import TestClient

from idverify.api.deps import get_nia_client
from idverify.core.config import Settings
from idverify.main import create_app
from idverify.models.face import BoundingBox, DetectedFace, Keypoint, KeypointName
from idverify.services.nia_client import NIAClient

FRAME_WIDTH = 640
FRAME_HEIGHT = 480
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-secret"
VALID_PIN = "GHA-12345678-1"


def make_face(
    x: float = 192.0,
    y: float = 112.0,
    size: float = 256.0,
    eyewear: bool = False,
    smiling: bool = False,
) -> DetectedFace:
    """Square face with plausible keypoints; ``eyewear`` trips two eyewear signals."""
    box = BoundingBox(x=x, y=y, width=size, height=size)
    eye_y = y + size * 0.4
    brow_gap = size * 0.2 if eyewear else size * 0.08
    eye_half_width = size * 0.09 if eyewear else size * 0.04
    left_cx = x + size * 0.32
    right_cx = x + size * 0.68
    mouth_y = y + size * 0.75
    mouth_half_height = size * 0.03 if smiling else size * 0.08
    mouth_half_width = size * 0.12

    keypoints = {
        KeypointName.LEFT_EYE: Keypoint(left_cx, eye_y),
        KeypointName.RIGHT_EYE: Keypoint(right_cx, eye_y),
        KeypointName.LEFT_EYE_OUTER: Keypoint(left_cx - eye_half_width, eye_y),
        KeypointName.LEFT_EYE_INNER: Keypoint(left_cx + eye_half_width, eye_y),
        KeypointName.RIGHT_EYE_INNER: Keypoint(right_cx - eye_half_width, eye_y),
        KeypointName.RIGHT_EYE_OUTER: Keypoint(right_cx + eye_half_width, eye_y),
        KeypointName.LEFT_EYEBROW: Keypoint(left_cx, eye_y - brow_gap),
        KeypointName.RIGHT_EYEBROW: Keypoint(right_cx, eye_y - brow_gap),
        KeypointName.MOUTH_TOP: Keypoint(x + size / 2, mouth_y - mouth_half_height),
        KeypointName.MOUTH_BOTTOM: Keypoint(x + size / 2, mouth_y + mouth_half_height),
        KeypointName.MOUTH_LEFT: Keypoint(x + size / 2 - mouth_half_width, mouth_y),
        KeypointName.MOUTH_RIGHT: Keypoint(x + size / 2 + mouth_half_width, mouth_y),
    }
    return DetectedFace(box=box, keypoints=keypoints)


def make_frame(low: int = 120, high: int = 180) -> np.ndarray:
    """640x480 BGR frame split into two flat halves."""
    frame = np.full((FRAME_HEIGHT, FRAME_WIDTH, 3), low, dtype=np.uint8)
    frame[:, FRAME_WIDTH // 2:] = high
    return frame


def frame_to_base64(frame: np.ndarray, data_uri: bool = True) -> str:
    ok, buffer = cv2.imencode(".jpg", frame)
    assert ok
    encoded = base64.b64encode(buffer.tobytes()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}" if data_uri else encoded


class ScriptedAnalyzer:
    """Returns queued face lists in order, then keeps returning the last one."""

    def __init__(self, *script: List[DetectedFace]):
        self.script = list(script)
        self.last: List[DetectedFace] = []
        self.calls = 0

    def queue(self, *script: List[DetectedFace]) -> None:
        self.script.extend(script)

    def analyze(self, frame: Optional[np.ndarray]) -> List[DetectedFace]:
        self.calls += 1
        if self.script:
            self.last = self.script.pop(0)
        return list(self.last)


class FakeVerificationService:
    """In-process stand-in for the national ID service behind ``httpx.MockTransport``."""

    def __init__(self):
        self.requests: List[dict] = []
        self.status_code = 200
        self.body = {"responseCode": "00"}
        self.raw: Optional[str] = None
        self.error: Optional[Exception] = None

    def respond(self, body=None, status_code: int = 200, raw: Optional[str] = None) -> None:
        self.body = body
        self.status_code = status_code
        self.raw = raw

    def fail(self, error: Exception) -> None:
        self.error = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret="test-secret",
        merchant_key="test-merchant-key",
        nia_verify_url="https://nia.test/verify",
        load_face_model=False,
        lighting_interval_seconds=0.0,
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def analyzer() -> ScriptedAnalyzer:
    return ScriptedAnalyzer()


@pytest.fixture
def nia() -> FakeVerificationService:
    return FakeVerificationService()


@pytest.fixture
def client(settings, analyzer, nia):
    app = create_app(settings, analyzer=analyzer)
    transport = httpx.MockTransport(nia.handler)
    app.dependency_overrides[get_nia_client] = lambda: NIAClient(
        url=settings.nia_verify_url,
        merchant_key=settings.merchant_key,
        timeout=settings.nia_timeout_seconds,
        transport=transport,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client) -> Callable[..., dict]:
    """Register an account and return its token response."""

    def _register(username: str = "ama", password: str = "password1", **profile) -> dict:
        response = client.post(
            "/api/register", json={"username": username, "password": password, **profile}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


def auth_header(token_response: dict) -> dict:
    return {"Authorization": f"Bearer {token_response['accessToken']}"}


@pytest.fixture
def user_headers(register) -> dict:
    return auth_header(register())


@pytest.fixture
def admin_headers(client) -> dict:
    response = client.post(
        "/api/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200, response.text
    return auth_header(response.json())


@pytest.fixture
def image_data() -> str:
    """Base64 payload long enough to pass the plausibility check."""
    return "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8" * 900).decode("ascii")
