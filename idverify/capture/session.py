"""Per-user capture state.

A ``CaptureSession`` holds the latest output of every pipeline stage for one
user: faces and their heuristics, liveness, the last lighting sample and the
captured image. Frame analysis and lighting sampling update it independently;
the gate decision is derived on demand from whatever is current.
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Protocol

import numpy as np

from ..models.face import CapturedImage, DetectedFace, FaceHeuristics, LightingSample
from .gate import GateDecision, GateReason, evaluate_gate
from .heuristics import evaluate_face
from .lighting import is_good_lighting, measure_lighting
from .liveness import LivenessTracker
from .normalizer import DESKTOP_POLICY, NormalizationPolicy, normalize_image
from .thresholds import DEFAULT_THRESHOLDS, CaptureThresholds

logger = logging.getLogger(__name__)


class FrameAnalyzer(Protocol):
    def analyze(self, frame: Optional[np.ndarray]) -> List[DetectedFace]:
        ...


class CaptureNotAllowedError(Exception):
    """Raised when a capture is requested while the gate is closed."""

    def __init__(self, reason: GateReason):
        self.reason = reason
        super().__init__(reason.message)


class CaptureSession:
    def __init__(
        self,
        analyzer: FrameAnalyzer,
        thresholds: CaptureThresholds = DEFAULT_THRESHOLDS,
        policy: NormalizationPolicy = DESKTOP_POLICY,
        lighting_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.analyzer = analyzer
        self.thresholds = thresholds
        self.policy = policy
        self.lighting_interval = lighting_interval
        self._clock = clock

        self.liveness = LivenessTracker(thresholds)
        self.latest_frame: Optional[np.ndarray] = None
        self.faces: List[DetectedFace] = []
        self.heuristics: List[FaceHeuristics] = []
        self.lighting: Optional[LightingSample] = None
        self.captured: Optional[CapturedImage] = None
        self._last_lighting_at: Optional[float] = None

    def process_frame(self, frame: Optional[np.ndarray]) -> List[DetectedFace]:
        """Run one analysis cycle: detection, heuristics and liveness."""
        return self.apply_analysis(frame, self.analyzer.analyze(frame))

    def apply_analysis(self, frame: Optional[np.ndarray], faces: List[DetectedFace]) -> List[DetectedFace]:
        """Update heuristics and liveness from faces already detected on ``frame``."""
        if frame is not None:
            frame_height, frame_width = frame.shape[:2]
        else:
            frame_width, frame_height = self.thresholds.frame_width, self.thresholds.frame_height

        heuristics = []
        kept = []
        for face in faces:
            try:
                heuristics.append(evaluate_face(face, frame_width, frame_height, self.thresholds))
                kept.append(face)
            except Exception as e:
                logger.warning(f"Heuristic evaluation failed, dropping face: {str(e)}")

        self.faces = kept
        self.heuristics = heuristics
        if kept:
            self.liveness.observe(kept[0])
        return kept

    def sample_lighting(self, frame: Optional[np.ndarray]) -> Optional[LightingSample]:
        """Replace the lighting sample with one measured on ``frame``."""
        if frame is None:
            return self.lighting
        self.lighting = measure_lighting(frame)
        self._last_lighting_at = self._clock()
        return self.lighting

    def lighting_due(self) -> bool:
        if self._last_lighting_at is None:
            return True
        return self._clock() - self._last_lighting_at >= self.lighting_interval

    def push_frame(self, frame: np.ndarray) -> GateDecision:
        """Accept a frame from a client: analyze it and sample lighting when due."""
        self.latest_frame = frame
        self.process_frame(frame)
        if self.lighting_due():
            self.sample_lighting(frame)
        return self.decision

    @property
    def decision(self) -> GateDecision:
        return evaluate_gate(
            self.faces, self.heuristics, self.liveness.is_live, self.lighting, self.thresholds
        )

    def capture(self, policy: Optional[NormalizationPolicy] = None) -> CapturedImage:
        """Normalize the latest frame if the gate allows it.

        Raises:
            CaptureNotAllowedError: If the gate is closed.
            NormalizationError: If the frame cannot be normalized; nothing is kept.
        """
        decision = self.decision
        if not decision.can_capture:
            raise CaptureNotAllowedError(decision.reason)

        face_box = self.faces[0].box if self.faces else None
        self.captured = None
        self.captured = normalize_image(self.latest_frame, policy or self.policy, face_box)
        return self.captured

    def retake(self) -> None:
        """Discard the captured image and require liveness again."""
        self.captured = None
        self.liveness.reset()

    def snapshot(self) -> Dict[str, object]:
        lighting = self.lighting.to_dict() if self.lighting else None
        if lighting is not None:
            lighting["isGood"] = is_good_lighting(self.lighting, self.thresholds)
        return {
            "faceCount": len(self.faces),
            "faces": [
                {"box": face.box.to_dict(), **heuristics.to_dict()}
                for face, heuristics in zip(self.faces, self.heuristics)
            ],
            "isLive": self.liveness.is_live,
            "lighting": lighting,
            "gate": self.decision.to_dict(),
            "hasCapture": self.captured is not None,
        }


class CaptureSessionStore:
    """In-memory capture sessions keyed by user id.

    Sessions untouched for ``max_idle`` seconds are dropped on the next access
    to the store; ``None`` keeps them until discarded.
    """

    def __init__(
        self,
        factory: Callable[[], CaptureSession],
        max_idle: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self.max_idle = max_idle
        self._clock = clock
        self._sessions: Dict[int, CaptureSession] = {}
        self._last_used: Dict[int, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def evict_idle(self) -> int:
        """Drop sessions idle longer than ``max_idle``; returns how many went."""
        if self.max_idle is None:
            return 0
        cutoff = self._clock() - self.max_idle
        stale = [user_id for user_id, used in self._last_used.items() if used < cutoff]
        for user_id in stale:
            self.discard(user_id)
        if stale:
            logger.debug(f"Evicted {len(stale)} idle capture sessions")
        return len(stale)

    def get(self, user_id: int) -> CaptureSession:
        self.evict_idle()
        session = self._sessions.get(user_id)
        if session is None:
            session = self._factory()
            self._sessions[user_id] = session
        self._last_used[user_id] = self._clock()
        return session

    def discard(self, user_id: int) -> None:
        self._sessions.pop(user_id, None)
        self._last_used.pop(user_id, None)
