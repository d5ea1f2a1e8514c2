"""Capture gate: decides whether a photo may be taken right now."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence

from ..models.face import DetectedFace, FaceHeuristics, LightingSample
from .lighting import is_good_lighting
from .thresholds import DEFAULT_THRESHOLDS, CaptureThresholds


class GateReason(str, Enum):
    """Reasons a capture is blocked, in precedence order."""

    NO_FACE = "no_face"
    CONFIRM_LIVENESS = "confirm_liveness"
    ADJUST_LIGHTING = "adjust_lighting"
    FOLLOW_GUIDELINES = "follow_guidelines"
    TOO_MANY_FACES = "too_many_faces"
    REMOVE_GLASSES = "remove_glasses"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_LABELS: Dict[GateReason, str] = {
    GateReason.NO_FACE: "No Face Detected",
    GateReason.CONFIRM_LIVENESS: "Confirm Liveness",
    GateReason.ADJUST_LIGHTING: "Adjust Lighting",
    GateReason.FOLLOW_GUIDELINES: "Follow Guidelines",
    GateReason.TOO_MANY_FACES: "Too Many Faces",
    GateReason.REMOVE_GLASSES: "Remove Glasses",
}

_MESSAGES: Dict[GateReason, str] = {
    GateReason.NO_FACE: "No face detected in frame",
    GateReason.CONFIRM_LIVENESS: "Please move slightly to confirm liveness",
    GateReason.ADJUST_LIGHTING: "Adjust lighting conditions for optimal verification.",
    GateReason.FOLLOW_GUIDELINES: "Please adjust your position according to the guidelines",
    GateReason.TOO_MANY_FACES: "Only one person should be in the frame",
    GateReason.REMOVE_GLASSES: "Please remove glasses before capturing photo",
}

CAPTURE_LABEL = "Capture Photo"


@dataclass(frozen=True)
class GateDecision:
    can_capture: bool
    reason: Optional[GateReason] = None

    @property
    def label(self) -> str:
        """Call-to-action text for the capture button."""
        return self.reason.label if self.reason else CAPTURE_LABEL

    @property
    def message(self) -> Optional[str]:
        return self.reason.message if self.reason else None

    def to_dict(self) -> Dict[str, object]:
        return {
            "canCapture": self.can_capture,
            "reason": self.reason.value if self.reason else None,
            "label": self.label,
            "message": self.message,
        }


def evaluate_gate(
    faces: Sequence[DetectedFace],
    heuristics: Sequence[FaceHeuristics],
    is_live: bool,
    lighting: Optional[LightingSample],
    thresholds: CaptureThresholds = DEFAULT_THRESHOLDS,
) -> GateDecision:
    """Combine the latest pipeline outputs into one capture decision.

    Args:
        faces: Faces from the latest analysis cycle, primary face first.
        heuristics: Heuristics for ``faces``, same order.
        is_live: Current liveness flag.
        lighting: Latest lighting sample, or None if none was taken yet.
        thresholds: Threshold set.

    Returns:
        Permitted decision, or the highest-priority reason the capture is blocked.
    """
    good_lighting = lighting is not None and is_good_lighting(lighting, thresholds)
    quality_score = heuristics[0].quality.score if heuristics else 0

    if not faces:
        return GateDecision(can_capture=False, reason=GateReason.NO_FACE)
    if not is_live:
        return GateDecision(can_capture=False, reason=GateReason.CONFIRM_LIVENESS)
    if not good_lighting:
        return GateDecision(can_capture=False, reason=GateReason.ADJUST_LIGHTING)
    if quality_score < thresholds.min_quality_score:
        return GateDecision(can_capture=False, reason=GateReason.FOLLOW_GUIDELINES)
    if len(faces) > thresholds.max_faces:
        return GateDecision(can_capture=False, reason=GateReason.TOO_MANY_FACES)
    if any(h.has_eyewear for h in heuristics):
        return GateDecision(can_capture=False, reason=GateReason.REMOVE_GLASSES)
    return GateDecision(can_capture=True)
