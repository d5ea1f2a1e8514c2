"""Face analysis domain types.

Everything here is produced fresh by one analysis cycle and discarded once the
derived values have been computed; nothing is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class KeypointName(str, Enum):
    """Closed set of facial keypoints the heuristics understand."""

    LEFT_EYE = "leftEye"
    RIGHT_EYE = "rightEye"
    LEFT_EYE_INNER = "leftEyeInner"
    LEFT_EYE_OUTER = "leftEyeOuter"
    RIGHT_EYE_INNER = "rightEyeInner"
    RIGHT_EYE_OUTER = "rightEyeOuter"
    LEFT_EYEBROW = "leftEyebrow"
    RIGHT_EYEBROW = "rightEyebrow"
    MOUTH_TOP = "mouthTop"
    MOUTH_BOTTOM = "mouthBottom"
    MOUTH_LEFT = "mouthLeft"
    MOUTH_RIGHT = "mouthRight"


class Expression(str, Enum):
    SMILING = "smiling"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Keypoint:
    x: float
    y: float
    score: float = 1.0


@dataclass(frozen=True)
class DetectedFace:
    """One face found in a frame: box, named keypoints and detection confidence."""

    box: BoundingBox
    keypoints: Dict[KeypointName, Keypoint] = field(default_factory=dict)
    confidence: float = 1.0

    def keypoint(self, name: KeypointName) -> Optional[Keypoint]:
        """Return the keypoint or None when the detector did not produce it."""
        return self.keypoints.get(name)


@dataclass(frozen=True)
class QualityReport:
    is_centered: bool
    is_right_size: bool
    is_straight: bool
    is_sharp: bool

    @property
    def score(self) -> int:
        """Count of passing checks times 25, always one of 0/25/50/75/100."""
        checks = (self.is_centered, self.is_right_size, self.is_straight, self.is_sharp)
        return sum(1 for check in checks if check) * 25

    def to_dict(self) -> Dict[str, object]:
        return {
            "isCentered": self.is_centered,
            "isRightSize": self.is_right_size,
            "isStraight": self.is_straight,
            "isSharp": self.is_sharp,
            "score": self.score,
        }


@dataclass(frozen=True)
class FaceHeuristics:
    expression: Expression
    eyewear_score: int
    has_eyewear: bool
    quality: QualityReport

    def to_dict(self) -> Dict[str, object]:
        return {
            "expression": self.expression.value,
            "eyewearScore": self.eyewear_score,
            "hasGlasses": self.has_eyewear,
            "quality": self.quality.to_dict(),
        }


@dataclass(frozen=True)
class MovementSample:
    x: float
    y: float

    def distance_to(self, other: "MovementSample") -> float:
        """Manhattan distance between two positions."""
        return abs(self.x - other.x) + abs(self.y - other.y)


@dataclass(frozen=True)
class LightingSample:
    brightness: float
    contrast: float

    def to_dict(self) -> Dict[str, float]:
        return {"brightness": round(self.brightness, 2), "contrast": round(self.contrast, 2)}


@dataclass(frozen=True)
class CapturedImage:
    """Normalized capture: pixels plus their encoded form (no data-URI prefix)."""

    pixels: object  # numpy.ndarray, BGR
    data: bytes
    width: int
    height: int
    quality: int
    mime_type: str = "image/jpeg"

    @property
    def byte_size(self) -> int:
        return len(self.data)
