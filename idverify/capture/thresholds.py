"""Heuristic thresholds for the capture pipeline."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CaptureThresholds:
    """Immutable threshold set passed to every evaluator.

    Tests and callers override single values with ``dataclasses.replace``.
    """

    # Lighting
    min_brightness: float = 100.0
    max_brightness: float = 200.0
    min_contrast: float = 30.0

    # Detection
    max_faces: int = 4
    frame_width: int = 640
    frame_height: int = 480

    # Liveness
    movement_threshold: float = 20.0
    movement_history_length: int = 10

    # Image quality
    center_tolerance: float = 0.1
    min_face_size: float = 0.3
    max_face_size: float = 0.7
    min_quality_score: int = 75

    # Expression
    smile_ratio: float = 2.0

    # Eyewear
    eyebrow_distance_ratio: float = 0.15
    eye_width_ratio: float = 0.12
    eye_score_difference: float = 0.1
    min_eye_score: float = 0.85
    eye_region_ratio: float = 0.45
    eyewear_min_score: int = 2


DEFAULT_THRESHOLDS = CaptureThresholds()
