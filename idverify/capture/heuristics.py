"""Per-face heuristics.

Pure functions over one detected face. A heuristic whose keypoints are missing
falls back to its safe default (neutral expression, no eyewear) instead of
failing.
"""

import logging

from ..models.face import (
    DetectedFace,
    Expression,
    FaceHeuristics,
    KeypointName,
    QualityReport,
)
from .thresholds import DEFAULT_THRESHOLDS, CaptureThresholds

logger = logging.getLogger(__name__)

_MOUTH = (
    KeypointName.MOUTH_TOP,
    KeypointName.MOUTH_BOTTOM,
    KeypointName.MOUTH_LEFT,
    KeypointName.MOUTH_RIGHT,
)


def detect_expression(
    face: DetectedFace, thresholds: CaptureThresholds = DEFAULT_THRESHOLDS
) -> Expression:
    """Label the face smiling when the mouth is much wider than it is tall.

    Args:
        face: Detected face with keypoints.
        thresholds: Threshold set; ``smile_ratio`` is compared against
            mouth width / mouth height.

    Returns:
        ``Expression.SMILING`` or ``Expression.NEUTRAL``. Neutral whenever any of
        the four mouth keypoints is missing or the mouth has no height.
    """
    top, bottom, left, right = (face.keypoint(name) for name in _MOUTH)
    if top is None or bottom is None or left is None or right is None:
        return Expression.NEUTRAL

    mouth_height = abs(bottom.y - top.y)
    mouth_width = abs(right.x - left.x)
    if mouth_height == 0:
        return Expression.NEUTRAL

    if mouth_width / mouth_height > thresholds.smile_ratio:
        return Expression.SMILING
    return Expression.NEUTRAL


def score_eyewear(face: DetectedFace, thresholds: CaptureThresholds = DEFAULT_THRESHOLDS) -> int:
    """Count how many eyewear signals fire for a face, 0 to 4.

    Signals:
        1. Eyebrows sit far above the eyes (mean distance relative to box height).
        2. Eyes look wide compared to the face box.
        3. Eye confidences disagree, or are low on average.
        4. The span between the outer eye corners is wide compared to the box.

    A signal whose keypoints are missing is skipped.
    """
    left_eye = face.keypoint(KeypointName.LEFT_EYE)
    right_eye = face.keypoint(KeypointName.RIGHT_EYE)
    left_brow = face.keypoint(KeypointName.LEFT_EYEBROW)
    right_brow = face.keypoint(KeypointName.RIGHT_EYEBROW)
    left_outer = face.keypoint(KeypointName.LEFT_EYE_OUTER)
    left_inner = face.keypoint(KeypointName.LEFT_EYE_INNER)
    right_outer = face.keypoint(KeypointName.RIGHT_EYE_OUTER)
    right_inner = face.keypoint(KeypointName.RIGHT_EYE_INNER)
    box = face.box

    score = 0

    if left_eye and right_eye and left_brow and right_brow and box.height > 0:
        average_distance = (abs(left_eye.y - left_brow.y) + abs(right_eye.y - right_brow.y)) / 2
        if average_distance / box.height > thresholds.eyebrow_distance_ratio:
            score += 1

    if left_outer and left_inner and right_outer and right_inner:
        average_width = (abs(left_outer.x - left_inner.x) + abs(right_outer.x - right_inner.x)) / 2
        if average_width > box.width * thresholds.eye_width_ratio:
            score += 1

    if left_eye and right_eye:
        score_difference = abs(left_eye.score - right_eye.score)
        average_score = (left_eye.score + right_eye.score) / 2
        if score_difference > thresholds.eye_score_difference or average_score < thresholds.min_eye_score:
            score += 1

    if left_outer and right_outer and box.width > 0:
        region_ratio = abs(right_outer.x - left_outer.x) / box.width
        if region_ratio > thresholds.eye_region_ratio:
            score += 1

    logger.debug(f"Eyewear score: {score}")
    return score


def detect_eyewear(face: DetectedFace, thresholds: CaptureThresholds = DEFAULT_THRESHOLDS) -> bool:
    return score_eyewear(face, thresholds) >= thresholds.eyewear_min_score


def is_centered(
    face: DetectedFace,
    frame_width: float,
    frame_height: float,
    thresholds: CaptureThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """True when the box centre lies within the tolerance of the frame centre on both axes."""
    center_x, center_y = face.box.center
    return (
        abs(center_x - frame_width / 2) < frame_width * thresholds.center_tolerance
        and abs(center_y - frame_height / 2) < frame_height * thresholds.center_tolerance
    )


def is_right_size(
    face: DetectedFace, frame_width: float, thresholds: CaptureThresholds = DEFAULT_THRESHOLDS
) -> bool:
    """True when face width / frame width falls inside [min_face_size, max_face_size]."""
    if frame_width <= 0:
        return False
    ratio = face.box.width / frame_width
    return thresholds.min_face_size <= ratio <= thresholds.max_face_size


def assess_quality(
    face: DetectedFace,
    frame_width: float,
    frame_height: float,
    thresholds: CaptureThresholds = DEFAULT_THRESHOLDS,
) -> QualityReport:
    # Head pose and sharpness are not measured yet; both checks always pass.
    return QualityReport(
        is_centered=is_centered(face, frame_width, frame_height, thresholds),
        is_right_size=is_right_size(face, frame_width, thresholds),
        is_straight=True,
        is_sharp=True,
    )


def evaluate_face(
    face: DetectedFace,
    frame_width: float,
    frame_height: float,
    thresholds: CaptureThresholds = DEFAULT_THRESHOLDS,
) -> FaceHeuristics:
    """Run every heuristic for one face."""
    eyewear_score = score_eyewear(face, thresholds)
    return FaceHeuristics(
        expression=detect_expression(face, thresholds),
        eyewear_score=eyewear_score,
        has_eyewear=eyewear_score >= thresholds.eyewear_min_score,
        quality=assess_quality(face, frame_width, frame_height, thresholds),
    )
