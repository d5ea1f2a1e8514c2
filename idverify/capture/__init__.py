"""Selfie capture pipeline: detection, heuristics, liveness, lighting, gate and normalization"""
from .face_detection import FaceDetector, detector
from .gate import GateDecision, GateReason, evaluate_gate
from .heuristics import assess_quality, detect_expression, detect_eyewear, evaluate_face, score_eyewear
from .lighting import is_good_lighting, measure_lighting
from .liveness import LivenessState, LivenessTracker
from .normalizer import (
    CropStrategy,
    NormalizationError,
    NormalizationPolicy,
    normalize_image,
    policy_for_user_agent,
)
from .session import CaptureNotAllowedError, CaptureSession, CaptureSessionStore
from .thresholds import DEFAULT_THRESHOLDS, CaptureThresholds

__all__ = [
    'FaceDetector',
    'detector',
    'GateDecision',
    'GateReason',
    'evaluate_gate',
    'assess_quality',
    'detect_expression',
    'detect_eyewear',
    'evaluate_face',
    'score_eyewear',
    'is_good_lighting',
    'measure_lighting',
    'LivenessState',
    'LivenessTracker',
    'CropStrategy',
    'NormalizationError',
    'NormalizationPolicy',
    'normalize_image',
    'policy_for_user_agent',
    'CaptureNotAllowedError',
    'CaptureSession',
    'CaptureSessionStore',
    'DEFAULT_THRESHOLDS',
    'CaptureThresholds',
]
