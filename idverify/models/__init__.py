"""Data models and type definitions"""
from .face import (
    BoundingBox,
    CapturedImage,
    DetectedFace,
    Expression,
    FaceHeuristics,
    Keypoint,
    KeypointName,
    LightingSample,
    MovementSample,
    QualityReport,
)

__all__ = [
    'BoundingBox',
    'CapturedImage',
    'DetectedFace',
    'Expression',
    'FaceHeuristics',
    'Keypoint',
    'KeypointName',
    'LightingSample',
    'MovementSample',
    'QualityReport',
]
