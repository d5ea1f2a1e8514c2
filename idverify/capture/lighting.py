"""Lighting analysis over whole frames."""

import numpy as np

from ..models.face import LightingSample
from .thresholds import DEFAULT_THRESHOLDS, CaptureThresholds


def measure_lighting(frame: np.ndarray) -> LightingSample:
    """Compute brightness and contrast of a frame.

    Args:
        frame: Image as an ``(H, W, C)`` array with at least three colour
            channels, or a single-channel ``(H, W)`` array. Alpha is ignored.

    Returns:
        Brightness as the mean of the per-pixel channel average (0-255) and
        contrast as the spread (max - min) of that per-pixel average.
    """
    if frame is None or frame.size == 0:
        return LightingSample(brightness=0.0, contrast=0.0)

    if frame.ndim == 3:
        per_pixel = frame[:, :, :3].astype(np.float32).mean(axis=2)
    else:
        per_pixel = frame.astype(np.float32)

    return LightingSample(
        brightness=float(per_pixel.mean()),
        contrast=float(per_pixel.max() - per_pixel.min()),
    )


def is_good_lighting(
    sample: LightingSample, thresholds: CaptureThresholds = DEFAULT_THRESHOLDS
) -> bool:
    return (
        thresholds.min_brightness <= sample.brightness <= thresholds.max_brightness
        and sample.contrast >= thresholds.min_contrast
    )
