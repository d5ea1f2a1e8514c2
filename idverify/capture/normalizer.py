"""Image normalization for captured selfies.

Turns a raw frame into a fixed-size, fixed-aspect JPEG below a byte ceiling.
The crop strategy is an explicit input; device detection stays with the caller
(see ``policy_for_user_agent``).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from ..models.face import BoundingBox, CapturedImage

logger = logging.getLogger(__name__)


class NormalizationError(Exception):
    """Raised when a frame cannot be turned into an acceptable image."""
    pass


class CropStrategy(str, Enum):
    LETTERBOX = "letterbox"   # desktop: scale to fit, pad
    FACE_CROP = "face_crop"   # mobile: zoom in on the subject, boost contrast


@dataclass(frozen=True)
class NormalizationPolicy:
    target_width: int = 640
    target_height: int = 480
    crop_strategy: CropStrategy = CropStrategy.LETTERBOX
    max_bytes: int = 512 * 1024
    quality_steps: Tuple[int, ...] = (90, 80, 70, 60, 50, 40, 30, 20, 10)
    crop_zoom: float = 1.25
    contrast_boost: float = 1.15
    portrait_focus: float = 0.4

    @property
    def aspect_ratio(self) -> float:
        return self.target_width / self.target_height


DESKTOP_POLICY = NormalizationPolicy()
MOBILE_POLICY = NormalizationPolicy(crop_strategy=CropStrategy.FACE_CROP)

MOBILE_MARKERS = ("Mobile", "Android", "iPhone", "iPad")


def policy_for_user_agent(user_agent: Optional[str]) -> NormalizationPolicy:
    """Pick the normalization policy for a client identification string."""
    if user_agent and any(marker in user_agent for marker in MOBILE_MARKERS):
        return MOBILE_POLICY
    return DESKTOP_POLICY


def letterbox(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Scale uniformly to fit ``width`` x ``height`` and centre on a black canvas."""
    src_height, src_width = frame.shape[:2]
    scale = min(width / src_width, height / src_height)
    new_width = max(1, min(width, int(round(src_width * scale))))
    new_height = max(1, min(height, int(round(src_height * scale))))

    interpolation = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_LINEAR
    resized = cv2.resize(frame, (new_width, new_height), interpolation=interpolation)

    canvas = np.zeros((height, width, 3), dtype=np.uint8)
    x_offset = (width - new_width) // 2
    y_offset = (height - new_height) // 2
    canvas[y_offset:y_offset + new_height, x_offset:x_offset + new_width] = resized
    return canvas


def crop_window(
    src_width: int,
    src_height: int,
    policy: NormalizationPolicy,
    face_box: Optional[BoundingBox] = None,
) -> Tuple[int, int, int, int]:
    """Compute the zoomed crop window ``(x, y, w, h)`` for the face-crop strategy.

    The window has the target aspect ratio. Landscape sources lose more width,
    portrait sources more height. The window is centred on the face when one is
    given, otherwise on the frame centre (landscape) or on the upper part of the
    frame where a selfie subject usually sits (portrait).
    """
    aspect = policy.aspect_ratio
    if src_width / src_height >= aspect:
        # landscape: limited by height
        window_height = src_height / policy.crop_zoom
        window_width = window_height * aspect
    else:
        # portrait: limited by width
        window_width = src_width / policy.crop_zoom
        window_height = window_width / aspect

    window_width = min(window_width, src_width)
    window_height = min(window_height, src_height)

    if face_box is not None:
        center_x, center_y = face_box.center
    elif src_height > src_width:
        center_x, center_y = src_width / 2, src_height * policy.portrait_focus
    else:
        center_x, center_y = src_width / 2, src_height / 2

    x = min(max(center_x - window_width / 2, 0), src_width - window_width)
    y = min(max(center_y - window_height / 2, 0), src_height - window_height)
    return int(round(x)), int(round(y)), int(round(window_width)), int(round(window_height))


def face_crop(
    frame: np.ndarray, policy: NormalizationPolicy, face_box: Optional[BoundingBox] = None
) -> np.ndarray:
    src_height, src_width = frame.shape[:2]
    x, y, w, h = crop_window(src_width, src_height, policy, face_box)
    cropped = frame[y:y + h, x:x + w]
    resized = cv2.resize(
        cropped, (policy.target_width, policy.target_height), interpolation=cv2.INTER_AREA
    )
    return cv2.convertScaleAbs(resized, alpha=policy.contrast_boost, beta=0)


def encode_within_limit(
    image: np.ndarray, max_bytes: int, quality_steps: Sequence[int]
) -> Tuple[bytes, int]:
    """Encode as JPEG at the highest quality step that fits ``max_bytes``.

    Raises:
        NormalizationError: If no quality step fits under the ceiling.
    """
    smallest = None
    for quality in quality_steps:
        ok, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
        if not ok:
            raise NormalizationError("Failed to encode image")
        size = len(buffer)
        smallest = size if smallest is None else min(smallest, size)
        if size <= max_bytes:
            return buffer.tobytes(), int(quality)

    raise NormalizationError(
        f"Image size ({(smallest or 0) / 1024:.2f}KB) exceeds {max_bytes / 1024:.0f}KB limit. "
        "Try moving closer to the camera or ensuring better lighting."
    )


def _to_bgr(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    return frame


def normalize_image(
    frame: np.ndarray,
    policy: NormalizationPolicy = DESKTOP_POLICY,
    face_box: Optional[BoundingBox] = None,
) -> CapturedImage:
    """Normalize a captured frame.

    Args:
        frame: Source frame in BGR format (grayscale and BGRA are converted).
        policy: Target size, crop strategy and size ceiling.
        face_box: Primary face in ``frame`` coordinates; used by the face-crop
            strategy to centre the window.

    Returns:
        The normalized image and its JPEG bytes (no data-URI prefix).

    Raises:
        NormalizationError: If the frame is empty or cannot be encoded under
            ``policy.max_bytes`` at any allowed quality.
    """
    if frame is None or frame.size == 0:
        raise NormalizationError("No frame to normalize")

    source = _to_bgr(frame)
    if policy.crop_strategy is CropStrategy.FACE_CROP:
        pixels = face_crop(source, policy, face_box)
    else:
        pixels = letterbox(source, policy.target_width, policy.target_height)

    data, quality = encode_within_limit(pixels, policy.max_bytes, policy.quality_steps)
    logger.info(
        f"Normalized capture: {policy.crop_strategy.value}, "
        f"{len(data) / 1024:.1f}KB at quality {quality}"
    )
    return CapturedImage(
        pixels=pixels,
        data=data,
        width=policy.target_width,
        height=policy.target_height,
        quality=quality,
    )
