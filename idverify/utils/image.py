"""Image processing utilities.

This module provides utility functions for image payload handling, including
base64 encoding/decoding and data-URI prefixes.
"""

import base64
import binascii

import cv2
import numpy as np


class ImageProcessingError(Exception):
    """Base exception for image processing errors."""
    pass


class ImageDecodingError(ImageProcessingError):
    """Exception raised when base64 decoding fails."""
    pass


class ImageFormatError(ImageProcessingError):
    """Exception raised when decoded data cannot be read as an image."""
    pass


def strip_data_uri(base64_string: str) -> str:
    """Remove a data-URI prefix if present.

    Args:
        base64_string: Either raw base64 or a data URI.
            Example formats:
            - "data:image/jpeg;base64,/9j/4AAQSkZ..."
            - "/9j/4AAQSkZ..." (without prefix)

    Returns:
        The bare base64 payload, stripped of surrounding whitespace.
    """
    payload = base64_string.strip()
    if ';base64,' in payload:
        payload = payload.split(';base64,', 1)[1]
    elif payload.startswith('data:') and ',' in payload:
        payload = payload.split(',', 1)[1]
    return payload.strip()


def decode_base64_bytes(base64_string: str) -> bytes:
    """Decode a base64 payload (data-URI prefix allowed) to bytes.

    Raises:
        ImageDecodingError: If the payload is not valid base64.
    """
    try:
        return base64.b64decode(strip_data_uri(base64_string), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodingError(f"Failed to decode base64 string: {str(e)}")


def decode_base64_image(base64_string: str) -> np.ndarray:
    """Decode base64 string to OpenCV image.

    Args:
        base64_string: Base64 encoded image string, optionally with data URL prefix.

    Returns:
        Decoded image as numpy array in BGR format.

    Raises:
        ImageDecodingError: If base64 decoding fails.
        ImageFormatError: If decoded data cannot be read as an image.
    """
    image_bytes = decode_base64_bytes(base64_string)

    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if image is None:
        raise ImageFormatError("Failed to decode image data")

    return image


def encode_base64(data: bytes) -> str:
    """Encode bytes as bare base64 text (no data-URI prefix)."""
    return base64.b64encode(data).decode('ascii')

