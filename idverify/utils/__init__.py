"""Utility functions for image payloads"""
from .image import (
    decode_base64_bytes,
    decode_base64_image,
    encode_base64,
    strip_data_uri,
)

__all__ = [
    'decode_base64_bytes',
    'decode_base64_image',
    'encode_base64',
    'strip_data_uri',
]
