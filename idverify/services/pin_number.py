"""Ghana Card PIN validation."""

import re

from ..core.exceptions import ValidationError

PIN_PATTERN = re.compile(r"^GHA-[0-9]{8}-[0-9]$")
LEGACY_MIN_LENGTH = 6
MAX_PIN_LENGTH = 32  # verifications.pin_number column width


def is_valid_pin(value: str, strict: bool = True) -> bool:
    """Check a Ghana Card PIN such as ``GHA-12345678-1``.

    Strict mode accepts only the ``GHA-########-#`` pattern. The legacy lenient
    mode also accepts any non-blank value of six to thirty-two characters.
    """
    if not isinstance(value, str) or not value.strip():
        return False
    if PIN_PATTERN.fullmatch(value):
        return True
    if strict or len(value) > MAX_PIN_LENGTH:
        return False
    return len(value.strip()) >= LEGACY_MIN_LENGTH


def validate_pin(value: str, strict: bool = True) -> str:
    """Return ``value`` unchanged if valid.

    Raises:
        ValidationError: If the PIN is missing or malformed.
    """
    if not is_valid_pin(value, strict=strict):
        raise ValidationError(
            "Please enter a valid Ghana Card Number (e.g., GHA-12345678-1)",
            field="pinNumber",
            code="INVALID_PIN",
        )
    return value
