import pytest

from idverify.core.exceptions import ValidationError
from idverify.services.pin_number import is_valid_pin, validate_pin


@pytest.mark.parametrize("pin", ["GHA-12345678-1", "GHA-00000000-0"])
def test_valid_pins(pin):
    assert is_valid_pin(pin)
    assert validate_pin(pin) == pin


@pytest.mark.parametrize(
    "pin",
    [
        "",
        "   ",
        "GHA-1234567-1",
        "GHA-123456789-1",
        "gha-12345678-1",
        "GHA-12345678-12",
        "GHA12345678-1",
        "GHA-\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668-\u0661",
        "GHA-12345678-1\n",
    ],
)
def test_invalid_pins(pin):
    assert not is_valid_pin(pin)


def test_lenient_mode_accepts_long_enough_values():
    assert is_valid_pin("ABC123", strict=False)
    assert not is_valid_pin("ABC12", strict=False)
    assert not is_valid_pin("      ", strict=False)


def test_lenient_mode_caps_length():
    assert is_valid_pin("P" * 32, strict=False)
    assert not is_valid_pin("P" * 33, strict=False)
    # non-ASCII digits never satisfy the strict pattern
    assert not is_valid_pin("GHA-\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668-\u0661")


def test_validate_pin_error():
    with pytest.raises(ValidationError) as exc_info:
        validate_pin("12345")
    assert exc_info.value.code == "INVALID_PIN"
    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"field": "pinNumber"}
