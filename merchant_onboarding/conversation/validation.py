"""
Field-format validators for merchant onboarding input.

Each rule is a pure predicate: it returns a bool and never raises.
The state machine decides what retry prompt to emit on failure.
"""

import re

from merchant_onboarding.utils import digits_only

MIN_NAME_LENGTH = 2
MOBILE_DIGITS = 10
PIN_CODE_DIGITS = 6
OTP_DIGITS = 6

_EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
_PAN_PATTERN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]")
_OTP_PATTERN = re.compile(r"\d{6}")


def is_valid_email(value: str) -> bool:
    return _EMAIL_PATTERN.search(value.strip()) is not None


def is_valid_mobile(value: str) -> bool:
    return len(digits_only(value)) == MOBILE_DIGITS


def is_valid_pan(value: str) -> bool:
    """PAN is five upper-case letters, four digits, one upper-case letter."""
    return _PAN_PATTERN.fullmatch(value.strip()) is not None


def is_valid_pin_code(value: str) -> bool:
    return len(digits_only(value)) == PIN_CODE_DIGITS


def is_valid_otp(value: str) -> bool:
    """Format check only; whether the code is correct is the OTP challenge's call."""
    return _OTP_PATTERN.fullmatch(value.strip()) is not None


def is_valid_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def is_non_empty(value: str) -> bool:
    return bool(value.strip())
