"""Shared utilities used across the onboarding engine."""

import re


def digits_only(value: str) -> str:
    """Strip everything except digits.

    Examples:
        >>> digits_only("98765 43210")
        '9876543210'
        >>> digits_only("+91 (987) 654-3210")
        '919876543210'
    """
    return re.sub(r"\D", "", value)


def normalize_mobile(value: str) -> str:
    """Reduce a mobile number to its last 10 digits for lookups.

    Examples:
        >>> normalize_mobile("+91 98765 43210")
        '9876543210'
    """
    return digits_only(value)[-10:]


def normalize_email(value: str) -> str:
    """Lower-case and trim an email address for case-insensitive matching."""
    return value.strip().lower()
