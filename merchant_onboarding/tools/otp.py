"""
Demo OTP challenge for digital sign-off and status lookups.

In production codes would be generated and delivered over SMS and email.
The demo challenge uses fixed per-channel codes from configuration, but
keeps the real bookkeeping: a challenge must be opened before it can be
verified, codes expire, and attempts are capped.
"""

import hmac
import time
from typing import Callable, Optional, Protocol, Sequence

from merchant_onboarding.config import settings
from merchant_onboarding.logging_context import get_session_logger

logger = get_session_logger(__name__)

MOBILE = "mobile"
EMAIL = "email"


def mask_destination(value: str) -> str:
    """Mask an email or phone number for display and logs."""
    if "@" in value:
        local, domain = value.split("@", 1)
        if len(local) <= 2:
            return f"{local[:1]}****@{domain}"
        return f"{local[0]}****{local[-1]}@{domain}"
    if len(value) <= 4:
        return "****"
    return "*" * (len(value) - 4) + value[-4:]


class OTPChallenge(Protocol):
    def send(self, channels: dict[str, str]) -> None:
        """Open a challenge and dispatch one code per channel (channel -> destination)."""
        ...

    def verify(self, channels: dict[str, str], codes: Sequence[str]) -> bool:
        """Check the submitted codes, one per channel in channel order."""
        ...


class DemoOTPChallenge:
    """Fixed-code OTP challenge with expiry and an attempt limit."""

    def __init__(
        self,
        codes: Optional[dict[str, str]] = None,
        ttl_seconds: int = settings.otp.ttl_seconds,
        max_attempts: int = settings.otp.max_attempts,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._codes = codes or {MOBILE: settings.otp.mobile_code, EMAIL: settings.otp.email_code}
        self._ttl = ttl_seconds
        self._max_attempts = max_attempts
        self._clock = clock
        self._sent_at: dict[str, float] = {}
        self._attempts = 0

    def send(self, channels: dict[str, str]) -> None:
        now = self._clock()
        for channel, destination in channels.items():
            if channel not in self._codes:
                raise ValueError(f"Unsupported OTP channel: {channel}")
            self._sent_at[channel] = now
            logger.info("OTP sent via %s to %s", channel, mask_destination(destination))
        self._attempts = 0

    def verify(self, channels: dict[str, str], codes: Sequence[str]) -> bool:
        if len(codes) != len(channels):
            return False
        now = self._clock()
        for channel in channels:
            sent_at = self._sent_at.get(channel)
            if sent_at is None or now - sent_at > self._ttl:
                logger.info("OTP for %s missing or expired", channel)
                return False
        if self._attempts >= self._max_attempts:
            logger.warning("OTP attempt limit reached")
            return False

        self._attempts += 1
        matched = all(
            hmac.compare_digest(code.strip(), self._codes[channel])
            for channel, code in zip(channels, codes)
        )
        if matched:
            for channel in channels:
                self._sent_at.pop(channel, None)
            self._attempts = 0
        return matched
