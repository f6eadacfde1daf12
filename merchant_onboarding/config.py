"""
Centralized configuration with environment variable overrides.

Brand details, demo OTP codes, storage locations and negotiation terms
are configurable here. Nothing is hardcoded in the dialogue or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from merchant_onboarding.logging_context import LOG_FORMAT, get_session_logger, install_session_filter

load_dotenv()

logger = get_session_logger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BusinessConfig:
    """Brand and representative details shown to the merchant."""

    name: str = os.getenv("BUSINESS_NAME", "Merchant Onboarding")
    representative_name: str = os.getenv("REPRESENTATIVE_NAME", "Mr. Devesh Kumar")
    representative_mobile: str = os.getenv("REPRESENTATIVE_MOBILE", "+919871299447")
    support_email: str = os.getenv("SUPPORT_EMAIL", "support@merchant.com")
    activation_window: str = os.getenv("ACTIVATION_WINDOW", "2-4 hours")
    kyc_follow_up_hours: int = _safe_int("KYC_FOLLOW_UP_HOURS", "24")


@dataclass(frozen=True)
class OTPConfig:
    """Demo OTP codes and challenge limits."""

    mobile_code: str = os.getenv("DEMO_MOBILE_OTP", "123456")
    email_code: str = os.getenv("DEMO_EMAIL_OTP", "654321")
    ttl_seconds: int = _safe_int("OTP_TTL_SECONDS", "600")
    max_attempts: int = _safe_int("OTP_MAX_ATTEMPTS", "5")


@dataclass(frozen=True)
class StorageConfig:
    """Where customer checkpoints and application exports are written."""

    customer_store_path: str = os.getenv("CUSTOMER_STORE_PATH", "data/customers.json")
    export_dir: str = os.getenv("EXPORT_DIR", "exports")


@dataclass(frozen=True)
class NegotiationConfig:
    """Terms of the canned counter-offer made during negotiation."""

    discount_percent: int = _safe_int("NEGOTIATION_DISCOUNT_PERCENT", "15")
    setup_fee_waived: bool = os.getenv("NEGOTIATION_WAIVE_SETUP_FEE", "true").lower() == "true"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    otp: OTPConfig = field(default_factory=OTPConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    negotiation: NegotiationConfig = field(default_factory=NegotiationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    bot_name: str = os.getenv("BOT_NAME", "onboarding-assistant")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    for env_name, code in [
        ("DEMO_MOBILE_OTP", config.otp.mobile_code),
        ("DEMO_EMAIL_OTP", config.otp.email_code),
    ]:
        if len(code) != 6 or not code.isdigit():
            raise ValueError(f"{env_name} must be exactly 6 digits, got {code!r}")
    if config.otp.ttl_seconds < 1:
        raise ValueError(f"OTP_TTL_SECONDS must be >= 1, got {config.otp.ttl_seconds}")
    if config.otp.max_attempts < 1:
        raise ValueError(f"OTP_MAX_ATTEMPTS must be >= 1, got {config.otp.max_attempts}")
    if not 0 <= config.negotiation.discount_percent <= 100:
        raise ValueError(
            "NEGOTIATION_DISCOUNT_PERCENT must be between 0 and 100, "
            f"got {config.negotiation.discount_percent}"
        )
    if config.business.kyc_follow_up_hours < 1:
        raise ValueError(
            f"KYC_FOLLOW_UP_HOURS must be >= 1, got {config.business.kyc_follow_up_hours}"
        )
    if not config.storage.customer_store_path:
        raise ValueError("CUSTOMER_STORE_PATH must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_session_filter(logging.getLogger().handlers)
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
