"""
Option sets and the transition table for the onboarding dialogue.

Each step that offers buttons has its own option enum, so an option
label can only be interpreted in the step that offered it. The table
lists every edge the state machine is allowed to take; staying on the
current step is always allowed and is not listed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TypeVar

from merchant_onboarding.schemas.conversation_schema import OnboardingStep as S
from merchant_onboarding.schemas.merchant_schema import UploadType


class WelcomeOption(str, Enum):
    START = "Start new application"
    STATUS = "Check application status"


class ReturningOption(str, Enum):
    CONTINUE = "Continue my application"
    START_FRESH = "Start a fresh application"


class ServiceOption(str, Enum):
    PAYMENT_GATEWAY = "Payment Gateway"
    POS_MACHINE = "POS Machine"
    BOTH = "Both"


class CustomerTypeOption(str, Enum):
    EXISTING = "Yes, I am"
    NEW = "No, I'm new"


class KycLinkOption(str, Enum):
    LINK = "Yes, link this account"
    NEW_ACCOUNT = "No, create a new account"


class PricingAction(str, Enum):
    NEGOTIATE = "I need to negotiate"


class NegotiationOption(str, Enum):
    ACCEPT = "Accept revised offer"
    DISCUSS = "Discuss further modifications"


class EvaluationOption(str, Enum):
    DOWNLOAD = "Download Complete Application PDF"


class PdfOption(str, Enum):
    GENERATE = "Generate Complete PDF & Proceed"


class StatusMissOption(str, Enum):
    RETRY = "Try another contact"
    START = "Start new application"


# Labels used by earlier releases of the chat UI
_LEGACY_ALIASES: dict[str, Enum] = {
    "Download Application PDF": EvaluationOption.DOWNLOAD,
    "Generate PDF & Proceed": PdfOption.GENERATE,
}

E = TypeVar("E", bound=Enum)


def parse_option(option_set: type[E], label: str) -> Optional[E]:
    """Exact-match a label against one step's option set. Returns None if absent."""
    try:
        return option_set(label)
    except ValueError:
        alias = _LEGACY_ALIASES.get(label)
        if isinstance(alias, option_set):
            return alias
        return None


def labels(option_set: type[Enum]) -> tuple[str, ...]:
    return tuple(member.value for member in option_set)


@dataclass(frozen=True)
class Transition:
    """A single valid step transition."""

    from_step: S
    to_step: S
    trigger: str


TRANSITIONS: list[Transition] = [
    # --- Entry ---
    Transition(S.WELCOME, S.NAME, "start new application"),
    Transition(S.WELCOME, S.STATUS_CHECK_CONTACT, "check application status"),

    # --- Identity ---
    Transition(S.NAME, S.BUSINESS_NAME, "name given"),
    Transition(S.BUSINESS_NAME, S.EMAIL, "business name given"),
    Transition(S.EMAIL, S.SERVICE_SELECTION, "new email"),
    Transition(S.EMAIL, S.RETURNING_CUSTOMER, "stored email"),

    # --- Returning customer ---
    Transition(S.RETURNING_CUSTOMER, S.SERVICE_SELECTION, "start fresh / resume"),
    Transition(S.RETURNING_CUSTOMER, S.POS_OPTIONS, "resume"),
    Transition(S.RETURNING_CUSTOMER, S.PG_OPTIONS, "resume"),
    Transition(S.RETURNING_CUSTOMER, S.EXISTING_CUSTOMER, "resume"),
    Transition(S.RETURNING_CUSTOMER, S.MOBILE_NUMBER, "resume"),
    Transition(S.RETURNING_CUSTOMER, S.BUSINESS_CATEGORY, "resume"),
    Transition(S.RETURNING_CUSTOMER, S.ANNUAL_TURNOVER, "resume"),
    Transition(S.RETURNING_CUSTOMER, S.PRICING_OPTIONS, "resume"),
    Transition(S.RETURNING_CUSTOMER, S.GST_UPLOAD, "resume with plan chosen"),
    Transition(S.RETURNING_CUSTOMER, S.COMPLETED, "already complete"),

    # --- Service selection ---
    Transition(S.SERVICE_SELECTION, S.PG_OPTIONS, "payment gateway"),
    Transition(S.SERVICE_SELECTION, S.POS_OPTIONS, "pos machine / both"),
    Transition(S.POS_OPTIONS, S.PG_OPTIONS, "pos chosen, both services"),
    Transition(S.POS_OPTIONS, S.EXISTING_CUSTOMER, "pos chosen"),
    Transition(S.PG_OPTIONS, S.EXISTING_CUSTOMER, "pg plan chosen"),

    # --- Customer type ---
    Transition(S.EXISTING_CUSTOMER, S.MOBILE_NUMBER, "existing customer"),
    Transition(S.EXISTING_CUSTOMER, S.BUSINESS_CATEGORY, "new customer"),
    Transition(S.MOBILE_NUMBER, S.KYC_CONFIRMATION, "kyc found"),
    Transition(S.MOBILE_NUMBER, S.BUSINESS_CATEGORY, "kyc not found"),
    Transition(S.KYC_CONFIRMATION, S.PDF_GENERATION, "link account"),
    Transition(S.KYC_CONFIRMATION, S.COMPLETED, "create new account"),

    # --- New customer details and pricing ---
    Transition(S.BUSINESS_CATEGORY, S.ANNUAL_TURNOVER, "category chosen"),
    Transition(S.ANNUAL_TURNOVER, S.PRICING_OPTIONS, "turnover given"),
    Transition(S.PRICING_OPTIONS, S.GST_UPLOAD, "plan accepted"),
    Transition(S.PRICING_OPTIONS, S.NEGOTIATION, "negotiate"),
    Transition(S.NEGOTIATION, S.NEGOTIATION_RESPONSE, "request described"),
    Transition(S.NEGOTIATION_RESPONSE, S.GST_UPLOAD, "offer accepted"),
    Transition(S.NEGOTIATION_RESPONSE, S.NEGOTIATION, "discuss further"),

    # --- Documents ---
    Transition(S.GST_UPLOAD, S.PAN_UPLOAD, "gst uploaded"),
    Transition(S.PAN_UPLOAD, S.INCORPORATION_UPLOAD, "pan uploaded"),
    Transition(S.INCORPORATION_UPLOAD, S.MOA_UPLOAD, "incorporation uploaded"),
    Transition(S.MOA_UPLOAD, S.EVALUATION, "moa uploaded"),

    # --- Finalization ---
    Transition(S.EVALUATION, S.OTP_VERIFICATION, "download application"),
    Transition(S.PDF_GENERATION, S.OTP_VERIFICATION, "generate application"),
    Transition(S.OTP_VERIFICATION, S.COMPLETED, "otp verified"),

    # --- Status check ---
    Transition(S.STATUS_CHECK_CONTACT, S.STATUS_OTP_VERIFICATION, "application found"),
    Transition(S.STATUS_CHECK_CONTACT, S.NAME, "start new application"),
    Transition(S.STATUS_OTP_VERIFICATION, S.COMPLETED, "otp verified"),
]


def allowed_next_steps(step: S) -> set[S]:
    """All steps reachable from ``step`` in one transition, itself included."""
    return {t.to_step for t in TRANSITIONS if t.from_step == step} | {step}


UPLOAD_STEPS: dict[S, UploadType] = {
    S.GST_UPLOAD: UploadType.GST,
    S.PAN_UPLOAD: UploadType.PAN,
    S.INCORPORATION_UPLOAD: UploadType.INCORPORATION,
    S.MOA_UPLOAD: UploadType.MOA,
}

NEXT_UPLOAD_STEP: dict[S, S] = {
    S.GST_UPLOAD: S.PAN_UPLOAD,
    S.PAN_UPLOAD: S.INCORPORATION_UPLOAD,
    S.INCORPORATION_UPLOAD: S.MOA_UPLOAD,
    S.MOA_UPLOAD: S.EVALUATION,
}

OTP_STEPS = frozenset({S.OTP_VERIFICATION, S.STATUS_OTP_VERIFICATION})

# Steps a returning customer can be dropped back into from a stored record
RESUMABLE_STEPS = frozenset({
    S.SERVICE_SELECTION,
    S.POS_OPTIONS,
    S.PG_OPTIONS,
    S.EXISTING_CUSTOMER,
    S.MOBILE_NUMBER,
    S.BUSINESS_CATEGORY,
    S.ANNUAL_TURNOVER,
    S.PRICING_OPTIONS,
})

# Order used for the progress indicator
PROGRESS_ORDER: list[S] = [
    S.WELCOME,
    S.NAME,
    S.BUSINESS_NAME,
    S.EMAIL,
    S.SERVICE_SELECTION,
    S.POS_OPTIONS,
    S.PG_OPTIONS,
    S.EXISTING_CUSTOMER,
    S.MOBILE_NUMBER,
    S.BUSINESS_CATEGORY,
    S.ANNUAL_TURNOVER,
    S.PRICING_OPTIONS,
    S.NEGOTIATION,
    S.NEGOTIATION_RESPONSE,
    S.GST_UPLOAD,
    S.PAN_UPLOAD,
    S.INCORPORATION_UPLOAD,
    S.MOA_UPLOAD,
    S.EVALUATION,
    S.KYC_CONFIRMATION,
    S.PDF_GENERATION,
    S.OTP_VERIFICATION,
    S.COMPLETED,
]

_PROGRESS_ALIASES: dict[S, S] = {
    S.RETURNING_CUSTOMER: S.EMAIL,
    S.STATUS_CHECK_CONTACT: S.WELCOME,
    S.STATUS_OTP_VERIFICATION: S.WELCOME,
}


def progress_percent(step: S) -> int:
    """Position of ``step`` in the progress order as a whole percentage."""
    step = _PROGRESS_ALIASES.get(step, step)
    index = PROGRESS_ORDER.index(step)
    return round((index + 1) / len(PROGRESS_ORDER) * 100)
