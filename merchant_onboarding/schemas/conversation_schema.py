"""Session state, dialogue events and transition results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from merchant_onboarding.schemas.merchant_schema import MerchantFields, UploadType
from merchant_onboarding.utils import normalize_email


class OnboardingStep(str, Enum):
    """Every position the onboarding conversation can be in."""

    WELCOME = "welcome"
    NAME = "name"
    BUSINESS_NAME = "businessName"
    EMAIL = "email"
    RETURNING_CUSTOMER = "returningCustomer"
    SERVICE_SELECTION = "serviceSelection"
    POS_OPTIONS = "posOptions"
    PG_OPTIONS = "pgOptions"
    EXISTING_CUSTOMER = "existingCustomer"
    MOBILE_NUMBER = "mobileNumber"
    KYC_CONFIRMATION = "kycConfirmation"
    BUSINESS_CATEGORY = "businessCategory"
    ANNUAL_TURNOVER = "annualTurnover"
    PRICING_OPTIONS = "pricingOptions"
    NEGOTIATION = "negotiation"
    NEGOTIATION_RESPONSE = "negotiationResponse"
    GST_UPLOAD = "gstUpload"
    PAN_UPLOAD = "panUpload"
    INCORPORATION_UPLOAD = "incorporationUpload"
    MOA_UPLOAD = "moaUpload"
    EVALUATION = "evaluation"
    PDF_GENERATION = "pdfGeneration"
    OTP_VERIFICATION = "otpVerification"
    COMPLETED = "completed"
    STATUS_CHECK_CONTACT = "statusCheckContact"
    STATUS_OTP_VERIFICATION = "statusOTPVerification"


class ImmutableFieldError(Exception):
    """Raised when a session patch tries to overwrite a write-once field."""


class StepVisit(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: OnboardingStep
    entered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Session(BaseModel):
    """
    One onboarding conversation.

    Sessions are immutable: ``advance`` returns a new Session with the
    step moved and the field patch applied, leaving the original intact.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    step: OnboardingStep = OnboardingStep.WELCOME
    fields: MerchantFields = Field(default_factory=MerchantFields)
    case_number: Optional[str] = None
    history: tuple[StepVisit, ...] = ()

    @classmethod
    def new(cls, session_id: str) -> Session:
        return cls(
            session_id=session_id,
            history=(StepVisit(step=OnboardingStep.WELCOME),),
        )

    def advance(self, step: OnboardingStep, **patch: Any) -> Session:
        """Move to ``step`` and apply a field patch.

        Raises:
            ImmutableFieldError: If the patch would change an already-set email.
        """
        if "email" in patch and self.fields.email:
            if normalize_email(patch["email"]) != normalize_email(self.fields.email):
                raise ImmutableFieldError(
                    f"Email is already set to '{self.fields.email}' for this session"
                )
        fields = self.fields.model_copy(update=patch) if patch else self.fields
        history = self.history
        if step != self.step:
            history = history + (StepVisit(step=step),)
        return self.model_copy(update={"step": step, "fields": fields, "history": history})

    def with_case_number(self, case_number: str) -> Session:
        return self.model_copy(update={"case_number": case_number})

    def step_trace(self) -> list[str]:
        return [visit.step.value for visit in self.history]


# --- Events ---------------------------------------------------------------


class TextEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    value: str


class OptionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["option"] = "option"
    value: str


class UploadEvent(BaseModel):
    """An upload finished; ``extracted`` is the partial KYC patch read from it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["upload"] = "upload"
    upload_type: UploadType
    file_name: str
    extracted: dict[str, Any] = Field(default_factory=dict)


class OtpEvent(BaseModel):
    """OTP codes the merchant entered and whether the challenge accepted them."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["otp"] = "otp"
    codes: tuple[str, ...]
    verified: bool


DialogueEvent = Annotated[
    Union[TextEvent, OptionEvent, UploadEvent, OtpEvent],
    Field(discriminator="kind"),
]


class SideEffect(str, Enum):
    """Collaborator calls the orchestrator must make after a transition."""

    EXPORT_APPLICATION = "export_application"
    SEND_ONBOARDING_OTP = "send_onboarding_otp"
    SEND_STATUS_OTP = "send_status_otp"


class TransitionResult(BaseModel):
    """Outcome of feeding one event to the state machine."""

    model_config = ConfigDict(frozen=True)

    session: Session
    messages: tuple[str, ...] = ()
    options: tuple[str, ...] = ()
    actions: tuple[SideEffect, ...] = ()
    accepted: bool = True

    @property
    def next_step(self) -> OnboardingStep:
        return self.session.step
