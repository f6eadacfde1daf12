"""Shared test fixtures and helpers."""

from typing import Optional

import pytest

from merchant_onboarding.conversation.state_machine import DialogueStateMachine
from merchant_onboarding.orchestrator import OnboardingBot
from merchant_onboarding.schemas.conversation_schema import (
    OnboardingStep,
    OptionEvent,
    OtpEvent,
    Session,
    TextEvent,
    TransitionResult,
    UploadEvent,
)
from merchant_onboarding.schemas.merchant_schema import StoredCustomer, UploadType
from merchant_onboarding.tools.customer_store import InMemoryCustomerStore
from merchant_onboarding.tools.documents import SimulatedDocumentExtractor, UploadedFile
from merchant_onboarding.tools.export import TextApplicationExporter
from merchant_onboarding.tools.kyc import KYCDirectory
from merchant_onboarding.tools.otp import DemoOTPChallenge

FIXED_CASE_NUMBER = "CASE00001234"
MOBILE_CODE = "123456"
EMAIL_CODE = "654321"


@pytest.fixture
def store():
    return InMemoryCustomerStore()


@pytest.fixture
def machine(store):
    return DialogueStateMachine(
        customers=store,
        kyc_directory=KYCDirectory(),
        case_number_factory=lambda: FIXED_CASE_NUMBER,
    )


@pytest.fixture
def otp_challenge():
    return DemoOTPChallenge(codes={"mobile": MOBILE_CODE, "email": EMAIL_CODE})


@pytest.fixture
def exporter(tmp_path):
    return TextApplicationExporter(export_dir=str(tmp_path / "exports"))


@pytest.fixture
def bot(store, machine, exporter, otp_challenge):
    return OnboardingBot(
        store=store,
        extractor=SimulatedDocumentExtractor(),
        exporter=exporter,
        otp=otp_challenge,
        machine=machine,
        session_id="SESS-TEST",
    )


def text(value: str) -> TextEvent:
    return TextEvent(value=value)


def option(value: str) -> OptionEvent:
    return OptionEvent(value=value)


def upload(upload_type: UploadType, file_name: Optional[str] = None) -> UploadEvent:
    """Upload event carrying what the simulated extractor reads from the file."""
    file_name = file_name or f"{upload_type.value}.pdf"
    extracted = SimulatedDocumentExtractor().simulate_extract(
        upload_type, UploadedFile(name=file_name)
    )
    return UploadEvent(upload_type=upload_type, file_name=file_name, extracted=extracted)


def otp(*codes: str, verified: bool = True) -> OtpEvent:
    return OtpEvent(codes=codes, verified=verified)


def run_events(
    machine: DialogueStateMachine, events: list, session: Optional[Session] = None
) -> TransitionResult:
    """Feed events in order from ``session`` (or a fresh one) and return the last result."""
    result = machine.start("SESS-TEST") if session is None else None
    current = session if session is not None else result.session
    for event in events:
        result = machine.transition(current, event)
        current = result.session
    return result


IDENTITY_EVENTS = [
    option("Start new application"),
    text("Asha Rao"),
    text("Rao Traders"),
    text("asha@raotraders.in"),
]

NEW_CUSTOMER_TO_PRICING = IDENTITY_EVENTS + [
    option("Payment Gateway"),
    option("PG Growth"),
    option("No, I'm new"),
    option("Retail & Consumer Goods"),
    text("5-10 Cr"),
]

ALL_UPLOADS = [
    upload(UploadType.GST),
    upload(UploadType.PAN),
    upload(UploadType.INCORPORATION),
    upload(UploadType.MOA),
]


def at_step(machine: DialogueStateMachine, events: list, expected: OnboardingStep) -> Session:
    """Run ``events`` and assert the conversation landed on ``expected``."""
    result = run_events(machine, events)
    assert result.next_step == expected, result.messages
    return result.session


def stored_customer(store, email: str = "asha@raotraders.in", **overrides) -> StoredCustomer:
    """Insert a stored record the way an earlier visit would have."""
    values = {
        "id": store.new_id(),
        "name": "Asha Rao",
        "business_name": "Rao Traders",
        "email": email,
    }
    values.update(overrides)
    return store.upsert(StoredCustomer(**values))
