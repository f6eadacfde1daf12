"""
Onboarding bot facade: drives the state machine and its collaborators.

The state machine decides what happens; the bot makes it happen. It
holds the one live Session, feeds it events, runs the side effects the
machine asks for (export, OTP dispatch), and writes checkpoints to the
customer store at the steps a returning merchant can resume from.

Collaborator failures never crash the conversation. They are logged with
a traceback and the merchant gets an apology with the step unchanged.
"""

import functools
import re
import uuid
from typing import Iterable, Optional, Union

from merchant_onboarding.config import settings
from merchant_onboarding.conversation.state_machine import DialogueStateMachine
from merchant_onboarding.conversation.steps import OTP_STEPS, progress_percent
from merchant_onboarding.conversation.validation import is_valid_otp
from merchant_onboarding.logging_context import get_session_logger, session_context
from merchant_onboarding.prompts import messages as msg
from merchant_onboarding.prompts.faq import answer_question
from merchant_onboarding.prompts.templates import build_otp_resent
from merchant_onboarding.schemas.conversation_schema import (
    DialogueEvent,
    OnboardingStep,
    OptionEvent,
    OtpEvent,
    Session,
    SideEffect,
    TextEvent,
    TransitionResult,
    UploadEvent,
)
from merchant_onboarding.schemas.merchant_schema import (
    ConversationEntry,
    Representative,
    StoredCustomer,
    UploadType,
)
from merchant_onboarding.tools.customer_store import CustomerStore
from merchant_onboarding.tools.documents import (
    DocumentExtractor,
    SimulatedDocumentExtractor,
    UnsupportedDocumentError,
    UploadedFile,
)
from merchant_onboarding.tools.export import PDFExporter, TextApplicationExporter
from merchant_onboarding.tools.otp import DemoOTPChallenge, OTPChallenge

logger = get_session_logger(__name__)

# Landing on these steps writes a checkpoint
_CHECKPOINT_STEPS = frozenset({
    OnboardingStep.POS_OPTIONS,
    OnboardingStep.PG_OPTIONS,
    OnboardingStep.KYC_CONFIRMATION,
    OnboardingStep.COMPLETED,
})

_OTP_SEPARATORS = re.compile(r"[\s,]+")


def new_session_id() -> str:
    return f"SESS-{uuid.uuid4().hex[:12]}"


def _bound_to_session(method):
    """Run a bot method with its session ID on every log record."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with session_context(self._session.session_id):
            return method(self, *args, **kwargs)

    return wrapper


class OnboardingBot:
    """
    One merchant's onboarding conversation.

    Usage:
        bot = OnboardingBot(store=InMemoryCustomerStore())
        bot.start()
        bot.select_option("Start new application")
        bot.submit_text("Asha Rao")
    """

    def __init__(
        self,
        store: CustomerStore,
        extractor: Optional[DocumentExtractor] = None,
        exporter: Optional[PDFExporter] = None,
        otp: Optional[OTPChallenge] = None,
        machine: Optional[DialogueStateMachine] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._store = store
        self._extractor = extractor or SimulatedDocumentExtractor()
        self._exporter = exporter or TextApplicationExporter()
        self._otp = otp or DemoOTPChallenge()
        self._machine = machine or DialogueStateMachine(customers=store)
        self._session = Session.new(session_id or new_session_id())

    @property
    def session(self) -> Session:
        return self._session

    @property
    def step(self) -> OnboardingStep:
        return self._session.step

    @property
    def progress(self) -> int:
        """Completion percentage for the current step."""
        return progress_percent(self._session.step)

    # ------------------------------------------------------------------ #
    # Merchant input
    # ------------------------------------------------------------------ #

    @_bound_to_session
    def start(self) -> TransitionResult:
        result = self._machine.start(self._session.session_id)
        self._session = result.session
        logger.info("Onboarding session started")
        return result

    def submit_text(self, text: str) -> TransitionResult:
        """Free-text reply. At an OTP step the text is read as the OTP code(s)."""
        if self._session.step in OTP_STEPS:
            return self.verify_otp(c for c in _OTP_SEPARATORS.split(text.strip()) if c)
        return self._handle(TextEvent(value=text))

    def select_option(self, label: str) -> TransitionResult:
        return self._handle(OptionEvent(value=label))

    @_bound_to_session
    def complete_upload(
        self, upload_type: Union[UploadType, str], file_name: str, content: bytes = b""
    ) -> TransitionResult:
        upload_type = UploadType(upload_type)
        try:
            extracted = self._extractor.simulate_extract(
                upload_type, UploadedFile(name=file_name, content=content)
            )
        except UnsupportedDocumentError as exc:
            logger.info("Upload rejected: %s", exc)
            return self._stay(str(exc))
        except Exception:
            logger.exception("Document extraction failed for %s", file_name)
            return self._stay(msg.COLLABORATOR_FAILURE)
        return self._handle(
            UploadEvent(upload_type=upload_type, file_name=file_name, extracted=extracted)
        )

    @_bound_to_session
    def verify_otp(self, codes: Iterable[str]) -> TransitionResult:
        """Check OTP codes, one per channel in the order they were sent."""
        codes = tuple(c.strip() for c in codes)
        channels = self._current_otp_channels()
        verified = False
        if channels and len(codes) == len(channels) and all(is_valid_otp(c) for c in codes):
            try:
                verified = self._otp.verify(channels, codes)
            except Exception:
                logger.exception("OTP verification failed")
                return self._stay(msg.COLLABORATOR_FAILURE)
            if not verified:
                logger.info("OTP rejected")
        return self._handle(OtpEvent(codes=codes, verified=verified))

    @_bound_to_session
    def resend_otp(self, channel: Optional[str] = None) -> TransitionResult:
        """Send the current step's OTP again, to one channel or to all of them."""
        channels = self._current_otp_channels()
        if channel is not None:
            channels = {k: v for k, v in channels.items() if k == channel}
        if not channels:
            return self._stay(msg.RESEND_UNAVAILABLE)
        try:
            self._otp.send(channels)
        except Exception:
            logger.exception("OTP resend failed")
            return self._stay(msg.COLLABORATOR_FAILURE)
        return self._stay(build_otp_resent(channels), accepted=True)

    def ask(self, question: str) -> TransitionResult:
        """Answer a side question without moving the conversation."""
        return self._stay(answer_question(question), accepted=True)

    # ------------------------------------------------------------------ #
    # Event handling
    # ------------------------------------------------------------------ #

    @_bound_to_session
    def _handle(self, event: DialogueEvent) -> TransitionResult:
        previous = self._session
        result = self._machine.transition(previous, event)

        for action in result.actions:
            if not self._run_action(action, result.session):
                return self._stay(msg.COLLABORATOR_FAILURE)

        if self._should_checkpoint(previous, result, event):
            try:
                self._checkpoint(result.session, event)
            except Exception:
                logger.exception("Checkpoint failed at %s", result.session.step.value)
                return self._stay(msg.COLLABORATOR_FAILURE)
        elif previous.step == OnboardingStep.RETURNING_CUSTOMER and result.session.step != previous.step:
            self._record_return(result.session)

        self._session = result.session
        return result

    def _run_action(self, action: SideEffect, session: Session) -> bool:
        try:
            if action == SideEffect.EXPORT_APPLICATION:
                self._exporter.export(session)
            elif action == SideEffect.SEND_ONBOARDING_OTP:
                self._otp.send(self._machine.otp_channels(session.fields))
            elif action == SideEffect.SEND_STATUS_OTP:
                self._otp.send(self._machine.status_channels(session.fields))
        except Exception:
            logger.exception("Action %s failed", action.value)
            return False
        return True

    def _stay(self, message: str, accepted: bool = False) -> TransitionResult:
        prompt = self._machine.prompt_for(self._session.step, self._session)
        return TransitionResult(
            session=self._session,
            messages=(message,),
            options=prompt.options,
            accepted=accepted,
        )

    def _current_otp_channels(self) -> dict[str, str]:
        step = self._session.step
        if step == OnboardingStep.OTP_VERIFICATION:
            return self._machine.otp_channels(self._session.fields)
        if step == OnboardingStep.STATUS_OTP_VERIFICATION:
            return self._machine.status_channels(self._session.fields)
        return {}

    # ------------------------------------------------------------------ #
    # Checkpoints
    # ------------------------------------------------------------------ #

    @staticmethod
    def _should_checkpoint(
        previous: Session, result: TransitionResult, event: DialogueEvent
    ) -> bool:
        session = result.session
        if not result.accepted or not session.fields.email:
            return False
        if isinstance(event, UploadEvent):
            return True
        return session.step != previous.step and session.step in _CHECKPOINT_STEPS

    def _checkpoint(self, session: Session, event: DialogueEvent) -> None:
        previous = self._store.find_by_email(session.fields.email)
        biz = settings.business
        representative = Representative(
            name=biz.representative_name, mobile=biz.representative_mobile
        )
        customer = StoredCustomer.from_session(
            session, self._store.new_id(), previous, representative
        )
        entry = ConversationEntry(step=session.step.value, data=self._entry_data(session, event))
        self._store.upsert(customer.with_entry(entry))
        logger.debug("Checkpoint written at %s", session.step.value)

    @staticmethod
    def _entry_data(session: Session, event: DialogueEvent) -> dict:
        f = session.fields
        if isinstance(event, UploadEvent):
            return {"document": event.upload_type.value, "file_name": event.file_name}
        if session.step == OnboardingStep.POS_OPTIONS:
            return {"service_type": f.service_type.value if f.service_type else None}
        if session.step == OnboardingStep.PG_OPTIONS:
            return {"selected_pos_model": f.selected_pos_model}
        if session.step == OnboardingStep.KYC_CONFIRMATION:
            return {"mobile_number": f.mobile_number}
        return {"case_number": session.case_number}

    def _record_return(self, session: Session) -> None:
        """Note in the stored history where a returning merchant picked up."""
        try:
            self._store.record_progress(
                session.fields.email, session.step.value, {"returning_visit": True}
            )
        except Exception:
            logger.exception("Could not record return visit for %s", session.fields.email)


class SpeechInput:
    """Feeds recognized speech to the bot as if it were typed."""

    def __init__(self, bot: OnboardingBot) -> None:
        self._bot = bot

    def on_result(self, text: str) -> Optional[TransitionResult]:
        """Handle one final recognition result. Empty transcripts are ignored."""
        if not text.strip():
            return None
        return self._bot.submit_text(text)
