"""
Deterministic dialogue state machine for merchant onboarding.

The machine is pure: ``transition(session, event)`` returns a new Session
plus the messages, options and side-effect actions for the caller. It
never writes to the store, exports files or sends OTPs itself; those
collaborators are driven by the orchestrator from ``actions``.

Every step change is checked against the transition table in
``steps.py``. A handler that tries to take an edge that is not listed
raises InvalidTransitionError, which signals a programming error rather
than bad merchant input.

Usage:
    machine = DialogueStateMachine(customers=store)
    result = machine.start("SESS-1")
    result = machine.transition(result.session, OptionEvent(value="Start new application"))
    assert result.next_step == OnboardingStep.NAME
"""

import time
from typing import Callable, NamedTuple, Optional, Protocol

from merchant_onboarding.config import NegotiationConfig, settings
from merchant_onboarding.conversation.steps import (
    NEXT_UPLOAD_STEP,
    OTP_STEPS,
    RESUMABLE_STEPS,
    UPLOAD_STEPS,
    CustomerTypeOption,
    EvaluationOption,
    KycLinkOption,
    NegotiationOption,
    PdfOption,
    PricingAction,
    ReturningOption,
    ServiceOption,
    StatusMissOption,
    WelcomeOption,
    allowed_next_steps,
    labels,
    parse_option,
)
from merchant_onboarding.conversation.validation import (
    is_non_empty,
    is_valid_email,
    is_valid_mobile,
    is_valid_name,
    is_valid_otp,
    is_valid_pan,
)
from merchant_onboarding.logging_context import get_session_logger, session_context
from merchant_onboarding.prompts import messages as msg
from merchant_onboarding.prompts.templates import (
    build_already_complete,
    build_completion,
    build_counter_offer_message,
    build_documents_complete,
    build_greeting,
    build_kyc_found,
    build_link_confirmed,
    build_new_account_summary,
    build_otp_dispatch,
    build_pg_catalog,
    build_pos_catalog,
    build_pricing_offer,
    build_resume_notice,
    build_returning_customer_prompt,
    build_status_not_found,
    build_status_otp_dispatch,
    build_upload_received,
)
from merchant_onboarding.schemas.conversation_schema import (
    DialogueEvent,
    OnboardingStep as S,
    OptionEvent,
    OtpEvent,
    Session,
    SideEffect,
    TextEvent,
    TransitionResult,
    UploadEvent,
)
from merchant_onboarding.schemas.merchant_schema import (
    KYCRecord,
    MerchantFields,
    ServiceType,
    StoredCustomer,
    UploadType,
)
from merchant_onboarding.tools.catalog import (
    BUSINESS_CATEGORIES,
    build_counter_offer,
    find_business_category,
    find_pg_plan,
    find_pos_model,
    find_pricing_plan,
    pg_labels,
    pos_labels,
    pricing_labels,
    recommend_pricing_plan,
)
from merchant_onboarding.tools.customer_store import summarize
from merchant_onboarding.tools.kyc import KYCDirectory
from merchant_onboarding.tools.otp import EMAIL, MOBILE
from merchant_onboarding.utils import normalize_email, normalize_mobile

logger = get_session_logger(__name__)

# Fields a resumed session keeps from what the merchant just typed
_RESUME_KEEP = {"name", "business_name", "email"}


class InvalidTransitionError(Exception):
    """Raised when a handler tries to take an edge missing from the transition table."""


class CustomerLookup(Protocol):
    def find_by_email(self, email: str) -> Optional[StoredCustomer]: ...

    def find_by_mobile(self, mobile_number: str) -> Optional[StoredCustomer]: ...


class KYCLookup(Protocol):
    def fetch(self, mobile_number: str) -> Optional[KYCRecord]: ...


class Prompt(NamedTuple):
    """What the bot says, and which buttons it shows, on entering a step."""

    message: str
    options: tuple[str, ...] = ()


def generate_case_number() -> str:
    """Case reference shown at completion: ``CASE`` plus the last 8 digits of epoch ms."""
    return f"CASE{str(int(time.time() * 1000))[-8:]}"


class DialogueStateMachine:
    """Maps (session, event) to the next session and what to tell the merchant."""

    def __init__(
        self,
        customers: CustomerLookup,
        kyc_directory: Optional[KYCLookup] = None,
        case_number_factory: Callable[[], str] = generate_case_number,
        negotiation: NegotiationConfig = settings.negotiation,
    ) -> None:
        self._customers = customers
        self._kyc = kyc_directory or KYCDirectory()
        self._case_number_factory = case_number_factory
        self._negotiation = negotiation

        self._text_handlers: dict[S, Callable[[Session, str], TransitionResult]] = {
            S.NAME: self._on_name,
            S.BUSINESS_NAME: self._on_business_name,
            S.EMAIL: self._on_email,
            S.MOBILE_NUMBER: self._on_mobile,
            S.BUSINESS_CATEGORY: self._on_category_text,
            S.ANNUAL_TURNOVER: self._on_turnover,
            S.NEGOTIATION: self._on_negotiation,
            S.STATUS_CHECK_CONTACT: self._on_status_contact,
        }
        self._option_handlers: dict[S, Callable[[Session, str], TransitionResult]] = {
            S.WELCOME: self._on_welcome,
            S.RETURNING_CUSTOMER: self._on_returning,
            S.SERVICE_SELECTION: self._on_service,
            S.POS_OPTIONS: self._on_pos_model,
            S.PG_OPTIONS: self._on_pg_plan,
            S.EXISTING_CUSTOMER: self._on_customer_type,
            S.KYC_CONFIRMATION: self._on_kyc_link,
            S.BUSINESS_CATEGORY: self._on_category_option,
            S.PRICING_OPTIONS: self._on_pricing,
            S.NEGOTIATION_RESPONSE: self._on_negotiation_response,
            S.EVALUATION: self._on_evaluation,
            S.PDF_GENERATION: self._on_pdf_generation,
            S.STATUS_CHECK_CONTACT: self._on_status_miss,
        }

    # --- Public API ---------------------------------------------------------

    def start(self, session_id: str) -> TransitionResult:
        session = Session.new(session_id)
        prompt = self.prompt_for(S.WELCOME, session)
        return TransitionResult(session=session, messages=(prompt.message,), options=prompt.options)

    def transition(self, session: Session, event: DialogueEvent) -> TransitionResult:
        """
        Feed one event to the machine.

        Returns:
            The new session with messages, options and actions. Rejected
            input returns the unchanged session with ``accepted=False``.

        Raises:
            InvalidTransitionError: If a handler picks an edge that is not in the table.
        """
        with session_context(session.session_id):
            return self._transition(session, event)

    def _transition(self, session: Session, event: DialogueEvent) -> TransitionResult:
        if session.step == S.COMPLETED:
            return self._reject(session, msg.ALREADY_COMPLETED, options=())

        if isinstance(event, TextEvent):
            result = self._dispatch_text(session, event.value)
        elif isinstance(event, OptionEvent):
            result = self._dispatch_option(session, event.value)
        elif isinstance(event, UploadEvent):
            result = self._on_upload(session, event)
        elif isinstance(event, OtpEvent):
            result = self._on_otp(session, event)
        else:
            raise TypeError(f"Unsupported event: {type(event).__name__}")

        self._check_edge(session.step, result.session.step)
        if result.session.step != session.step:
            logger.info("Step %s -> %s", session.step.value, result.session.step.value)
        return result

    def options_for(self, step: S, fields: Optional[MerchantFields] = None) -> tuple[str, ...]:
        """Buttons offered at ``step``. Empty for free-text and upload steps."""
        if step == S.WELCOME:
            return labels(WelcomeOption)
        if step == S.RETURNING_CUSTOMER:
            return labels(ReturningOption)
        if step == S.SERVICE_SELECTION:
            return labels(ServiceOption)
        if step == S.POS_OPTIONS:
            return tuple(pos_labels())
        if step == S.PG_OPTIONS:
            return tuple(pg_labels())
        if step == S.EXISTING_CUSTOMER:
            return labels(CustomerTypeOption)
        if step == S.KYC_CONFIRMATION:
            return labels(KycLinkOption)
        if step == S.BUSINESS_CATEGORY:
            return tuple(BUSINESS_CATEGORIES)
        if step == S.PRICING_OPTIONS:
            return tuple(pricing_labels()) + labels(PricingAction)
        if step == S.NEGOTIATION_RESPONSE:
            return labels(NegotiationOption)
        if step == S.EVALUATION:
            return labels(EvaluationOption)
        if step == S.PDF_GENERATION:
            return labels(PdfOption)
        if step == S.STATUS_CHECK_CONTACT:
            return labels(StatusMissOption)
        return ()

    def prompt_for(self, step: S, session: Session) -> Prompt:
        """Entry prompt for ``step``, used on entering it and when resuming."""
        f = session.fields
        options = self.options_for(step)
        if step == S.WELCOME:
            return Prompt(msg.WELCOME, options)
        if step == S.NAME:
            return Prompt(msg.ASK_NAME)
        if step == S.BUSINESS_NAME:
            return Prompt(build_greeting(f.name))
        if step == S.EMAIL:
            return Prompt(msg.ASK_EMAIL)
        if step == S.RETURNING_CUSTOMER:
            return Prompt(msg.ASK_RETURNING, options)
        if step == S.SERVICE_SELECTION:
            return Prompt(msg.ASK_SERVICE, options)
        if step == S.POS_OPTIONS:
            return Prompt(build_pos_catalog(), options)
        if step == S.PG_OPTIONS:
            return Prompt(build_pg_catalog(), options)
        if step == S.EXISTING_CUSTOMER:
            return Prompt(msg.ASK_EXISTING_CUSTOMER, options)
        if step == S.MOBILE_NUMBER:
            return Prompt(msg.ASK_MOBILE)
        if step == S.KYC_CONFIRMATION:
            return Prompt(build_kyc_found(f.kyc or KYCRecord()), options)
        if step == S.BUSINESS_CATEGORY:
            return Prompt(msg.ASK_CATEGORY, options)
        if step == S.ANNUAL_TURNOVER:
            return Prompt(msg.ASK_TURNOVER)
        if step == S.PRICING_OPTIONS:
            plan_id = recommend_pricing_plan(f.annual_turnover)
            return Prompt(build_pricing_offer(plan_id, f.annual_turnover), options)
        if step == S.NEGOTIATION:
            return Prompt(msg.ASK_NEGOTIATION)
        if step == S.NEGOTIATION_RESPONSE:
            offer = self._counter_offer(f)
            round_number = max(len(f.negotiation_notes), 1)
            return Prompt(build_counter_offer_message(offer, round_number), options)
        if step in UPLOAD_STEPS:
            return Prompt(msg.UPLOAD_REQUEST[UPLOAD_STEPS[step]])
        if step == S.EVALUATION:
            return Prompt(build_documents_complete(f), options)
        if step == S.PDF_GENERATION:
            return Prompt(build_link_confirmed(f.kyc or KYCRecord()), options)
        if step == S.OTP_VERIFICATION:
            return Prompt(build_otp_dispatch(self.otp_channels(f)))
        if step == S.STATUS_CHECK_CONTACT:
            return Prompt(msg.ASK_STATUS_CONTACT)
        if step == S.STATUS_OTP_VERIFICATION:
            return Prompt(build_status_otp_dispatch(f.status_contact or ""))
        return Prompt(msg.ALREADY_COMPLETED)

    @staticmethod
    def otp_channels(fields: MerchantFields) -> dict[str, str]:
        """Sign-off OTP destinations: mobile (when known) then email."""
        channels = {}
        if fields.mobile_number:
            channels[MOBILE] = fields.mobile_number
        channels[EMAIL] = fields.email
        return channels

    @staticmethod
    def status_channels(fields: MerchantFields) -> dict[str, str]:
        """Status-check OTP goes to whichever contact the merchant typed."""
        contact = fields.status_contact or ""
        if is_valid_email(contact):
            return {EMAIL: contact}
        return {MOBILE: contact}

    # --- Dispatch -----------------------------------------------------------

    def _dispatch_text(self, session: Session, text: str) -> TransitionResult:
        handler = self._text_handlers.get(session.step)
        if handler is not None:
            return handler(session, text)
        if session.step in OTP_STEPS:
            return self._reject(session, msg.ENTER_OTP, options=())
        if session.step in self._option_handlers:
            # Typed button labels are treated as if the button was pressed
            return self._option_handlers[session.step](session, text.strip())
        return self._reject(session, self.prompt_for(session.step, session).message)

    def _dispatch_option(self, session: Session, label: str) -> TransitionResult:
        handler = self._option_handlers.get(session.step)
        if handler is None:
            logger.warning("Option %r offered at step without options: %s", label, session.step.value)
            return self._reject(session, self.prompt_for(session.step, session).message)
        return handler(session, label)

    def _check_edge(self, from_step: S, to_step: S) -> None:
        allowed = allowed_next_steps(from_step)
        if to_step not in allowed:
            raise InvalidTransitionError(
                f"No transition from '{from_step.value}' to '{to_step.value}'. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

    # --- Result helpers -----------------------------------------------------

    def _go(
        self,
        session: Session,
        step: S,
        lead: tuple[str, ...] = (),
        message: Optional[str] = None,
        actions: tuple[SideEffect, ...] = (),
        **patch,
    ) -> TransitionResult:
        """Advance to ``step`` and emit its entry prompt, optionally preceded by ``lead``."""
        new_session = session.advance(step, **patch)
        prompt = self.prompt_for(step, new_session)
        return TransitionResult(
            session=new_session,
            messages=lead + ((message if message is not None else prompt.message),),
            options=prompt.options,
            actions=actions,
        )

    def _reject(
        self, session: Session, message: str, options: Optional[tuple[str, ...]] = None
    ) -> TransitionResult:
        if options is None:
            options = self.prompt_for(session.step, session).options
        return TransitionResult(session=session, messages=(message,), options=options, accepted=False)

    def _unrecognized(self, session: Session, label: str) -> TransitionResult:
        logger.warning("Unrecognized option %r at step %s", label, session.step.value)
        return self._reject(session, msg.CHOOSE_OPTION, options=self.options_for(session.step))

    # --- Entry and identity -------------------------------------------------

    def _on_welcome(self, session: Session, label: str) -> TransitionResult:
        choice = parse_option(WelcomeOption, label)
        if choice == WelcomeOption.START:
            return self._go(session, S.NAME)
        if choice == WelcomeOption.STATUS:
            return self._go(session, S.STATUS_CHECK_CONTACT)
        return self._unrecognized(session, label)

    def _on_name(self, session: Session, text: str) -> TransitionResult:
        if not is_valid_name(text):
            return self._reject(session, msg.RETRY_NAME)
        return self._go(session, S.BUSINESS_NAME, name=text.strip())

    def _on_business_name(self, session: Session, text: str) -> TransitionResult:
        if not is_non_empty(text):
            return self._reject(session, msg.RETRY_BUSINESS_NAME)
        return self._go(session, S.EMAIL, business_name=text.strip())

    def _on_email(self, session: Session, text: str) -> TransitionResult:
        if not is_valid_email(text):
            return self._reject(session, msg.RETRY_EMAIL)
        email = normalize_email(text)
        stored = self._customers.find_by_email(email)
        if stored is None:
            return self._go(session, S.SERVICE_SELECTION, email=email)
        logger.info("Returning customer recognized: %s", stored.id)
        return self._go(
            session,
            S.RETURNING_CUSTOMER,
            message=build_returning_customer_prompt(summarize(stored)),
            email=email,
        )

    def _on_returning(self, session: Session, label: str) -> TransitionResult:
        choice = parse_option(ReturningOption, label)
        if choice == ReturningOption.START_FRESH:
            return self._go(session, S.SERVICE_SELECTION)
        if choice != ReturningOption.CONTINUE:
            return self._unrecognized(session, label)

        stored = self._customers.find_by_email(session.fields.email)
        if stored is None:
            logger.warning("Stored record vanished for %s; starting fresh", session.fields.email)
            return self._go(session, S.SERVICE_SELECTION)

        restored = stored.to_fields().model_dump(exclude=_RESUME_KEEP, exclude_defaults=True)
        if stored.is_onboarding_complete:
            completed = session.advance(S.COMPLETED, **restored)
            if stored.case_number:
                completed = completed.with_case_number(stored.case_number)
            return TransitionResult(
                session=completed, messages=(build_already_complete(stored.case_number),)
            )

        step = self._resume_step(stored)
        return self._go(
            session, step, lead=(build_resume_notice(step.value),), **restored
        )

    @staticmethod
    def _resume_step(stored: StoredCustomer) -> S:
        """Where a returning merchant picks up. Uploads are never stored, so they restart."""
        try:
            step = S(stored.onboarding_step) if stored.onboarding_step else S.SERVICE_SELECTION
        except ValueError:
            logger.warning("Unknown stored step %r", stored.onboarding_step)
            return S.SERVICE_SELECTION
        if step in RESUMABLE_STEPS:
            return step
        if stored.selected_pricing_plan and (step in UPLOAD_STEPS or step == S.EVALUATION):
            return S.GST_UPLOAD
        return S.SERVICE_SELECTION

    # --- Services -----------------------------------------------------------

    def _on_service(self, session: Session, label: str) -> TransitionResult:
        choice = parse_option(ServiceOption, label)
        if choice == ServiceOption.PAYMENT_GATEWAY:
            return self._go(session, S.PG_OPTIONS, service_type=ServiceType.PAYMENT_GATEWAY)
        if choice == ServiceOption.POS_MACHINE:
            return self._go(session, S.POS_OPTIONS, service_type=ServiceType.POS_MACHINE)
        if choice == ServiceOption.BOTH:
            return self._go(session, S.POS_OPTIONS, service_type=ServiceType.BOTH)
        return self._unrecognized(session, label)

    def _on_pos_model(self, session: Session, label: str) -> TransitionResult:
        if find_pos_model(label) is None:
            return self._unrecognized(session, label)
        next_step = S.PG_OPTIONS if session.fields.service_type == ServiceType.BOTH else S.EXISTING_CUSTOMER
        return self._go(session, next_step, selected_pos_model=label)

    def _on_pg_plan(self, session: Session, label: str) -> TransitionResult:
        if find_pg_plan(label) is None:
            return self._unrecognized(session, label)
        return self._go(session, S.EXISTING_CUSTOMER, selected_pg_plan=label)

    # --- Existing customer / KYC --------------------------------------------

    def _on_customer_type(self, session: Session, label: str) -> TransitionResult:
        choice = parse_option(CustomerTypeOption, label)
        if choice == CustomerTypeOption.EXISTING:
            return self._go(session, S.MOBILE_NUMBER, is_existing_customer=True)
        if choice == CustomerTypeOption.NEW:
            return self._go(session, S.BUSINESS_CATEGORY, is_existing_customer=False)
        return self._unrecognized(session, label)

    def _on_mobile(self, session: Session, text: str) -> TransitionResult:
        if not is_valid_mobile(text):
            return self._reject(session, msg.RETRY_MOBILE)
        mobile = normalize_mobile(text)
        kyc = self._kyc.fetch(mobile)
        if kyc is None:
            return self._go(
                session,
                S.BUSINESS_CATEGORY,
                message=msg.KYC_NOT_FOUND,
                mobile_number=mobile,
                is_existing_customer=False,
            )
        return self._go(
            session, S.KYC_CONFIRMATION, lead=(msg.FETCHING_KYC,), mobile_number=mobile, kyc=kyc
        )

    def _on_kyc_link(self, session: Session, label: str) -> TransitionResult:
        choice = parse_option(KycLinkOption, label)
        f = session.fields
        if choice == KycLinkOption.LINK:
            kyc = (f.kyc or KYCRecord()).merge(
                {"full_name": f.name, "business_name": f.business_name}
            )
            return self._go(session, S.PDF_GENERATION, confirm_linking=True, kyc=kyc)
        if choice == KycLinkOption.NEW_ACCOUNT:
            completed = session.advance(S.COMPLETED, confirm_linking=False)
            return TransitionResult(
                session=completed, messages=(build_new_account_summary(completed.fields),)
            )
        return self._unrecognized(session, label)

    # --- New customer details and pricing ----------------------------------

    def _on_category_option(self, session: Session, label: str) -> TransitionResult:
        category = find_business_category(label)
        if category is None:
            return self._unrecognized(session, label)
        return self._go(session, S.ANNUAL_TURNOVER, business_category=category)

    def _on_category_text(self, session: Session, text: str) -> TransitionResult:
        if not is_non_empty(text):
            return self._reject(session, msg.ASK_CATEGORY)
        category = find_business_category(text) or text.strip()
        return self._go(session, S.ANNUAL_TURNOVER, business_category=category)

    def _on_turnover(self, session: Session, text: str) -> TransitionResult:
        if not is_non_empty(text):
            return self._reject(session, msg.RETRY_TURNOVER)
        return self._go(session, S.PRICING_OPTIONS, annual_turnover=text.strip())

    def _on_pricing(self, session: Session, label: str) -> TransitionResult:
        if parse_option(PricingAction, label) == PricingAction.NEGOTIATE:
            return self._go(session, S.NEGOTIATION)
        if find_pricing_plan(label) is None:
            return self._unrecognized(session, label)
        return self._go(session, S.GST_UPLOAD, selected_pricing_plan=label)

    def _on_negotiation(self, session: Session, text: str) -> TransitionResult:
        if not is_non_empty(text):
            return self._reject(session, msg.RETRY_NEGOTIATION)
        notes = session.fields.negotiation_notes + (text.strip(),)
        return self._go(session, S.NEGOTIATION_RESPONSE, negotiation_notes=notes)

    def _on_negotiation_response(self, session: Session, label: str) -> TransitionResult:
        choice = parse_option(NegotiationOption, label)
        if choice == NegotiationOption.ACCEPT:
            offer = self._counter_offer(session.fields)
            return self._go(session, S.GST_UPLOAD, selected_pricing_plan=offer["label"])
        if choice == NegotiationOption.DISCUSS:
            return self._go(session, S.NEGOTIATION)
        return self._unrecognized(session, label)

    def _counter_offer(self, fields: MerchantFields) -> dict:
        return build_counter_offer(
            recommend_pricing_plan(fields.annual_turnover),
            self._negotiation.discount_percent,
            self._negotiation.setup_fee_waived,
        )

    # --- Documents ----------------------------------------------------------

    def _on_upload(self, session: Session, event: UploadEvent) -> TransitionResult:
        expected = UPLOAD_STEPS.get(session.step)
        if expected is None:
            logger.warning("Upload %s received at step %s", event.upload_type.value, session.step.value)
            return self._reject(session, self.prompt_for(session.step, session).message)
        if event.upload_type != expected:
            return self._reject(session, msg.UPLOAD_REQUEST[expected])

        f = session.fields
        patch = dict(event.extracted)
        if expected == UploadType.PAN and not is_valid_pan(str(patch.get("pan_number", ""))):
            logger.warning("No valid PAN read from %s", event.file_name)
            return self._reject(session, msg.RETRY_PAN_DOCUMENT)
        if expected == UploadType.INCORPORATION:
            patch.setdefault("business_name", f.business_name)
        elif expected == UploadType.MOA:
            patch.setdefault("full_name", f.name)
            patch.setdefault("business_name", f.business_name)
        kyc = (f.kyc or KYCRecord()).merge(patch)
        documents = {**f.documents, expected: event.file_name}

        next_step = NEXT_UPLOAD_STEP[session.step]
        if next_step == S.EVALUATION:
            total = kyc.shareholding_total()
            if kyc.shareholding_details and abs(total - 100) > 0.01:
                logger.warning("Shareholding totals %.2f%%, not 100%%", total)
        return self._go(
            session,
            next_step,
            lead=(build_upload_received(expected, event.file_name, kyc),),
            kyc=kyc,
            documents=documents,
        )

    # --- Finalization -------------------------------------------------------

    def _on_evaluation(self, session: Session, label: str) -> TransitionResult:
        if parse_option(EvaluationOption, label) != EvaluationOption.DOWNLOAD:
            return self._unrecognized(session, label)
        return self._finalize(session)

    def _on_pdf_generation(self, session: Session, label: str) -> TransitionResult:
        if parse_option(PdfOption, label) != PdfOption.GENERATE:
            return self._unrecognized(session, label)
        return self._finalize(session)

    def _finalize(self, session: Session) -> TransitionResult:
        return self._go(
            session,
            S.OTP_VERIFICATION,
            actions=(SideEffect.EXPORT_APPLICATION, SideEffect.SEND_ONBOARDING_OTP),
        )

    def _on_otp(self, session: Session, event: OtpEvent) -> TransitionResult:
        if session.step not in OTP_STEPS:
            logger.warning("OTP submitted at step %s", session.step.value)
            return self._reject(session, self.prompt_for(session.step, session).message)

        f = session.fields
        channels = self.otp_channels(f) if session.step == S.OTP_VERIFICATION else self.status_channels(f)
        if len(event.codes) != len(channels) or not all(is_valid_otp(c) for c in event.codes):
            return self._reject(session, msg.RETRY_OTP_FORMAT, options=())
        if not event.verified:
            return self._reject(session, msg.RETRY_OTP_INVALID, options=())

        if session.step == S.STATUS_OTP_VERIFICATION:
            stored = self._customers.find_by_email(f.status_lookup_email or "")
            summary = summarize(stored) if stored else build_status_not_found(f.status_contact or "")
            return TransitionResult(session=session.advance(S.COMPLETED), messages=(summary,))

        case_number = self._case_number_factory()
        completed = session.advance(S.COMPLETED).with_case_number(case_number)
        logger.info("Onboarding completed for session %s: %s", session.session_id, case_number)
        return TransitionResult(session=completed, messages=(build_completion(f, case_number),))

    # --- Status check -------------------------------------------------------

    def _on_status_contact(self, session: Session, text: str) -> TransitionResult:
        contact = text.strip()
        if is_valid_email(contact):
            contact = normalize_email(contact)
            stored = self._customers.find_by_email(contact)
        elif is_valid_mobile(contact):
            contact = normalize_mobile(contact)
            stored = self._customers.find_by_mobile(contact)
        else:
            return self._reject(session, msg.RETRY_STATUS_CONTACT, options=())

        if stored is None:
            logger.info("Status lookup found no application")
            return TransitionResult(
                session=session,
                messages=(build_status_not_found(contact),),
                options=labels(StatusMissOption),
            )
        return self._go(
            session,
            S.STATUS_OTP_VERIFICATION,
            actions=(SideEffect.SEND_STATUS_OTP,),
            status_contact=contact,
            status_lookup_email=stored.email,
        )

    def _on_status_miss(self, session: Session, label: str) -> TransitionResult:
        choice = parse_option(StatusMissOption, label)
        if choice == StatusMissOption.RETRY:
            return TransitionResult(session=session, messages=(msg.ASK_STATUS_CONTACT,))
        if choice == StatusMissOption.START:
            return self._go(session, S.NAME)
        return self._unrecognized(session, label)
