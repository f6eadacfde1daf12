"""Tests for session state, events and merchant data models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from merchant_onboarding.schemas.conversation_schema import (
    DialogueEvent,
    ImmutableFieldError,
    OnboardingStep as S,
    OptionEvent,
    OtpEvent,
    Session,
    TextEvent,
    TransitionResult,
    UploadEvent,
)
from merchant_onboarding.schemas.merchant_schema import KYCRecord, KYCStatus, UploadType

EVENTS = TypeAdapter(DialogueEvent)


class TestSession:
    def test_new_session_starts_at_welcome(self):
        session = Session.new("SESS-1")
        assert session.step == S.WELCOME
        assert session.step_trace() == ["welcome"]
        assert session.case_number is None

    def test_advance_returns_new_session(self):
        original = Session.new("SESS-1")
        moved = original.advance(S.NAME)
        assert original.step == S.WELCOME
        assert moved.step == S.NAME
        assert moved.step_trace() == ["welcome", "name"]

    def test_patch_applied(self):
        session = Session.new("SESS-1").advance(S.BUSINESS_NAME, name="Asha Rao")
        assert session.fields.name == "Asha Rao"

    def test_staying_on_a_step_adds_no_history(self):
        session = Session.new("SESS-1").advance(S.NAME).advance(S.NAME)
        assert session.step_trace() == ["welcome", "name"]

    def test_email_cannot_change_once_set(self):
        session = Session.new("SESS-1").advance(S.SERVICE_SELECTION, email="asha@raotraders.in")
        with pytest.raises(ImmutableFieldError):
            session.advance(S.SERVICE_SELECTION, email="other@raotraders.in")

    def test_same_email_in_other_case_allowed(self):
        session = Session.new("SESS-1").advance(S.SERVICE_SELECTION, email="asha@raotraders.in")
        again = session.advance(S.POS_OPTIONS, email="ASHA@raotraders.in")
        assert again.step == S.POS_OPTIONS

    def test_sessions_are_frozen(self):
        session = Session.new("SESS-1")
        with pytest.raises(ValidationError):
            session.step = S.NAME

    def test_with_case_number(self):
        session = Session.new("SESS-1").with_case_number("CASE00000001")
        assert session.case_number == "CASE00000001"

    def test_transition_result_next_step(self):
        session = Session.new("SESS-1").advance(S.NAME)
        result = TransitionResult(session=session)
        assert result.next_step == S.NAME
        assert result.accepted


class TestEvents:
    def test_text_event(self):
        event = EVENTS.validate_python({"kind": "text", "value": "Asha Rao"})
        assert isinstance(event, TextEvent)

    def test_option_event(self):
        event = EVENTS.validate_python({"kind": "option", "value": "POS Machine"})
        assert isinstance(event, OptionEvent)

    def test_upload_event(self):
        event = EVENTS.validate_python(
            {"kind": "upload", "upload_type": "gst", "file_name": "gst.pdf"}
        )
        assert isinstance(event, UploadEvent)
        assert event.upload_type == UploadType.GST
        assert event.extracted == {}

    def test_otp_event(self):
        event = EVENTS.validate_python({"kind": "otp", "codes": ["123456"], "verified": True})
        assert isinstance(event, OtpEvent)
        assert event.codes == ("123456",)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            EVENTS.validate_python({"kind": "voice", "value": "hello"})

    def test_unknown_upload_slot_rejected(self):
        with pytest.raises(ValidationError):
            UploadEvent(upload_type="aadhaar", file_name="a.pdf")


class TestKYCRecord:
    def test_merge_applies_non_empty_values(self):
        record = KYCRecord(full_name="Asha Rao").merge({"gst_number": "29ABCDE1234F1Z5"})
        assert record.full_name == "Asha Rao"
        assert record.gst_number == "29ABCDE1234F1Z5"

    def test_merge_ignores_empty_and_unknown_keys(self):
        record = KYCRecord(full_name="Asha Rao", pan_number="ABCDE1234F")
        merged = record.merge({"full_name": "", "pan_number": None, "ocr_confidence": 0.93})
        assert merged is record

    def test_merge_validates_nested_details(self):
        merged = KYCRecord().merge(
            {
                "status": "verified",
                "shareholding_details": [
                    {"shareholder_name": "Asha Rao", "share_percentage": 70, "share_type": "Equity"},
                    {"shareholder_name": "Ravi Rao", "share_percentage": 20, "share_type": "Equity"},
                ],
            }
        )
        assert merged.status == KYCStatus.VERIFIED
        assert merged.shareholding_total() == 90
