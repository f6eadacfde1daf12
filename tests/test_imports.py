"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""

import pytest


class TestSchemaImports:
    def test_import_conversation_schema(self):
        from merchant_onboarding.schemas.conversation_schema import (
            OnboardingStep, Session, SideEffect, TransitionResult,
        )
        assert OnboardingStep.WELCOME == "welcome"
        assert SideEffect.EXPORT_APPLICATION == "export_application"
        assert Session.new("SESS-1").step == OnboardingStep.WELCOME
        assert TransitionResult is not None

    def test_import_merchant_schema(self):
        from merchant_onboarding.schemas.merchant_schema import (
            KYCRecord, MerchantFields, StoredCustomer, UploadType,
        )
        fields = MerchantFields()
        assert fields.email == ""
        assert fields.kyc is None
        assert KYCRecord().shareholding_total() == 0
        assert UploadType.MOA == "moa"
        assert StoredCustomer is not None


class TestConversationImports:
    def test_package_reexports(self):
        import merchant_onboarding.conversation as conversation

        for name in conversation.__all__:
            assert hasattr(conversation, name), name

    def test_import_state_machine(self):
        from merchant_onboarding.conversation.state_machine import DialogueStateMachine
        from merchant_onboarding.tools.customer_store import InMemoryCustomerStore

        machine = DialogueStateMachine(customers=InMemoryCustomerStore())
        assert machine.start("SESS-1").next_step.value == "welcome"

    def test_import_steps(self):
        from merchant_onboarding.conversation.steps import TRANSITIONS, progress_percent
        from merchant_onboarding.schemas.conversation_schema import OnboardingStep

        assert len(TRANSITIONS) > 0
        assert progress_percent(OnboardingStep.COMPLETED) == 100


class TestToolImports:
    @pytest.mark.parametrize(
        "module",
        [
            "merchant_onboarding.tools.catalog",
            "merchant_onboarding.tools.customer_store",
            "merchant_onboarding.tools.documents",
            "merchant_onboarding.tools.export",
            "merchant_onboarding.tools.kyc",
            "merchant_onboarding.tools.otp",
        ],
    )
    def test_import_tool_module(self, module):
        import importlib

        assert importlib.import_module(module) is not None


class TestTopLevelImports:
    def test_import_orchestrator(self):
        from merchant_onboarding.orchestrator import OnboardingBot, SpeechInput, new_session_id

        assert new_session_id().startswith("SESS-")
        assert callable(OnboardingBot) and callable(SpeechInput)

    def test_import_prompts(self):
        from merchant_onboarding.prompts import faq, messages, templates

        assert messages.WELCOME
        assert callable(templates.build_greeting)
        assert callable(faq.answer_question)

    def test_import_logging_context(self):
        from merchant_onboarding.logging_context import get_session_logger

        logger = get_session_logger("test.imports")
        assert logger.filters
