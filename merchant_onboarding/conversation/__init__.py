from merchant_onboarding.conversation.state_machine import (
    DialogueStateMachine,
    InvalidTransitionError,
    generate_case_number,
)
from merchant_onboarding.conversation.steps import (
    TRANSITIONS,
    allowed_next_steps,
    progress_percent,
)
from merchant_onboarding.conversation.validation import (
    is_valid_email,
    is_valid_mobile,
    is_valid_otp,
    is_valid_pan,
)

__all__ = [
    "DialogueStateMachine",
    "InvalidTransitionError",
    "generate_case_number",
    "TRANSITIONS",
    "allowed_next_steps",
    "progress_percent",
    "is_valid_email",
    "is_valid_mobile",
    "is_valid_otp",
    "is_valid_pan",
]
