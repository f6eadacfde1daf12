"""
Canned answers for questions merchants ask mid-onboarding.

Questions are matched by keyword, first topic wins, so the more specific
topics are listed before the broad ones. Answers never change the
conversation step.
"""

from merchant_onboarding.config import settings
from merchant_onboarding.tools.catalog import BUSINESS_CATEGORIES
from merchant_onboarding.tools.documents import MAX_UPLOAD_BYTES

_biz = settings.business
_rep = f"{_biz.representative_name} ({_biz.representative_mobile})"

DOCUMENTS_ANSWER = (
    "Document requirements:\n"
    "  GST Certificate: your business GST registration\n"
    "  PAN Document: business PAN card or certificate\n"
    "  Incorporation Certificate: company registration document\n"
    "  MOA (Memorandum of Association): director and shareholding details\n\n"
    "Please upload clear, readable PDF or image files."
)

KYC_ANSWER = (
    "KYC verification:\n"
    "  Existing customers: we fetch your KYC details using your registered mobile number\n"
    "  New customers: we extract the details from your uploaded documents\n"
    "  Final sign-off is an OTP sent to your mobile and email\n\n"
    f"KYC verification typically completes within {_biz.activation_window}."
)

TIMELINE_ANSWER = (
    "Onboarding timeline:\n"
    "  Document upload: 5-10 minutes\n"
    "  Document processing: instant\n"
    "  OTP verification: 2-3 minutes\n"
    f"  Account activation: {_biz.activation_window}\n"
    "  POS setup: same day after activation\n\n"
    "Your assigned representative will contact you for POS installation."
)

PRICING_ANSWER = (
    "Pricing:\n"
    "  Onboarding: free of charge\n"
    "  POS device: monthly rental, depending on the model\n"
    "  Transaction fees: based on your plan and annual turnover\n"
    "  Setup fees: waived on the Premium plan and on negotiated offers\n\n"
    "You'll see the plans after telling us your annual turnover, and you can negotiate."
)

SERVICES_ANSWER = (
    "Our services:\n"
    "  POS: mobile POS, smart terminals and desktop POS systems\n"
    "  Payment Gateway: online payments with UPI, card and wallet support, "
    "real-time monitoring and reports\n\n"
    "24/7 customer support is included with all services."
)

SUPPORT_ANSWER = (
    "Support:\n"
    "  During onboarding: use this chat, or reach your representative "
    f"{_rep}\n"
    f"  After onboarding: email {_biz.support_email}\n\n"
    "We typically respond within 15 minutes during business hours."
)

CATEGORIES_ANSWER = (
    "Business categories we support:\n"
    + "\n".join(f"  {category}" for category in BUSINESS_CATEGORIES)
)

TROUBLESHOOTING_ANSWER = (
    "Common issues:\n"
    f"  Upload failing: keep files under {MAX_UPLOAD_BYTES // (1024 * 1024)}MB "
    "and use PDF, JPG or PNG\n"
    "  OTP not received: check your spam folder, confirm your number, then use resend\n\n"
    f"Still stuck? Contact {_rep}."
)

DEFAULT_ANSWER = (
    "I can help with questions about:\n"
    "  Document requirements\n"
    "  KYC verification\n"
    "  Timeline\n"
    "  Pricing and fees\n"
    "  POS and payment gateway services\n"
    "  Support contacts\n"
    "  Business categories\n"
    "  Troubleshooting\n\n"
    'Try asking "What documents do I need?" or "How long does onboarding take?"'
)

# (keywords, answer), checked in order
FAQ_TOPICS: list[tuple[tuple[str, ...], str]] = [
    (("document", "upload"), DOCUMENTS_ANSWER),
    (("kyc", "verification"), KYC_ANSWER),
    (("time", "how long", "duration"), TIMELINE_ANSWER),
    (("cost", "fee", "price", "charge"), PRICING_ANSWER),
    (("pos", "payment gateway", "services"), SERVICES_ANSWER),
    (("support", "help", "contact"), SUPPORT_ANSWER),
    (("category",), CATEGORIES_ANSWER),
    (("error", "problem", "issue"), TROUBLESHOOTING_ANSWER),
]


def answer_question(question: str) -> str:
    """Return the canned answer whose keywords appear in ``question``."""
    lowered = question.lower()
    for keywords, answer in FAQ_TOPICS:
        if any(keyword in lowered for keyword in keywords):
            return answer
    return DEFAULT_ANSWER
