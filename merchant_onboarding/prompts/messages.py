"""Fixed bot messages for each onboarding step."""

from merchant_onboarding.config import settings
from merchant_onboarding.schemas.merchant_schema import UploadType

WELCOME = (
    f"Welcome to {settings.business.name}! I'll help you get set up with our POS "
    "and Payment Gateway services. Would you like to start a new application "
    "or check the status of an existing one?"
)
ASK_NAME = "What's your full name?"
ASK_EMAIL = "Great! What's your business email address?"
ASK_SERVICE = "Which service are you interested in?"
ASK_POS_MODEL = "Here are our POS machines. Which one suits your business?"
ASK_PG_PLAN = "Here are our Payment Gateway plans. Which one would you like?"
ASK_EXISTING_CUSTOMER = "Perfect! Are you an existing customer with us?"
ASK_MOBILE = (
    "Excellent! Please share your registered mobile number so I can fetch your KYC details."
)
FETCHING_KYC = "Let me fetch your KYC details..."
ASK_CATEGORY = (
    "Welcome to our platform! Since you're a new customer, I need to collect some "
    "additional business information.\n\nPlease select your business category:"
)
ASK_TURNOVER = (
    "Excellent choice! What's your business annual turnover? "
    "Please type your response (e.g., 1-5 Cr, 5-10 Cr, 10+ Cr)"
)
ASK_NEGOTIATION = (
    "Sure, we're happy to work with you. Tell me what you'd like changed "
    "(rate, monthly fee, setup fee or anything else)."
)
ASK_GST = (
    "Now I need to collect some important documents. Let's start with your "
    "GST certificate. Please upload it below."
)
ASK_PAN = "Now please upload your business PAN card or certificate."
ASK_INCORPORATION = "Now please upload your Certificate of Incorporation."
ASK_MOA = "Finally, please upload your Memorandum of Association (MOA)."
ASK_STATUS_CONTACT = (
    "Please enter the email address or 10-digit mobile number you used for your application."
)
ASK_RETURNING = "Would you like to continue your saved application or start a fresh one?"

RETRY_NAME = "Please enter your full name (at least 2 characters)."
RETRY_BUSINESS_NAME = "Please enter your business name."
RETRY_EMAIL = "Please enter a valid email address."
RETRY_MOBILE = "Please enter a valid 10-digit mobile number."
RETRY_TURNOVER = "Please type your annual turnover (e.g., 1-5 Cr, 5-10 Cr, 10+ Cr)."
RETRY_NEGOTIATION = "Please tell me what you'd like us to change."
RETRY_STATUS_CONTACT = "Please enter a valid email address or 10-digit mobile number."
RETRY_OTP_FORMAT = "Please enter the 6-digit OTP sent to each of your contacts."
RETRY_PAN_DOCUMENT = (
    "We couldn't read a valid PAN from that document. "
    "Please upload a clearer copy of your PAN card or certificate."
)
RETRY_OTP_INVALID = "Invalid OTP. Please try again."
ENTER_OTP = "Please enter the OTP(s) in the verification box to continue."
RESEND_UNAVAILABLE = "There's no OTP waiting to be resent right now."
CHOOSE_OPTION = "Please choose one of the options below."
COLLABORATOR_FAILURE = (
    "Sorry, something went wrong on our side while processing that. Please try again."
)
ALREADY_COMPLETED = (
    "Your onboarding conversation is complete. "
    f"For anything else, contact {settings.business.support_email}."
)
KYC_NOT_FOUND = (
    "I couldn't find KYC details for that mobile number, so we'll set you up as a "
    "new customer.\n\nPlease select your business category:"
)

UPLOAD_REQUEST = {
    UploadType.GST: ASK_GST,
    UploadType.PAN: ASK_PAN,
    UploadType.INCORPORATION: ASK_INCORPORATION,
    UploadType.MOA: ASK_MOA,
}

UPLOAD_LABELS = {
    UploadType.GST: "GST Certificate",
    UploadType.PAN: "PAN Document",
    UploadType.INCORPORATION: "Incorporation Certificate",
    UploadType.MOA: "MOA Document",
}
