"""Dynamic message construction from collected merchant data."""

from typing import Optional

from merchant_onboarding.config import settings
from merchant_onboarding.prompts.messages import UPLOAD_LABELS
from merchant_onboarding.schemas.merchant_schema import KYCRecord, MerchantFields, UploadType
from merchant_onboarding.tools.catalog import (
    POS_CATALOG,
    PG_CATALOG,
    PRICING_PLANS,
    describe_pricing_plan,
)
from merchant_onboarding.tools.otp import mask_destination


def build_greeting(name: str) -> str:
    return f"Nice to meet you, {name}! What's your business name?"


def build_returning_customer_prompt(summary: str) -> str:
    return f"{summary}\n\nWould you like to continue your saved application or start a fresh one?"


def build_pos_catalog() -> str:
    lines = ["Here are our POS machines:"]
    for info in POS_CATALOG.values():
        lines.append(f"  {info['label']} ({info['rental']}): {info['description']}")
    lines.append("\nWhich one suits your business?")
    return "\n".join(lines)


def build_pg_catalog() -> str:
    lines = ["Here are our Payment Gateway plans:"]
    for info in PG_CATALOG.values():
        lines.append(
            f"  {info['label']} ({info['rate']}, setup {info['setup_fee']}): {info['description']}"
        )
    lines.append("\nWhich one would you like?")
    return "\n".join(lines)


def build_kyc_found(kyc: KYCRecord) -> str:
    return (
        "Great! I found your existing KYC details:\n\n"
        f"Name: {kyc.full_name}\n"
        f"Business: {kyc.business_name}\n"
        f"Registration: {kyc.registration_number}\n"
        f"Address: {kyc.address}\n"
        f"Account: {kyc.account_number}\n"
        f"Status: {kyc.status.value}\n\n"
        "Would you like to link this account with your new business?"
    )


def build_link_confirmed(kyc: KYCRecord) -> str:
    return (
        "Perfect! Account linking confirmed.\n\n"
        "Generating a comprehensive merchant onboarding document with:\n"
        "  Your Business Information\n"
        f"  KYC Details (GST: {kyc.gst_number}, PAN: {kyc.pan_number})\n"
        f"  Director Information ({len(kyc.director_details)} directors)\n"
        "  Complete Shareholding Structure\n"
        "  Registration Details\n\n"
        "Click below to download and proceed with digital verification."
    )


def build_new_account_summary(fields: MerchantFields) -> str:
    return (
        "No problem! We'll create a new account for your business.\n\n"
        "Summary:\n"
        f"  Name: {fields.name}\n"
        f"  Business: {fields.business_name}\n"
        f"  Email: {fields.email}\n"
        f"  Mobile: {fields.mobile_number}\n"
        "  Account Type: New Separate Account\n\n"
        f"Our KYC team will contact you within {settings.business.kyc_follow_up_hours} hours "
        "to complete the verification process."
    )


def build_pricing_offer(recommended_plan: str, annual_turnover: Optional[str]) -> str:
    lines = [
        f"Based on your annual turnover ({annual_turnover or 'not specified'}), "
        "here are our pricing plans:"
    ]
    for plan_id in PRICING_PLANS:
        marker = " (recommended)" if plan_id == recommended_plan else ""
        lines.append(f"  {describe_pricing_plan(plan_id)}{marker}")
    lines.append("\nPick a plan, or let me know if you'd like to negotiate.")
    return "\n".join(lines)


def build_counter_offer_message(offer: dict, round_number: int) -> str:
    monthly = f"₹{offer['monthly_fee']:,}/month" if offer["monthly_fee"] else "no monthly fee"
    setup = f"₹{offer['setup_fee']:,} setup" if offer["setup_fee"] else "setup fee waived"
    opener = (
        "Thanks for sharing that. I've checked with our pricing team"
        if round_number == 1
        else "I've taken your additional points back to our pricing team"
    )
    return (
        f"{opener} and we can offer:\n\n"
        f"  {offer['label']}: {offer['rate_percent']:.2f}% per transaction, {monthly}, {setup}\n\n"
        "Would you like to accept this offer?"
    )


def build_upload_received(upload_type: UploadType, file_name: str, kyc: KYCRecord) -> str:
    label = UPLOAD_LABELS[upload_type]
    if upload_type == UploadType.GST:
        detail = f"GST Number extracted: {kyc.gst_number or 'not found'}."
    elif upload_type == UploadType.PAN:
        detail = f"PAN Number extracted: {kyc.pan_number or 'not found'}."
    elif upload_type == UploadType.INCORPORATION:
        detail = f"Registration Number extracted: {kyc.registration_number or 'not found'}."
    else:
        detail = "Director and shareholding details extracted."
    return f"{label} \"{file_name}\" uploaded successfully! {detail}"


def build_documents_complete(fields: MerchantFields) -> str:
    kyc = fields.kyc or KYCRecord()
    return (
        "Document processing complete! All business information has been extracted:\n\n"
        f"Business: {fields.business_name}\n"
        f"GST: {kyc.gst_number or 'Not available'}\n"
        f"PAN: {kyc.pan_number or 'Not available'}\n"
        f"Registration: {kyc.registration_number or 'Not available'}\n"
        f"Directors: {len(kyc.director_details)} directors found\n"
        "Shareholding: Complete structure extracted\n\n"
        "Your complete application document is ready for download!"
    )


def build_otp_dispatch(channels: dict[str, str]) -> str:
    lines = [
        "Application document downloaded successfully!",
        "",
        "For digital sign-off and verification, I'm sending OTP to:",
    ]
    for channel, destination in channels.items():
        lines.append(f"  {channel.capitalize()}: {mask_destination(destination)}")
    lines.append("")
    lines.append(
        "Please enter both OTPs to complete your merchant onboarding."
        if len(channels) > 1
        else "Please enter the OTP to complete your merchant onboarding."
    )
    return "\n".join(lines)


def build_status_otp_dispatch(destination: str) -> str:
    return (
        f"I found an application linked to {mask_destination(destination)}. "
        "To protect your details, I've sent a 6-digit OTP there. Please enter it below."
    )


def build_status_not_found(contact: str) -> str:
    return (
        f"No application found for {contact}. "
        "You can try another email or mobile number, or start a new application."
    )


def build_completion(fields: MerchantFields, case_number: str) -> str:
    kyc = fields.kyc
    rep = settings.business
    return (
        "CONGRATULATIONS! Your Merchant Onboarding is Complete!\n\n"
        f"Case Number: {case_number}\n\n"
        "Merchant Details:\n"
        f"  Name: {fields.name}\n"
        f"  Business: {fields.business_name}\n"
        f"  Email: {fields.email}\n"
        f"  Mobile: {fields.mobile_number or 'Not provided'}\n\n"
        "Account Information:\n"
        f"  Linked Account: {(kyc and kyc.account_number) or 'New account'}\n"
        f"  GST Number: {(kyc and kyc.gst_number) or 'Not available'}\n"
        f"  PAN Number: {(kyc and kyc.pan_number) or 'Not available'}\n"
        f"  Directors Verified: {len(kyc.director_details) if kyc else 0}\n\n"
        "Verification Status:\n"
        "  Documents: Digitally Signed & Verified\n"
        "  OTP Verification: Successfully Completed\n\n"
        "Assigned Merchant Representative:\n"
        f"  Name: {rep.representative_name}\n"
        f"  Mobile: {rep.representative_mobile}\n"
        f"  {rep.representative_name} will contact you soon and keep you posted "
        "with the status of your application.\n\n"
        f"Your POS and Payment Gateway services will be activated within {rep.activation_window}.\n"
        f"Need immediate assistance? Contact our support team at {rep.support_email}"
    )


def build_resume_notice(step_label: str) -> str:
    return f"Welcome back! Let's pick up where you left off ({step_label})."


def build_already_complete(case_number: Optional[str]) -> str:
    reference = f" (case {case_number})" if case_number else ""
    return (
        f"Your onboarding is already complete{reference}. "
        f"{settings.business.representative_name} will keep you posted on activation."
    )


def build_otp_resent(channels: dict[str, str]) -> str:
    destinations = ", ".join(mask_destination(d) for d in channels.values())
    return f"A new OTP has been sent to {destinations}."
