"""
Mock KYC directory keyed by registered mobile number.

In production this would call the bank's KYC / CKYC registry. Here a
fixed demo record is returned; unknown numbers either get a synthesized
copy of it or no record at all, depending on ``synthesize_unknown``.
"""

from typing import Optional

from merchant_onboarding.logging_context import get_session_logger
from merchant_onboarding.schemas.merchant_schema import (
    DirectorDetail,
    KYCRecord,
    KYCStatus,
    ShareholdingDetail,
)
from merchant_onboarding.utils import normalize_mobile

logger = get_session_logger(__name__)

DEMO_KYC_RECORD = KYCRecord(
    full_name="John Smith",
    business_name="Smith Electronics Ltd",
    registration_number="REG123456789",
    address="123 Business Street, Commerce City, CC 12345",
    account_number="ACC-789456123",
    status=KYCStatus.VERIFIED,
    gst_number="29ABCDE1234F1Z5",
    pan_number="ABCDE1234F",
    director_details=(
        DirectorDetail(
            name="John Smith",
            designation="Managing Director & CEO",
            pan_number="ABCDE1234F",
            shareholding="60%",
        ),
        DirectorDetail(
            name="Jane Smith",
            designation="Executive Director",
            pan_number="FGHIJ5678K",
            shareholding="25%",
        ),
        DirectorDetail(
            name="Robert Johnson",
            designation="Independent Director",
            pan_number="KLMNO9012P",
            shareholding="15%",
        ),
    ),
    shareholding_details=(
        ShareholdingDetail(shareholder_name="John Smith", share_percentage=60, share_type="Equity Shares"),
        ShareholdingDetail(shareholder_name="Jane Smith", share_percentage=25, share_type="Equity Shares"),
        ShareholdingDetail(
            shareholder_name="Robert Johnson", share_percentage=15, share_type="Preference Shares"
        ),
    ),
)


class KYCDirectory:
    """Read-only KYC lookup used by the existing-customer branch."""

    def __init__(
        self,
        records: Optional[dict[str, KYCRecord]] = None,
        synthesize_unknown: bool = True,
    ) -> None:
        self._records = {normalize_mobile(k): v for k, v in (records or {}).items()}
        self._synthesize_unknown = synthesize_unknown

    def fetch(self, mobile_number: str) -> Optional[KYCRecord]:
        """Look up KYC details by mobile number. Returns None if not found."""
        key = normalize_mobile(mobile_number)
        record = self._records.get(key)
        if record is not None:
            logger.debug("KYC record found for mobile ending %s", key[-4:])
            return record
        if self._synthesize_unknown:
            logger.debug("Synthesizing demo KYC record for mobile ending %s", key[-4:])
            return DEMO_KYC_RECORD
        logger.info("No KYC record for mobile ending %s", key[-4:])
        return None
