"""
Simulated document extraction for the upload steps.

In production this would run OCR over the uploaded file. The simulated
extractor ignores file bytes and returns the values a real GST, PAN,
incorporation or MOA document for the demo business would yield.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from merchant_onboarding.logging_context import get_session_logger
from merchant_onboarding.schemas.merchant_schema import UploadType
from merchant_onboarding.tools.kyc import DEMO_KYC_RECORD

logger = get_session_logger(__name__)

ACCEPTED_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class UnsupportedDocumentError(Exception):
    """Raised when an uploaded file cannot be processed."""


@dataclass(frozen=True)
class UploadedFile:
    """Opaque handle to an uploaded document."""

    name: str
    content: bytes = b""


class DocumentExtractor(Protocol):
    def simulate_extract(self, upload_type: UploadType, file: UploadedFile) -> dict[str, Any]:
        """Return a partial KYC patch read from ``file``."""
        ...


class SimulatedDocumentExtractor:
    """Returns fixed demo values per upload slot."""

    def simulate_extract(self, upload_type: UploadType, file: UploadedFile) -> dict[str, Any]:
        if not file.name.lower().endswith(ACCEPTED_EXTENSIONS):
            raise UnsupportedDocumentError(
                f"'{file.name}' is not a supported format. Use PDF, JPG or PNG."
            )
        if len(file.content) > MAX_UPLOAD_BYTES:
            raise UnsupportedDocumentError(f"'{file.name}' is larger than 10MB.")

        logger.info("Processing %s document: %s", upload_type.value, file.name)
        demo = DEMO_KYC_RECORD
        if upload_type == UploadType.GST:
            return {"gst_number": demo.gst_number}
        if upload_type == UploadType.PAN:
            return {"pan_number": demo.pan_number}
        if upload_type == UploadType.INCORPORATION:
            return {"registration_number": demo.registration_number}
        return {
            "address": demo.address,
            "account_number": demo.account_number,
            "status": demo.status.value,
            "director_details": [d.model_dump() for d in demo.director_details],
            "shareholding_details": [s.model_dump() for s in demo.shareholding_details],
        }
