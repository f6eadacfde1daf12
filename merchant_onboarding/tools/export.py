"""
Application export for the evaluation and PDF-generation steps.

Rendering a styled PDF is outside this project. The exporter writes the
same sections the merchant's application document carries as a plain
text file, one file per export.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol

from merchant_onboarding.config import settings
from merchant_onboarding.logging_context import get_session_logger
from merchant_onboarding.schemas.merchant_schema import UploadType

if TYPE_CHECKING:
    from merchant_onboarding.schemas.conversation_schema import Session

logger = get_session_logger(__name__)

_DOCUMENT_LABELS = {
    UploadType.GST: "GST Certificate",
    UploadType.PAN: "PAN Document",
    UploadType.INCORPORATION: "Incorporation Certificate",
    UploadType.MOA: "MOA Document",
}


class PDFExporter(Protocol):
    def export(self, session: Session) -> None:
        """Produce a downloadable application artifact for ``session``."""
        ...


def render_application(session: Session, generated_at: Optional[datetime] = None) -> str:
    """Render the application document as plain text."""
    f = session.fields
    kyc = f.kyc
    generated_at = generated_at or datetime.now(timezone.utc)
    lines = [
        "COMPREHENSIVE MERCHANT ONBOARDING",
        f"Document Generated: {generated_at:%Y-%m-%d %H:%M:%S %Z}",
        f"Application ID: APP-{session.session_id}",
        "",
        "APPLICANT INFORMATION",
        f"  Full Name:          {f.name or 'Not provided'}",
        f"  Email Address:      {f.email or 'Not provided'}",
        f"  Mobile Number:      {f.mobile_number or 'Not provided'}",
        "  Customer Type:      "
        + ("Existing Customer (Account Linked)" if f.confirm_linking else
           "Existing Customer" if f.is_existing_customer else "New Customer"),
        f"  Business Category:  {f.business_category or 'Not specified'}",
        f"  Annual Turnover:    {f.annual_turnover or 'Not specified'}",
        "",
        "SERVICES",
        f"  Service Type:       {f.service_type.value if f.service_type else 'Not selected'}",
        f"  POS Model:          {f.selected_pos_model or 'Not selected'}",
        f"  PG Plan:            {f.selected_pg_plan or 'Not selected'}",
        f"  Pricing Plan:       {f.selected_pricing_plan or 'Not selected'}",
        "",
        "BUSINESS INFORMATION",
        f"  Business Name:      {f.business_name or 'Not provided'}",
        f"  Registration No.:   {(kyc and kyc.registration_number) or 'Not available'}",
        f"  GST Number:         {(kyc and kyc.gst_number) or 'Not available'}",
        f"  PAN Number:         {(kyc and kyc.pan_number) or 'Not available'}",
        f"  Business Address:   {(kyc and kyc.address) or 'Not available'}",
        f"  Account Number:     {(kyc and kyc.account_number) or 'Not available'}",
        f"  KYC Status:         {kyc.status.value if kyc else 'pending'}",
        "",
        "DOCUMENTS SUBMITTED",
    ]
    for upload_type, label in _DOCUMENT_LABELS.items():
        file_name = f.documents.get(upload_type)
        lines.append(f"  {label + ':':<27} {('✓ ' + file_name) if file_name else '✗ Not uploaded'}")

    if kyc and kyc.director_details:
        lines += ["", "DIRECTOR DETAILS"]
        for i, director in enumerate(kyc.director_details, start=1):
            lines.append(
                f"  {i}. {director.name} - {director.designation} "
                f"(PAN: {director.pan_number}, Shareholding: {director.shareholding})"
            )
    if kyc and kyc.shareholding_details:
        lines += ["", "SHAREHOLDING STRUCTURE"]
        for holder in kyc.shareholding_details:
            lines.append(
                f"  {holder.shareholder_name}: {holder.share_percentage:g}% ({holder.share_type})"
            )
    return "\n".join(lines) + "\n"


class TextApplicationExporter:
    """Writes each export to ``<export_dir>/application-<session_id>.txt``."""

    def __init__(self, export_dir: str = settings.storage.export_dir) -> None:
        self._export_dir = Path(export_dir)
        self.last_export_path: Optional[Path] = None

    def export(self, session: Session) -> None:
        self._export_dir.mkdir(parents=True, exist_ok=True)
        path = self._export_dir / f"application-{session.session_id}.txt"
        path.write_text(render_application(session), encoding="utf-8")
        self.last_export_path = path
        logger.info("Application exported to %s", path)
