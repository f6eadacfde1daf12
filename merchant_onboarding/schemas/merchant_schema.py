"""Merchant, KYC and stored-customer data models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

if TYPE_CHECKING:
    from merchant_onboarding.schemas.conversation_schema import Session


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ServiceType(str, Enum):
    PAYMENT_GATEWAY = "payment-gateway"
    POS_MACHINE = "pos-machine"
    BOTH = "both"


class KYCStatus(str, Enum):
    VERIFIED = "verified"
    PENDING = "pending"
    REJECTED = "rejected"


class UploadType(str, Enum):
    GST = "gst"
    PAN = "pan"
    INCORPORATION = "incorporation"
    MOA = "moa"


class DirectorDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    designation: str
    pan_number: str
    shareholding: str


class ShareholdingDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    shareholder_name: str
    share_percentage: float
    share_type: str


class KYCRecord(BaseModel):
    """Identity and compliance data, either fetched or built up from uploads."""

    model_config = ConfigDict(frozen=True)

    full_name: str = ""
    business_name: str = ""
    registration_number: str = ""
    gst_number: str = ""
    pan_number: str = ""
    address: str = ""
    account_number: str = ""
    status: KYCStatus = KYCStatus.PENDING
    director_details: tuple[DirectorDetail, ...] = ()
    shareholding_details: tuple[ShareholdingDetail, ...] = ()

    def merge(self, patch: Mapping[str, Any]) -> KYCRecord:
        """Return a new record with every non-empty value in ``patch`` applied.

        Unknown keys are ignored so extractors can return extra metadata.
        """
        updates = {
            key: value
            for key, value in patch.items()
            if key in type(self).model_fields and value not in (None, "", (), [])
        }
        if not updates:
            return self
        return type(self).model_validate({**self.model_dump(), **updates})

    def shareholding_total(self) -> float:
        return sum(s.share_percentage for s in self.shareholding_details)


class MerchantFields(BaseModel):
    """Answers accumulated across the onboarding conversation."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    business_name: str = ""
    email: str = ""
    mobile_number: Optional[str] = None
    service_type: Optional[ServiceType] = None
    selected_pos_model: Optional[str] = None
    selected_pg_plan: Optional[str] = None
    selected_pricing_plan: Optional[str] = None
    business_category: Optional[str] = None
    annual_turnover: Optional[str] = None
    negotiation_notes: tuple[str, ...] = ()
    documents: dict[UploadType, str] = Field(default_factory=dict)
    kyc: Optional[KYCRecord] = None
    is_existing_customer: bool = False
    confirm_linking: Optional[bool] = None
    status_contact: Optional[str] = None
    status_lookup_email: Optional[str] = None

    def has_document(self, upload_type: UploadType) -> bool:
        return upload_type in self.documents


class Representative(BaseModel):
    name: str
    mobile: str


class ConversationEntry(BaseModel):
    """One checkpoint in a stored customer's history."""

    model_config = ConfigDict(frozen=True)

    step: str
    timestamp: datetime = Field(default_factory=_utcnow)
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat()


class StoredCustomer(BaseModel):
    """Durable checkpoint of a session, keyed by email."""

    id: str
    name: str = ""
    business_name: str = ""
    email: str
    mobile_number: Optional[str] = None
    service_type: Optional[ServiceType] = None
    selected_pos_model: Optional[str] = None
    selected_pg_plan: Optional[str] = None
    selected_pricing_plan: Optional[str] = None
    business_category: Optional[str] = None
    annual_turnover: Optional[str] = None
    onboarding_step: Optional[str] = None
    last_visit: datetime = Field(default_factory=_utcnow)
    conversation_history: tuple[ConversationEntry, ...] = ()
    is_onboarding_complete: bool = False
    assigned_representative: Optional[Representative] = None
    case_number: Optional[str] = None

    @field_validator("last_visit")
    @classmethod
    def _last_visit_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_serializer("last_visit")
    def _serialize_last_visit(self, value: datetime) -> str:
        return value.isoformat()

    @classmethod
    def from_session(
        cls,
        session: Session,
        customer_id: str,
        previous: Optional[StoredCustomer] = None,
        representative: Optional[Representative] = None,
    ) -> StoredCustomer:
        """Project a session onto a stored record.

        Only the ID and history carry over from ``previous``; everything else,
        completion included, reflects this session. A record counts as complete
        once the session reached ``completed`` with a case number, and only
        then is ``representative`` assigned.
        """
        f = session.fields
        complete = session.step.value == "completed" and bool(session.case_number)
        return cls(
            id=previous.id if previous else customer_id,
            name=f.name,
            business_name=f.business_name,
            email=f.email,
            mobile_number=f.mobile_number,
            service_type=f.service_type,
            selected_pos_model=f.selected_pos_model,
            selected_pg_plan=f.selected_pg_plan,
            selected_pricing_plan=f.selected_pricing_plan,
            business_category=f.business_category,
            annual_turnover=f.annual_turnover,
            onboarding_step=session.step.value,
            conversation_history=previous.conversation_history if previous else (),
            is_onboarding_complete=complete,
            assigned_representative=representative if complete else None,
            case_number=session.case_number,
        )

    def to_fields(self) -> MerchantFields:
        """Restore the merchant fields this record carries."""
        return MerchantFields(
            name=self.name,
            business_name=self.business_name,
            email=self.email,
            mobile_number=self.mobile_number,
            service_type=self.service_type,
            selected_pos_model=self.selected_pos_model,
            selected_pg_plan=self.selected_pg_plan,
            selected_pricing_plan=self.selected_pricing_plan,
            business_category=self.business_category,
            annual_turnover=self.annual_turnover,
        )

    def with_entry(self, entry: ConversationEntry) -> StoredCustomer:
        """Append a history entry. History is never edited or truncated."""
        return self.model_copy(
            update={
                "conversation_history": self.conversation_history + (entry,),
                "onboarding_step": entry.step,
            }
        )
