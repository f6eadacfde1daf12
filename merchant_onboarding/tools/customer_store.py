"""
Email-keyed persistence for onboarding checkpoints.

Records are upserted with last-write-wins semantics: one record per
email (case-insensitive), ``last_visit`` refreshed on every write, and
``conversation_history`` only ever appended to. Two backends share the
same contract: an in-memory store for tests and single-process demos,
and a JSON file store that survives restarts.
"""

import json
import os
import tempfile
import threading
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from merchant_onboarding.logging_context import get_session_logger
from merchant_onboarding.schemas.merchant_schema import ConversationEntry, StoredCustomer
from merchant_onboarding.utils import normalize_email, normalize_mobile

logger = get_session_logger(__name__)


class CustomerStore(ABC):
    """Repository interface over a medium-specific record map."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @abstractmethod
    def _read(self) -> dict[str, StoredCustomer]:
        """Load all records keyed by normalized email."""

    @abstractmethod
    def _write(self, records: dict[str, StoredCustomer]) -> None:
        """Persist all records keyed by normalized email."""

    @staticmethod
    def new_id() -> str:
        """Generate an opaque, process-unique customer ID."""
        return f"CUST_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"

    def upsert(self, customer: StoredCustomer) -> StoredCustomer:
        """Insert or overwrite the record for ``customer.email``."""
        key = normalize_email(customer.email)
        if not key:
            raise ValueError("Cannot store a customer without an email")
        stamped = customer.model_copy(update={"last_visit": datetime.now(timezone.utc)})
        with self._lock:
            records = self._read()
            is_new = key not in records
            records[key] = stamped
            self._write(records)
        logger.info("Customer %s: %s", "created" if is_new else "updated", customer.email)
        return stamped

    def find_by_email(self, email: str) -> Optional[StoredCustomer]:
        with self._lock:
            return self._read().get(normalize_email(email))

    def find_by_mobile(self, mobile_number: str) -> Optional[StoredCustomer]:
        """Most recently visited record with this mobile number, if any."""
        target = normalize_mobile(mobile_number)
        with self._lock:
            matches = [
                c for c in self._read().values()
                if c.mobile_number and normalize_mobile(c.mobile_number) == target
            ]
        if not matches:
            return None
        # Stable sort, so the later-written record wins a last_visit tie
        return sorted(matches, key=lambda c: c.last_visit)[-1]

    def record_progress(
        self, email: str, step: str, data: Optional[dict[str, Any]] = None
    ) -> Optional[StoredCustomer]:
        """Append a history entry to an existing record. No-op if unknown."""
        with self._lock:
            records = self._read()
            key = normalize_email(email)
            customer = records.get(key)
            if customer is None:
                return None
            updated = customer.with_entry(ConversationEntry(step=step, data=data or {}))
            updated = updated.model_copy(update={"last_visit": datetime.now(timezone.utc)})
            records[key] = updated
            self._write(records)
        return updated

    def all(self) -> list[StoredCustomer]:
        with self._lock:
            return list(self._read().values())


class InMemoryCustomerStore(CustomerStore):
    def __init__(self) -> None:
        super().__init__()
        self._records: dict[str, StoredCustomer] = {}

    def _read(self) -> dict[str, StoredCustomer]:
        return dict(self._records)

    def _write(self, records: dict[str, StoredCustomer]) -> None:
        self._records = dict(records)

    def reset(self) -> None:
        """Clear all records. Used by test fixtures for isolation."""
        self._records.clear()


class JsonFileCustomerStore(CustomerStore):
    """Stores all records as a JSON list in one file, rewritten atomically."""

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, StoredCustomer]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.error("Customer store at %s is corrupt; starting empty", self._path)
            return {}
        records = {}
        for item in raw:
            customer = StoredCustomer.model_validate(item)
            records[normalize_email(customer.email)] = customer
        return records

    def _write(self, records: dict[str, StoredCustomer]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [c.model_dump(mode="json") for c in records.values()]
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


def summarize(customer: StoredCustomer) -> str:
    """Human-readable snapshot of a stored customer for returning visitors."""
    lines = [
        "Customer history found!",
        "",
        f"Name: {customer.name}",
        f"Business: {customer.business_name}",
        f"Email: {customer.email}",
        f"Mobile: {customer.mobile_number or 'Not provided'}",
        f"Last Visit: {customer.last_visit:%d %b %Y}",
        f"Progress Steps: {len(customer.conversation_history)}",
    ]
    optional = [
        ("Service Interest", customer.service_type.value if customer.service_type else None),
        ("POS Model", customer.selected_pos_model),
        ("PG Plan", customer.selected_pg_plan),
        ("Pricing Plan", customer.selected_pricing_plan),
        ("Category", customer.business_category),
        ("Turnover", customer.annual_turnover),
    ]
    lines += [f"{label}: {value}" for label, value in optional if value]
    lines.append("")
    if customer.is_onboarding_complete:
        lines.append("Status: Onboarding Complete")
        if customer.case_number:
            lines.append(f"Case Number: {customer.case_number}")
        if customer.assigned_representative:
            rep = customer.assigned_representative
            lines.append(f"Representative: {rep.name} ({rep.mobile})")
    else:
        lines.append("Status: Onboarding In Progress")
        if customer.onboarding_step:
            lines.append(f"Last Step: {customer.onboarding_step}")
    return "\n".join(lines)
