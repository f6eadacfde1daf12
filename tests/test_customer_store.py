"""Tests for customer persistence and the session projection."""

import json
import threading
from datetime import datetime, timezone

import pytest

from merchant_onboarding.schemas.conversation_schema import OnboardingStep, Session
from merchant_onboarding.schemas.merchant_schema import (
    ConversationEntry,
    Representative,
    ServiceType,
    StoredCustomer,
)
from merchant_onboarding.tools.customer_store import (
    CustomerStore,
    InMemoryCustomerStore,
    JsonFileCustomerStore,
    summarize,
)

from tests.conftest import stored_customer

REP = Representative(name="Mr. Devesh Kumar", mobile="+919871299447")


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path) -> CustomerStore:
    if request.param == "memory":
        return InMemoryCustomerStore()
    return JsonFileCustomerStore(str(tmp_path / "customers.json"))


def make_session(**fields) -> Session:
    defaults = {
        "name": "Asha Rao",
        "business_name": "Rao Traders",
        "email": "asha@raotraders.in",
        "mobile_number": "9876543210",
        "service_type": ServiceType.BOTH,
        "selected_pos_model": "Smart POS Terminal",
        "selected_pg_plan": "PG Growth",
        "selected_pricing_plan": "Volume Plan",
        "business_category": "Food & Beverage",
        "annual_turnover": "5-10 Cr",
    }
    defaults.update(fields)
    return Session.new("SESS-1").advance(OnboardingStep.PRICING_OPTIONS, **defaults)


class TestUpsert:
    def test_same_email_twice_keeps_one_record(self, any_store):
        first = stored_customer(any_store)
        second = any_store.upsert(first)
        assert len(any_store.all()) == 1
        assert second.last_visit >= first.last_visit

    def test_email_match_is_case_insensitive(self, any_store):
        stored_customer(any_store, email="Asha@RaoTraders.in")
        found = any_store.find_by_email("asha@raotraders.IN")
        assert found is not None
        assert found.name == "Asha Rao"

    def test_last_write_wins(self, any_store):
        stored_customer(any_store, business_name="Old Name")
        stored_customer(any_store, business_name="New Name")
        assert any_store.find_by_email("asha@raotraders.in").business_name == "New Name"

    def test_empty_email_rejected(self, any_store):
        with pytest.raises(ValueError, match="email"):
            any_store.upsert(StoredCustomer(id="CUST_1", email="  "))

    def test_unknown_email_returns_none(self, any_store):
        assert any_store.find_by_email("nobody@example.com") is None

    def test_new_id_shape(self):
        customer_id = CustomerStore.new_id()
        prefix, millis, suffix = customer_id.split("_")
        assert prefix == "CUST"
        assert millis.isdigit()
        assert len(suffix) == 9

    def test_reset_clears_memory_store(self):
        store = InMemoryCustomerStore()
        stored_customer(store)
        store.reset()
        assert store.all() == []

    def test_concurrent_upserts_keep_every_record(self, any_store):
        def worker(n: int) -> None:
            stored_customer(any_store, email=f"merchant{n}@example.com")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(any_store.all()) == 8


class TestFindByMobile:
    def test_matches_normalized_number(self, any_store):
        stored_customer(any_store, mobile_number="9876543210")
        found = any_store.find_by_mobile("98765 43210")
        assert found is not None and found.email == "asha@raotraders.in"

    def test_most_recent_visit_wins(self, any_store):
        stored_customer(any_store, email="old@example.com", mobile_number="9876543210")
        stored_customer(any_store, email="new@example.com", mobile_number="9876543210")
        assert any_store.find_by_mobile("9876543210").email == "new@example.com"

    def test_no_match(self, any_store):
        assert any_store.find_by_mobile("9000000000") is None


class TestHistory:
    def test_record_progress_appends(self, any_store):
        stored_customer(any_store)
        any_store.record_progress("asha@raotraders.in", "posOptions", {"service_type": "both"})
        any_store.record_progress("asha@raotraders.in", "pgOptions")
        customer = any_store.find_by_email("asha@raotraders.in")
        assert [e.step for e in customer.conversation_history] == ["posOptions", "pgOptions"]
        assert customer.conversation_history[0].data == {"service_type": "both"}
        assert customer.onboarding_step == "pgOptions"

    def test_record_progress_unknown_email_is_noop(self, any_store):
        assert any_store.record_progress("nobody@example.com", "posOptions") is None
        assert any_store.all() == []

    def test_with_entry_never_drops_history(self):
        customer = StoredCustomer(id="CUST_1", email="a@b.co")
        first = customer.with_entry(ConversationEntry(step="posOptions"))
        second = first.with_entry(ConversationEntry(step="pgOptions"))
        assert len(first.conversation_history) == 1
        assert [e.step for e in second.conversation_history] == ["posOptions", "pgOptions"]


class TestJsonFileStore:
    def test_survives_reload_with_timestamps(self, tmp_path):
        path = tmp_path / "customers.json"
        store = JsonFileCustomerStore(str(path))
        entry_time = datetime(2025, 3, 15, 10, 30, tzinfo=timezone.utc)
        customer = stored_customer(store, case_number="CASE00000001").with_entry(
            ConversationEntry(step="completed", timestamp=entry_time)
        )
        saved = store.upsert(customer)

        reloaded = JsonFileCustomerStore(str(path)).find_by_email("asha@raotraders.in")
        assert reloaded.last_visit == saved.last_visit
        assert reloaded.last_visit.tzinfo is not None
        assert reloaded.conversation_history[0].timestamp == entry_time
        assert reloaded.case_number == "CASE00000001"

    def test_timestamps_written_as_iso_strings(self, tmp_path):
        path = tmp_path / "customers.json"
        stored_customer(JsonFileCustomerStore(str(path)))
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert datetime.fromisoformat(raw[0]["last_visit"]).tzinfo is not None

    def test_naive_timestamps_read_as_utc(self, tmp_path):
        path = tmp_path / "customers.json"
        path.write_text(
            json.dumps([{"id": "CUST_1", "email": "a@b.co", "last_visit": "2025-01-02T03:04:05"}]),
            encoding="utf-8",
        )
        customer = JsonFileCustomerStore(str(path)).find_by_email("a@b.co")
        assert customer.last_visit == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileCustomerStore(str(tmp_path / "none.json")).all() == []

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "customers.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileCustomerStore(str(path)).all() == []

    def test_creates_parent_directory(self, tmp_path):
        store = JsonFileCustomerStore(str(tmp_path / "nested" / "dir" / "customers.json"))
        stored_customer(store)
        assert store.path.exists()
        assert not list(store.path.parent.glob("*.tmp"))


class TestProjection:
    def test_session_round_trip_keeps_read_fields(self):
        session = make_session()
        customer = StoredCustomer.from_session(session, "CUST_1")
        assert customer.to_fields() == session.fields
        assert customer.onboarding_step == "pricingOptions"

    def test_previous_record_keeps_only_id_and_history(self):
        session = make_session()
        previous = StoredCustomer(
            id="CUST_OLD",
            email="asha@raotraders.in",
            conversation_history=(ConversationEntry(step="posOptions"),),
            is_onboarding_complete=True,
            case_number="CASE00000001",
            assigned_representative=Representative(name="Rep", mobile="1"),
        )
        customer = StoredCustomer.from_session(session, "CUST_NEW", previous, REP)
        assert customer.id == "CUST_OLD"
        assert len(customer.conversation_history) == 1
        assert not customer.is_onboarding_complete
        assert customer.case_number is None
        assert customer.assigned_representative is None

    def test_completed_with_case_number_is_complete(self):
        session = make_session().advance(OnboardingStep.COMPLETED).with_case_number("CASE00000002")
        customer = StoredCustomer.from_session(session, "CUST_1", representative=REP)
        assert customer.is_onboarding_complete
        assert customer.case_number == "CASE00000002"
        assert customer.assigned_representative == REP

    def test_completed_without_case_number_is_not_complete(self):
        session = make_session().advance(OnboardingStep.COMPLETED)
        customer = StoredCustomer.from_session(session, "CUST_1", representative=REP)
        assert not customer.is_onboarding_complete
        assert customer.assigned_representative is None
        assert customer.onboarding_step == "completed"


class TestSummarize:
    def test_in_progress(self):
        customer = StoredCustomer(
            id="CUST_1", name="Asha Rao", email="a@b.co", onboarding_step="gstUpload",
            annual_turnover="1-5 Cr",
        )
        summary = summarize(customer)
        assert "Onboarding In Progress" in summary
        assert "Last Step: gstUpload" in summary
        assert "Turnover: 1-5 Cr" in summary

    def test_complete_shows_case_and_representative(self):
        customer = StoredCustomer(
            id="CUST_1", email="a@b.co", is_onboarding_complete=True, case_number="CASE1",
            assigned_representative=Representative(name="Mr. Devesh Kumar", mobile="+919871299447"),
        )
        summary = summarize(customer)
        assert "Onboarding Complete" in summary
        assert "Case Number: CASE1" in summary
        assert "Mr. Devesh Kumar" in summary
