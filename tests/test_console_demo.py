"""Tests that the scripted console scenarios run end to end."""

import pytest

from console_demo import SCENARIOS, ConsoleSession, _seed_status_customer
from merchant_onboarding.schemas.conversation_schema import OnboardingStep
from merchant_onboarding.tools.customer_store import InMemoryCustomerStore


@pytest.mark.parametrize("scenario", sorted(SCENARIOS))
def test_scenario_reaches_completed(scenario, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    store = InMemoryCustomerStore()
    if scenario == "status":
        _seed_status_customer(store)
    session = ConsoleSession(store)
    session.run_scenario(scenario)

    assert session.bot.step == OnboardingStep.COMPLETED
    assert "Step trace:" in capsys.readouterr().out


def test_unknown_scenario(capsys):
    ConsoleSession(InMemoryCustomerStore()).run_scenario("nope")
    assert "Unknown scenario" in capsys.readouterr().out
