"""
Offline console demo: runs a merchant onboarding conversation in the terminal.

Uses the real state machine, customer store and demo collaborators. No
network calls and no API keys. Designed for live demo walkthroughs.

Usage:
    python console_demo.py
    python console_demo.py --scenario new
    python console_demo.py --scenario existing
    python console_demo.py --scenario status

Interactive commands:
    <number>                  pick one of the listed options
    /upload <type> <file>     upload a document (gst, pan, incorporation, moa)
    /resend [mobile|email]    resend the OTP
    /ask <question>           ask a question without leaving the current step
    quit                      end the session
"""

import argparse
from typing import Optional

from merchant_onboarding.config import settings
from merchant_onboarding.orchestrator import OnboardingBot
from merchant_onboarding.schemas.conversation_schema import OnboardingStep, TransitionResult
from merchant_onboarding.schemas.merchant_schema import StoredCustomer
from merchant_onboarding.tools.customer_store import (
    CustomerStore,
    InMemoryCustomerStore,
    JsonFileCustomerStore,
)

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

MAX_INPUT_LENGTH = 500

# Pre-scripted scenarios for --scenario flag: (kind, value) pairs
SCENARIOS: dict[str, list[tuple[str, str]]] = {
    "new": [
        ("option", "Start new application"),
        ("text", "Asha Rao"),
        ("text", "Rao Traders"),
        ("text", "asha@raotraders.in"),
        ("option", "Payment Gateway"),
        ("option", "PG Growth"),
        ("option", "No, I'm new"),
        ("option", "Retail & Consumer Goods"),
        ("text", "5-10 Cr"),
        ("option", "I need to negotiate"),
        ("text", "Can you lower the monthly fee?"),
        ("option", "Accept revised offer"),
        ("upload", "gst gst_certificate.pdf"),
        ("upload", "pan pan_card.jpg"),
        ("upload", "incorporation incorporation.pdf"),
        ("upload", "moa moa.pdf"),
        ("option", "Download Complete Application PDF"),
        ("text", settings.otp.email_code),
    ],
    "existing": [
        ("option", "Start new application"),
        ("text", "John Smith"),
        ("text", "Smith Electronics Ltd"),
        ("text", "john@smithelectronics.com"),
        ("option", "Both"),
        ("option", "Smart POS Terminal"),
        ("option", "PG Starter"),
        ("option", "Yes, I am"),
        ("text", "9876543210"),
        ("option", "Yes, link this account"),
        ("option", "Generate Complete PDF & Proceed"),
        ("text", f"{settings.otp.mobile_code} {settings.otp.email_code}"),
    ],
    "status": [
        ("option", "Check application status"),
        ("text", "unknown@example.com"),
        ("option", "Try another contact"),
        ("text", "meera@meerafoods.in"),
        ("text", settings.otp.email_code),
    ],
}


def _seed_status_customer(store: CustomerStore) -> None:
    """A completed application for the status scenario to find."""
    store.upsert(StoredCustomer(
        id=store.new_id(),
        name="Meera Iyer",
        business_name="Meera Foods",
        email="meera@meerafoods.in",
        mobile_number="9123456780",
        onboarding_step=OnboardingStep.COMPLETED.value,
        is_onboarding_complete=True,
        case_number="CASE12345678",
    ))


class ConsoleSession:
    """Drives one OnboardingBot from the terminal."""

    def __init__(self, store: Optional[CustomerStore] = None) -> None:
        self.bot = OnboardingBot(store=store or InMemoryCustomerStore())
        self._options: tuple[str, ...] = ()

    def bot_say(self, result: TransitionResult) -> None:
        for message in result.messages:
            print(f"{GREEN}{BOLD}[{settings.bot_name}]{RESET} {GREEN}{message}{RESET}")
        self._options = result.options
        for i, label in enumerate(result.options, start=1):
            print(f"  {YELLOW}{i}. {label}{RESET}")
        if not result.accepted:
            self.system_log("Input not accepted, step unchanged")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _log_step(self) -> None:
        self.system_log(f"Step: {self.bot.step.value} ({self.bot.progress}%)")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  MERCHANT ONBOARDING - {title}{RESET}")
        print(f"{BOLD}  Business: {settings.business.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _footer(self) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{DIM}  Step trace: {' -> '.join(self.bot.session.step_trace())}{RESET}")
        if self.bot.session.case_number:
            print(f"{DIM}  Case number: {self.bot.session.case_number}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        self.bot_say(self.bot.start())
        self._log_step()

        for kind, value in steps:
            if self.bot.step == OnboardingStep.COMPLETED:
                break
            print(f"\n{BLUE}[Merchant] {RESET}{value}")
            if kind == "option":
                result = self.bot.select_option(value)
            elif kind == "upload":
                upload_type, file_name = value.split(maxsplit=1)
                result = self.bot.complete_upload(upload_type, file_name)
            else:
                result = self.bot.submit_text(value)
            self.bot_say(result)
            self._log_step()

        self._footer()

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{DIM}  Type a number to pick an option, /ask <question> for help, 'quit' to exit{RESET}")
        self.bot_say(self.bot.start())
        self._log_step()

        while self.bot.step != OnboardingStep.COMPLETED:
            user_input = input(f"\n{BLUE}[Merchant] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(user_input) > MAX_INPUT_LENGTH:
                print(f"{RED}That was quite long. Please keep it brief.{RESET}")
                continue

            result = self._process_input(user_input)
            if result is not None:
                self.bot_say(result)
                self._log_step()

        self._footer()

    def _process_input(self, text: str) -> Optional[TransitionResult]:
        if text.isdigit() and 1 <= int(text) <= len(self._options):
            return self.bot.select_option(self._options[int(text) - 1])

        command, _, rest = text.partition(" ")
        if command == "/upload":
            parts = rest.split(maxsplit=1)
            if len(parts) != 2:
                print(f"{RED}Usage: /upload <gst|pan|incorporation|moa> <file name>{RESET}")
                return None
            try:
                return self.bot.complete_upload(parts[0].lower(), parts[1])
            except ValueError:
                print(f"{RED}Unknown document type: {parts[0]}{RESET}")
                return None
        if command == "/resend":
            return self.bot.resend_otp(rest.strip() or None)
        if command == "/ask":
            return self.bot.ask(rest)
        if self._options and text in self._options:
            return self.bot.select_option(text)
        return self.bot.submit_text(text)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline merchant onboarding demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--store",
        default=None,
        help="JSON file for customer records (default: in-memory for scenarios, "
             f"{settings.storage.customer_store_path} for interactive mode)",
    )
    args = parser.parse_args()

    if args.scenario:
        store = JsonFileCustomerStore(args.store) if args.store else InMemoryCustomerStore()
        if args.scenario == "status":
            _seed_status_customer(store)
        ConsoleSession(store).run_scenario(args.scenario)
    else:
        ConsoleSession(JsonFileCustomerStore(args.store or settings.storage.customer_store_path)).run()


if __name__ == "__main__":
    main()
