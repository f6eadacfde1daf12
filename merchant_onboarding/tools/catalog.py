"""Product catalog: POS devices, payment-gateway plans, pricing plans and categories."""

import re
from typing import Optional

from merchant_onboarding.logging_context import get_session_logger

logger = get_session_logger(__name__)

POS_CATALOG: dict[str, dict] = {
    "mpos-lite": {
        "label": "Mobile POS Lite",
        "description": "Bluetooth card reader that pairs with your smartphone.",
        "rental": "₹499/month",
        "best_for": "Home businesses and delivery staff",
    },
    "smart-pos": {
        "label": "Smart POS Terminal",
        "description": "Android terminal with printer, card, UPI QR and wallet acceptance.",
        "rental": "₹799/month",
        "best_for": "Retail counters and restaurants",
    },
    "desktop-pos": {
        "label": "Desktop POS System",
        "description": "Countertop terminal with billing software and inventory sync.",
        "rental": "₹1,299/month",
        "best_for": "Supermarkets and multi-counter stores",
    },
}

PG_CATALOG: dict[str, dict] = {
    "starter": {
        "label": "PG Starter",
        "description": "Cards, UPI and netbanking with a hosted checkout page.",
        "rate": "2.0% per transaction",
        "setup_fee": "Nil",
    },
    "growth": {
        "label": "PG Growth",
        "description": "Adds wallets, payment links and subscription billing.",
        "rate": "1.8% per transaction",
        "setup_fee": "₹4,999",
    },
    "enterprise": {
        "label": "PG Enterprise",
        "description": "Custom checkout, split settlements and a dedicated account manager.",
        "rate": "1.5% per transaction",
        "setup_fee": "₹14,999",
    },
}

PRICING_PLANS: dict[str, dict] = {
    "standard": {
        "label": "Standard Plan",
        "rate_percent": 2.0,
        "monthly_fee": 0,
        "setup_fee": 2999,
    },
    "volume": {
        "label": "Volume Plan",
        "rate_percent": 1.75,
        "monthly_fee": 999,
        "setup_fee": 1999,
    },
    "premium": {
        "label": "Premium Plan",
        "rate_percent": 1.5,
        "monthly_fee": 2499,
        "setup_fee": 0,
    },
}

BUSINESS_CATEGORIES: list[str] = [
    "Retail & Consumer Goods",
    "Healthcare & Wellness",
    "Food & Beverage",
    "Automobile & Transport",
    "E-commerce & Online Services",
    "Home & Living",
    "Financial Services",
    "Education & Training",
    "Professional Services",
    "Telecom & Utilities",
    "Travel & Entertainment & Events",
]

# Turnover (in crore) at or above which a plan is recommended
_VOLUME_THRESHOLD_CR = 5
_PREMIUM_THRESHOLD_CR = 10


def pos_labels() -> list[str]:
    return [info["label"] for info in POS_CATALOG.values()]


def pg_labels() -> list[str]:
    return [info["label"] for info in PG_CATALOG.values()]


def pricing_labels() -> list[str]:
    return [info["label"] for info in PRICING_PLANS.values()]


def _find_by_label(catalog: dict[str, dict], label: str) -> Optional[str]:
    for item_id, info in catalog.items():
        if info["label"] == label:
            return item_id
    return None


def find_pos_model(label: str) -> Optional[str]:
    """Exact label match to a POS model ID. Returns None if no match."""
    return _find_by_label(POS_CATALOG, label)


def find_pg_plan(label: str) -> Optional[str]:
    """Exact label match to a PG plan ID. Returns None if no match."""
    return _find_by_label(PG_CATALOG, label)


def find_pricing_plan(label: str) -> Optional[str]:
    """Exact label match to a pricing plan ID. Returns None if no match."""
    return _find_by_label(PRICING_PLANS, label)


def find_business_category(text: str) -> Optional[str]:
    """Match typed text to a listed category, case-insensitively."""
    normalized = text.lower().strip()
    for category in BUSINESS_CATEGORIES:
        if category.lower() == normalized:
            return category
    return None


def recommend_pricing_plan(annual_turnover: Optional[str]) -> str:
    """Pick a pricing plan ID from a free-text turnover such as '5-10 Cr'.

    The largest number mentioned is read as crore; anything unparseable
    falls back to the standard plan.
    """
    if not annual_turnover:
        return "standard"
    numbers = [float(n) for n in re.findall(r"\d+(?:\.\d+)?", annual_turnover)]
    if not numbers:
        return "standard"
    top = max(numbers)
    if top >= _PREMIUM_THRESHOLD_CR:
        return "premium"
    if top >= _VOLUME_THRESHOLD_CR:
        return "volume"
    return "standard"


def describe_pricing_plan(plan_id: str) -> str:
    plan = PRICING_PLANS[plan_id]
    monthly = f"₹{plan['monthly_fee']:,}/month" if plan["monthly_fee"] else "no monthly fee"
    setup = f"₹{plan['setup_fee']:,} setup" if plan["setup_fee"] else "free setup"
    return f"{plan['label']}: {plan['rate_percent']:.2f}% per transaction, {monthly}, {setup}"


def build_counter_offer(plan_id: str, discount_percent: int, waive_setup_fee: bool) -> dict:
    """Build the canned negotiated version of a pricing plan."""
    plan = PRICING_PLANS[plan_id]
    factor = (100 - discount_percent) / 100
    offer = {
        "base_plan": plan_id,
        "label": f"{plan['label']} ({discount_percent}% off)",
        "rate_percent": round(plan["rate_percent"] * factor, 2),
        "monthly_fee": int(plan["monthly_fee"] * factor),
        "setup_fee": 0 if waive_setup_fee else plan["setup_fee"],
    }
    logger.debug("Counter offer built: %s", offer["label"])
    return offer
