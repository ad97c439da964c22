"""Subscription plan table and the per-tier guest limits derived from it."""
from dataclasses import dataclass
from typing import Optional, Dict
from owlrsvp.core.config import settings

FREE = "free"
BASIC = "basic"
PRO = "pro"
ENTERPRISE = "enterprise"
TEAM = "team"

PAID_TIERS = frozenset({BASIC, PRO, ENTERPRISE, TEAM})

OVERFLOW_PRICE_PER_GUEST = 0.05


@dataclass(frozen=True)
class PlanLimits:
    max_events: Optional[int]
    # None means unlimited
    max_attendees_per_event: Optional[int]
    overage_fee_per_guest: Optional[float] = None


PLAN_LIMITS: Dict[str, PlanLimits] = {
    FREE: PlanLimits(max_events=1, max_attendees_per_event=settings.FREE_TIER_GUEST_LIMIT),
    BASIC: PlanLimits(max_events=5, max_attendees_per_event=200, overage_fee_per_guest=OVERFLOW_PRICE_PER_GUEST),
    PRO: PlanLimits(max_events=25, max_attendees_per_event=1000, overage_fee_per_guest=OVERFLOW_PRICE_PER_GUEST),
    ENTERPRISE: PlanLimits(max_events=None, max_attendees_per_event=None, overage_fee_per_guest=OVERFLOW_PRICE_PER_GUEST),
    # Team accounts inherit from their organization administrator
    TEAM: PlanLimits(max_events=None, max_attendees_per_event=None, overage_fee_per_guest=OVERFLOW_PRICE_PER_GUEST),
}


def normalize_tier(subscription_tier: Optional[str]) -> str:
    """Lower-cased tier name, or free when unknown."""
    tier = (subscription_tier or FREE).strip().lower()
    return tier if tier in PLAN_LIMITS else FREE


def get_plan_limits(subscription_tier: Optional[str] = FREE) -> PlanLimits:
    return PLAN_LIMITS[normalize_tier(subscription_tier)]


def calculate_overflow_charge(subscription_tier: Optional[str], overflow_guests: int) -> float:
    """Dollar amount billed for guests beyond the plan limit."""
    fee = get_plan_limits(subscription_tier).overage_fee_per_guest or 0
    return round(max(0, overflow_guests) * fee, 2)


def format_guest_limit(limit: Optional[int]) -> str:
    return "Unlimited" if limit is None else f"{limit:,}"
