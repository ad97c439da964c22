"""
Resolves the guest capacity an event owner's subscription allows.

Resolution fails closed: anything that cannot be positively identified as an
active paid subscription is treated as the free tier.
"""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from owlrsvp.billing import plans
from owlrsvp.core.logging import logger
from owlrsvp.db.repositories import AdminUserRepository

ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing"})


@dataclass(frozen=True)
class TierCapacity:
    """Guest capacity of one owner at request time."""

    tier: str
    guest_limit: Optional[int]
    overflow_billing_available: bool = False
    metered_item_ref: Optional[str] = None

    @property
    def is_unlimited(self) -> bool:
        return self.guest_limit is None

    @classmethod
    def free(cls) -> "TierCapacity":
        return cls(tier=plans.FREE, guest_limit=plans.get_plan_limits(plans.FREE).max_attendees_per_event)


def capacity_for_owner(owner) -> TierCapacity:
    """
    Derive TierCapacity from an AdminUser row.

    Args:
        owner: AdminUser, or None for ownerless events

    Returns:
        The owner's capacity, or the free tier when the subscription is not active
    """
    if owner is None:
        return TierCapacity.free()

    tier = plans.normalize_tier(owner.subscription_tier)
    if tier not in plans.PAID_TIERS:
        return TierCapacity.free()

    status = (owner.subscription_status or "").lower()
    if status not in ACTIVE_SUBSCRIPTION_STATUSES:
        logger.debug(f"Owner {owner.id} on {tier} with subscription status {status or 'none'}; using free tier")
        return TierCapacity.free()

    limits = plans.get_plan_limits(tier)
    metered_item = owner.stripe_metered_item_id or None
    return TierCapacity(
        tier=tier,
        guest_limit=limits.max_attendees_per_event,
        overflow_billing_available=bool(limits.overage_fee_per_guest and metered_item),
        metered_item_ref=metered_item,
    )


class TierCapacityResolver:
    def __init__(self, session: AsyncSession):
        self.users = AdminUserRepository(session)

    async def resolve(self, owner_id) -> TierCapacity:
        if owner_id is None:
            return TierCapacity.free()
        try:
            owner = await self.users.get(owner_id)
        except SQLAlchemyError as e:
            logger.warning(f"Could not resolve tier for owner {owner_id}, falling back to free tier: {e}")
            return TierCapacity.free()
        if owner is None:
            logger.warning(f"Event owner {owner_id} not found, falling back to free tier")
        return capacity_for_owner(owner)
