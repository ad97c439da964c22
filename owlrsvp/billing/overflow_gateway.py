"""
Overflow billing through Stripe metered usage records.
"""
import time
from typing import Optional
import stripe
from starlette.concurrency import run_in_threadpool
from owlrsvp.core.config import settings
from owlrsvp.core.logging import logger


class BillingError(Exception):
    """Overflow usage could not be recorded."""


class StripeOverflowBillingGateway:
    """Records guests admitted beyond a tier limit against a metered subscription item."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY

    async def record_overflow(self, metered_item_ref: Optional[str], quantity: int) -> None:
        """
        Record a usage increment for overflow guests.

        Args:
            metered_item_ref: Stripe subscription item id of the metered price
            quantity: Number of overflow guests

        Raises:
            BillingError: If Stripe is not configured or the usage record fails
        """
        if not self.api_key:
            raise BillingError("Stripe not configured")
        if not metered_item_ref:
            raise BillingError("No metered subscription item to bill against")
        if quantity <= 0:
            raise BillingError(f"Invalid overflow quantity: {quantity}")

        try:
            record = await run_in_threadpool(
                stripe.SubscriptionItem.create_usage_record,
                metered_item_ref,
                api_key=self.api_key,
                quantity=quantity,
                timestamp=int(time.time()),
                action="increment",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe usage record failed for item {metered_item_ref}: {e}")
            raise BillingError(str(e)) from e

        logger.info(f"Recorded {quantity} overflow guests on {metered_item_ref} ({record.get('id')})")


def get_billing_gateway() -> StripeOverflowBillingGateway:
    """Dependency injection for the overflow billing gateway."""
    return StripeOverflowBillingGateway()
