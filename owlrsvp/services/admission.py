"""
RSVP admission control.

Decides whether a guest's RSVP submission is accepted, rejected, or accepted
with an overflow charge, based on the event's auth mode and the owner's tier
capacity. Rejections are returned as Decision values; only infrastructure
failures raise.
"""
import enum
from dataclasses import dataclass
from typing import Optional, Protocol, Any, Dict

from owlrsvp.billing.overflow_gateway import BillingError
from owlrsvp.billing.tier_resolver import TierCapacity
from owlrsvp.core.logging import logger
from owlrsvp.db.models.event import AuthMode
from owlrsvp.schemas import RSVPSubmission


class DecisionOutcome(str, enum.Enum):
    accepted = "accepted"
    accepted_with_overflow = "accepted_with_overflow"
    rejected = "rejected"


class RejectionReason(str, enum.Enum):
    not_found = "not_found"
    invalid_code = "invalid_code"
    not_on_guest_list = "not_on_guest_list"
    missing_identity = "missing_identity"
    at_capacity = "at_capacity"


REJECTION_MESSAGES = {
    RejectionReason.not_found: "Event not found. Please check your invitation link.",
    RejectionReason.invalid_code: "Invalid promo code. Please check and try again.",
    RejectionReason.not_on_guest_list: (
        "You are not on the guest list for this event. Please contact the event organizer."
    ),
    RejectionReason.missing_identity: "Please provide your email address or your first and last name.",
    RejectionReason.at_capacity: "This event has reached its guest limit.",
}


@dataclass(frozen=True)
class Decision:
    outcome: DecisionOutcome
    reason: Optional[RejectionReason] = None
    limit: Optional[int] = None
    current: Optional[int] = None
    overflow_guest_count: int = 0
    attendee: Any = None
    updated: bool = False
    plus_guests_dropped: bool = False

    @property
    def accepted(self) -> bool:
        return self.outcome != DecisionOutcome.rejected

    @property
    def message(self) -> str:
        if self.outcome == DecisionOutcome.rejected:
            if self.reason == RejectionReason.at_capacity and self.limit is not None:
                return (
                    f"This event has reached its guest limit "
                    f"({self.limit} guests, {self.current} already attending)."
                )
            return REJECTION_MESSAGES[self.reason]
        message = "RSVP updated successfully" if self.updated else "RSVP submitted successfully"
        if self.plus_guests_dropped:
            message += ". This event does not allow additional guests, so only you were counted"
        return message

    @classmethod
    def rejected(cls, reason: RejectionReason, limit: Optional[int] = None, current: Optional[int] = None) -> "Decision":
        return cls(outcome=DecisionOutcome.rejected, reason=reason, limit=limit, current=current)


class EventDirectory(Protocol):
    async def find_by_id(self, event_id, for_update: bool = False): ...

    async def find_by_admin_token(self, token: str, for_update: bool = False): ...


class AttendeeLedger(Protocol):
    async def sum_attending_party_size(self, event_id) -> int: ...

    async def find_by_identity(self, event_id, email=None, first_name=None, last_name=None): ...

    async def upsert(self, event_id, identity: Dict[str, Optional[str]], fields: Dict[str, Any]): ...


class TierResolver(Protocol):
    async def resolve(self, owner_id) -> TierCapacity: ...


class OverflowBillingGateway(Protocol):
    async def record_overflow(self, metered_item_ref: Optional[str], quantity: int) -> None: ...


def codes_match(submitted: Optional[str], configured: Optional[str]) -> bool:
    """Trimmed, case-insensitive promo code comparison; an unset event code matches nothing."""
    expected = (configured or "").strip().lower()
    if not expected:
        return False
    return (submitted or "").strip().lower() == expected


def requested_party_size(attending: bool, guest_count: int) -> int:
    return 1 + max(0, guest_count) if attending else 0


class AdmissionController:
    def __init__(
        self,
        events: EventDirectory,
        attendees: AttendeeLedger,
        tiers: TierResolver,
        billing: OverflowBillingGateway,
        net_prior_response: bool = True,
    ):
        self.events = events
        self.attendees = attendees
        self.tiers = tiers
        self.billing = billing
        self.net_prior_response = net_prior_response

    async def admit(self, event_ref: str, submission: RSVPSubmission) -> Decision:
        """
        Decide on one RSVP submission and persist it when accepted.

        Order: event lookup, capacity, auth mode, overflow billing, upsert.

        Party size: a negative guest_count is clamped to 0, and guest_count is
        normalised to 0 when the event does not allow plus guests. Both are
        accepted rather than rejected; the second is flagged on the Decision so
        the guest is told.

        Capacity step (5a): with netting on, the submitter's prior party size
        (held) is subtracted before comparing against the limit, and the check
        only applies when the submission grows their party. The overflow charged
        is min(requested - held, projected - limit). While the event is at or
        under its limit this equals (current + requested) - limit; once it is
        already over, guests above the limit were billed when admitted, so only
        the newly requested units are charged.

        Capacity is checked before the auth gate, so a guest who is both over
        capacity and unauthorized is told the event is full. The overflow charge
        is only made once the auth gate has passed.

        Args:
            event_ref: Event id or admin token
            submission: The guest's RSVP form

        Returns:
            Decision
        """
        event = await self.events.find_by_id(event_ref, for_update=True)
        if event is None:
            event = await self.events.find_by_admin_token(event_ref, for_update=True)
        if event is None:
            logger.info(f"RSVP rejected: no event for ref {event_ref}")
            return Decision.rejected(RejectionReason.not_found)

        guest_count = max(0, submission.guest_count or 0)
        plus_guests_dropped = False
        if not event.allow_plus_guests and guest_count:
            guest_count = 0
            plus_guests_dropped = submission.attending
        requested = requested_party_size(submission.attending, guest_count)

        identity = {
            "email": submission.email,
            "first_name": submission.first_name,
            "last_name": submission.last_name,
        }
        has_identity = bool(submission.email or (submission.first_name and submission.last_name))
        prior = None
        if has_identity:
            prior = await self.attendees.find_by_identity(event.id, **identity)

        current = await self.attendees.sum_attending_party_size(event.id)
        held = prior.party_size if (prior is not None and self.net_prior_response) else 0
        capacity = await self.tiers.resolve(event.owner_id)

        overflow = 0
        projected = current - held + requested
        if not capacity.is_unlimited and requested > held and projected > capacity.guest_limit:
            if not capacity.overflow_billing_available:
                logger.info(
                    f"RSVP rejected for event {event.id}: at capacity "
                    f"({current} + {requested} > {capacity.guest_limit}, tier {capacity.tier})"
                )
                return Decision.rejected(RejectionReason.at_capacity, capacity.guest_limit, current)
            # Units already over the limit were billed when they were admitted
            overflow = min(requested - held, projected - capacity.guest_limit)

        auth_mode = event.effective_auth_mode
        if auth_mode == AuthMode.code:
            if not codes_match(submission.promo_code, event.promo_code):
                logger.info(f"RSVP rejected for event {event.id}: invalid promo code")
                return Decision.rejected(RejectionReason.invalid_code)
        if not has_identity:
            return Decision.rejected(RejectionReason.missing_identity)
        if auth_mode == AuthMode.guest_list and prior is None:
            logger.info(f"RSVP rejected for event {event.id}: not on guest list")
            return Decision.rejected(RejectionReason.not_on_guest_list)

        if overflow:
            try:
                await self.billing.record_overflow(capacity.metered_item_ref, overflow)
            except BillingError as e:
                logger.error(f"Overflow billing failed for event {event.id}, rejecting RSVP: {e}")
                return Decision.rejected(RejectionReason.at_capacity, capacity.guest_limit, current)

        fields = {
            "first_name": submission.first_name,
            "last_name": submission.last_name,
            "phone": submission.phone,
            "address": submission.address,
            "attending": submission.attending,
            "guest_count": guest_count,
        }
        try:
            attendee = await self.attendees.upsert(event.id, identity, fields)
        except Exception:
            if overflow:
                logger.error(
                    f"Billed {overflow} overflow guests on {capacity.metered_item_ref} "
                    f"but the RSVP for event {event.id} was not persisted"
                )
            raise

        if overflow:
            logger.info(f"RSVP accepted for event {event.id} with {overflow} overflow guests")
            return Decision(
                outcome=DecisionOutcome.accepted_with_overflow,
                overflow_guest_count=overflow,
                attendee=attendee,
                updated=prior is not None,
                plus_guests_dropped=plus_guests_dropped,
            )
        logger.info(f"RSVP accepted for event {event.id} (party size {requested})")
        return Decision(
            outcome=DecisionOutcome.accepted,
            attendee=attendee,
            updated=prior is not None,
            plus_guests_dropped=plus_guests_dropped,
        )
