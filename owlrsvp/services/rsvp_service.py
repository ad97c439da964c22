from sqlalchemy.ext.asyncio import AsyncSession
from owlrsvp.billing.tier_resolver import TierCapacityResolver
from owlrsvp.core.config import settings
from owlrsvp.db.repositories import EventRepository, AttendeeRepository
from owlrsvp.events import publisher
from owlrsvp.schemas import RSVPSubmission
from owlrsvp.services.admission import AdmissionController, Decision


class RSVPService:
    def __init__(self, session: AsyncSession, billing):
        self.session = session
        self.controller = AdmissionController(
            events=EventRepository(session),
            attendees=AttendeeRepository(session),
            tiers=TierCapacityResolver(session),
            billing=billing,
            net_prior_response=settings.CAPACITY_NETS_PRIOR_RESPONSE,
        )

    async def submit(self, event_ref: str, submission: RSVPSubmission) -> Decision:
        decision = await self.controller.admit(event_ref, submission)
        if not decision.accepted:
            # Nothing was written; committing releases the event row lock
            await self.session.commit()
            return decision

        attendee = decision.attendee
        routing_key = "rsvp.updated" if decision.updated else "rsvp.created"
        await publisher.publish_event_safely(routing_key, {
            "type": routing_key,
            "event_id": str(attendee.event_id),
            "attendee_id": str(attendee.id),
            "attending": attendee.attending,
            "party_size": attendee.party_size,
            "overflow_guest_count": decision.overflow_guest_count,
        })
        return decision
