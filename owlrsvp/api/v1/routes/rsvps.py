from fastapi import APIRouter, Depends, HTTPException, Request
from owlrsvp.billing.overflow_gateway import get_billing_gateway
from owlrsvp.core.config import settings
from owlrsvp.core.limiter import limiter
from owlrsvp.db.session import get_session
from owlrsvp.schemas import RSVPSubmission, RSVPResult
from owlrsvp.services.admission import Decision, RejectionReason
from owlrsvp.services.rsvp_service import RSVPService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events", tags=["rsvps"])

REJECTION_STATUS = {
    RejectionReason.not_found: 404,
    RejectionReason.invalid_code: 403,
    RejectionReason.not_on_guest_list: 403,
    RejectionReason.missing_identity: 400,
    RejectionReason.at_capacity: 409,
}

def get_rsvp_service(
    session: AsyncSession = Depends(get_session),
    billing=Depends(get_billing_gateway),
) -> RSVPService:
    return RSVPService(session, billing)

def rejection_to_http(decision: Decision) -> HTTPException:
    detail = {"reason": decision.reason.value, "message": decision.message}
    if decision.reason == RejectionReason.at_capacity:
        detail.update({"limit": decision.limit, "current": decision.current})
    return HTTPException(status_code=REJECTION_STATUS[decision.reason], detail=detail)

@router.post("/{event_ref}/rsvp", response_model=RSVPResult)
@limiter.limit(settings.RSVP_RATE_LIMIT)
async def submit_rsvp(
    request: Request,
    event_ref: str,
    submission: RSVPSubmission,
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """
    Submit or update a guest's RSVP.

    Rejections map to 404 (unknown event), 403 (bad code / not on guest list),
    400 (no identity) and 409 (at capacity, with limit and current count).
    """
    decision = await rsvp_service.submit(event_ref, submission)
    if not decision.accepted:
        raise rejection_to_http(decision)
    return {
        "status": decision.outcome.value,
        "message": decision.message,
        "attendee": decision.attendee,
        "updated": decision.updated,
        "overflow_guest_count": decision.overflow_guest_count,
    }
