from fastapi import APIRouter, Depends, HTTPException
from owlrsvp.schemas import EventCreate, EventCreated, PublicEventOut
from owlrsvp.db.session import get_session
from owlrsvp.services.event_service import EventService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events", tags=["events"])

def get_event_service(session: AsyncSession = Depends(get_session)) -> EventService:
    return EventService(session)

@router.post("/", response_model=EventCreated, status_code=201)
async def create_event_endpoint(
    payload: EventCreate,
    event_service: EventService = Depends(get_event_service)
):
    """Create an event and return its guest and admin links."""
    return await event_service.create_event(payload)

@router.get("/{event_ref}", response_model=PublicEventOut)
async def get_public_event(
    event_ref: str,
    event_service: EventService = Depends(get_event_service)
):
    """
    Guest-facing event details.

    event_ref may be the event id or its admin token; both resolve to the same event.
    """
    ev = await event_service.get_public_event(event_ref)
    if not ev:
        raise HTTPException(status_code=404, detail="Event not found")
    return ev
