"""Organizer routes, authorized by possession of the event's admin token."""
from fastapi import APIRouter, Depends, Response
from owlrsvp.db.session import get_session
from owlrsvp.schemas import AttendeeOut, DashboardOut, EventOut, EventSettingsUpdate, GuestListEntry
from owlrsvp.services.organizer_service import OrganizerService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin", tags=["admin"])

def get_organizer_service(session: AsyncSession = Depends(get_session)) -> OrganizerService:
    return OrganizerService(session)

@router.get("/{token}", response_model=DashboardOut)
async def get_dashboard(token: str, organizer: OrganizerService = Depends(get_organizer_service)):
    return await organizer.dashboard(token)

@router.patch("/{token}/event", response_model=EventOut)
async def update_event_settings(
    token: str,
    payload: EventSettingsUpdate,
    organizer: OrganizerService = Depends(get_organizer_service)
):
    return await organizer.update_settings(token, payload)

@router.post("/{token}/attendees", response_model=AttendeeOut)
async def add_guest(
    token: str,
    entry: GuestListEntry,
    organizer: OrganizerService = Depends(get_organizer_service)
):
    """Add a guest to the event's list, or update the matching entry."""
    return await organizer.add_guest(token, entry)

@router.get("/{token}/csv")
async def export_csv(token: str, organizer: OrganizerService = Depends(get_organizer_service)):
    filename, body = await organizer.export_csv(token)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
