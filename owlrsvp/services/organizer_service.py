"""Organizer-side operations addressed by an event's admin token."""
import csv
import io
import re
from typing import Tuple
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from owlrsvp.billing.tier_resolver import TierCapacityResolver
from owlrsvp.core.logging import logger
from owlrsvp.db.models.event import Event
from owlrsvp.db.repositories import EventRepository, AttendeeRepository
from owlrsvp.schemas import EventSettingsUpdate, GuestListEntry
from owlrsvp.services.event_service import serialize_event, validate_auth_settings, invalidate_public_events

CSV_HEADER = [
    "First Name", "Last Name", "Email", "Phone", "Address",
    "Attending", "Guest Count", "Total Party Size", "RSVP Date",
]


class OrganizerService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.events = EventRepository(session)
        self.attendees = AttendeeRepository(session)
        self.tiers = TierCapacityResolver(session)

    async def get_event_for_token(self, token: str) -> Event:
        ev = await self.events.find_by_admin_token(token)
        if not ev:
            raise HTTPException(status_code=404, detail="Invalid admin token")
        return ev

    async def dashboard(self, token: str) -> dict:
        """
        Event, its attendees and response totals for the organizer dashboard.

        Args:
            token: Event admin token

        Returns:
            Dictionary with event, attendees and stats
        """
        ev = await self.get_event_for_token(token)
        attendees = await self.attendees.list_for_event(ev.id)
        capacity = await self.tiers.resolve(ev.owner_id)

        total_attending = sum(a.party_size for a in attendees)
        remaining = None
        if not capacity.is_unlimited:
            remaining = max(0, capacity.guest_limit - total_attending)

        return {
            "event": serialize_event(ev, include_private=True),
            "attendees": attendees,
            "stats": {
                "total_attending": total_attending,
                "total_not_attending": sum(1 for a in attendees if not a.attending),
                "total_responses": len(attendees),
                "guest_limit": capacity.guest_limit,
                "remaining": remaining,
            },
        }

    async def update_settings(self, token: str, payload: EventSettingsUpdate) -> dict:
        ev = await self.get_event_for_token(token)
        changes = payload.model_dump(exclude_unset=True)
        for key in ("title", "auth_mode", "allow_plus_guests"):
            if changes.get(key) is None:
                changes.pop(key, None)
        if "promo_code" in changes:
            changes["promo_code"] = (changes["promo_code"] or "").strip() or None

        validate_auth_settings(
            changes.get("auth_mode", ev.effective_auth_mode),
            changes.get("promo_code", ev.promo_code),
        )

        ev = await self.events.update_settings(ev, changes)
        await invalidate_public_events()
        logger.info(f"Updated settings of event {ev.id}: {sorted(changes)}")
        return serialize_event(ev, include_private=True)

    async def add_guest(self, token: str, entry: GuestListEntry):
        """Add or update a guest-list entry without going through admission."""
        if not (entry.email or (entry.first_name and entry.last_name)):
            raise HTTPException(status_code=400, detail="A guest needs an email or a first and last name")
        ev = await self.get_event_for_token(token)
        identity = {"email": entry.email, "first_name": entry.first_name, "last_name": entry.last_name}
        return await self.attendees.upsert(ev.id, identity, {
            "first_name": entry.first_name,
            "last_name": entry.last_name,
            "phone": entry.phone,
            "address": entry.address,
            "attending": entry.attending,
            "guest_count": entry.guest_count if ev.allow_plus_guests else 0,
        })

    async def export_csv(self, token: str) -> Tuple[str, str]:
        """
        Render the event's responses as CSV.

        Returns:
            Tuple of (filename, csv text)
        """
        ev = await self.get_event_for_token(token)
        attendees = await self.attendees.list_for_event(ev.id)

        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(CSV_HEADER)
        for a in attendees:
            writer.writerow([
                a.first_name or "",
                a.last_name or "",
                a.email or "",
                a.phone or "",
                a.address or "",
                "Yes" if a.attending else "No",
                a.guest_count,
                a.party_size,
                a.created_at.date().isoformat() if a.created_at else "",
            ])

        filename = f"{re.sub(r'[^a-zA-Z0-9]', '_', ev.title)}_rsvps.csv"
        return filename, buf.getvalue()
