"""
Repository layer for database operations.

Provides the event directory, attendee ledger and admin user lookups the
admission controller and the organizer services are built on.
"""
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from owlrsvp.db.models.admin_user import AdminUser
from owlrsvp.db.models.event import Event, AuthMode
from owlrsvp.db.models.attendee import Attendee
from owlrsvp.core.logging import logger
from typing import Optional, List, Any, Dict
import secrets
import uuid


def _parse_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


def _normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email and email.strip() else None


class EventRepository:
    """Event directory: resolves events by primary key or admin token."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, event_id, for_update: bool = False) -> Optional[Event]:
        """
        Retrieve event by primary key.

        Args:
            event_id: Event UUID, or its string form
            for_update: Lock the row until the surrounding transaction ends

        Returns:
            Event if found, None otherwise (including when event_id is not a UUID)
        """
        parsed = _parse_uuid(event_id)
        if parsed is None:
            return None
        q = select(Event).where(Event.id == parsed)
        if for_update:
            q = q.with_for_update()
        res = await self.session.execute(q)
        return res.scalars().first()

    async def find_by_admin_token(self, token: str, for_update: bool = False) -> Optional[Event]:
        """Retrieve event by its organizer token."""
        if not token:
            return None
        q = select(Event).where(Event.admin_token == token)
        if for_update:
            q = q.with_for_update()
        res = await self.session.execute(q)
        return res.scalars().first()

    async def resolve(self, event_ref: str, for_update: bool = False) -> Optional[Event]:
        """Primary-key lookup first, then admin token."""
        event = await self.find_by_id(event_ref, for_update=for_update)
        if event is None:
            event = await self.find_by_admin_token(event_ref, for_update=for_update)
        return event

    async def create(self, fields: Dict[str, Any], owner_id=None) -> Event:
        """
        Create a new event with a freshly generated admin token.

        Args:
            fields: Column values (title, auth_mode, promo_code, ...)
            owner_id: Owning admin user, or None for an anonymous event

        Returns:
            Created Event object
        """
        ev = Event(**fields, owner_id=owner_id, admin_token=secrets.token_urlsafe(24))
        if ev.auth_mode is not None:
            ev.open_invite = ev.auth_mode != AuthMode.guest_list
        self.session.add(ev)
        await self.session.commit()
        await self.session.refresh(ev)
        return ev

    async def update_settings(self, event: Event, changes: Dict[str, Any]) -> Event:
        for key, value in changes.items():
            setattr(event, key, value)
        if "auth_mode" in changes and event.auth_mode is not None:
            event.open_invite = event.auth_mode != AuthMode.guest_list
        await self.session.commit()
        await self.session.refresh(event)
        return event


class AttendeeRepository:
    """Attendee ledger: one row per (event, guest)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def sum_attending_party_size(self, event_id) -> int:
        """Sum of 1 + guest_count over attending rows of an event."""
        q = select(func.coalesce(func.sum(Attendee.guest_count + 1), 0)).where(
            Attendee.event_id == event_id,
            Attendee.attending.is_(True),
        )
        res = await self.session.execute(q)
        return int(res.scalar() or 0)

    async def find_by_identity(
        self,
        event_id,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Optional[Attendee]:
        """
        Find a guest by email, falling back to a case-insensitive name match.

        Args:
            event_id: Event UUID
            email: Guest email; compared case-insensitively
            first_name: Guest first name
            last_name: Guest last name

        Returns:
            Matching Attendee, or None
        """
        normalized = _normalize_email(email)
        if normalized:
            q = select(Attendee).where(
                Attendee.event_id == event_id,
                func.lower(Attendee.email) == normalized,
            ).order_by(Attendee.created_at)
            res = await self.session.execute(q)
            attendee = res.scalars().first()
            if attendee:
                return attendee

        if first_name and last_name:
            return await self.find_by_name(event_id, first_name, last_name)

        return None

    async def find_by_name(self, event_id, first_name: str, last_name: str) -> Optional[Attendee]:
        q = select(Attendee).where(
            Attendee.event_id == event_id,
            func.lower(Attendee.first_name) == first_name.strip().lower(),
            func.lower(Attendee.last_name) == last_name.strip().lower(),
        )
        res = await self.session.execute(q)
        return res.scalars().first()

    async def _name_free_for(self, attendee: Attendee, first_name: Optional[str], last_name: Optional[str]) -> bool:
        """Whether renaming attendee would leave its event with two guests of the same name."""
        new_first = first_name or attendee.first_name
        new_last = last_name or attendee.last_name
        if not (new_first and new_last):
            return True
        holder = await self.find_by_name(attendee.event_id, new_first, new_last)
        return holder is None or holder.id == attendee.id

    async def upsert(self, event_id, identity: Dict[str, Optional[str]], fields: Dict[str, Any]) -> Attendee:
        """
        Create or update the attendee row for an identity.

        Attendance and guest count are always replaced. Names, email, phone and
        address are overwritten only when the new value is provided.

        An email match wins over a name match. When the submitted names belong to
        another guest of the event, the matched row keeps its own names.
        """
        attendee = await self.find_by_identity(event_id, **identity)
        if attendee is None:
            attendee = Attendee(event_id=event_id)
            self.session.add(attendee)
        elif not await self._name_free_for(attendee, fields.get("first_name"), fields.get("last_name")):
            logger.info(
                f"Attendee {attendee.id} matched by email; not renaming to a name held by another guest"
            )
            fields = {**fields, "first_name": None, "last_name": None}

        attendee.attending = bool(fields.get("attending"))
        attendee.guest_count = max(0, int(fields.get("guest_count") or 0))
        for key in ("first_name", "last_name", "phone", "address"):
            if fields.get(key):
                setattr(attendee, key, fields[key])
        if identity.get("email"):
            attendee.email = identity["email"].strip()

        await self.session.commit()
        await self.session.refresh(attendee)
        return attendee

    async def list_for_event(self, event_id) -> List[Attendee]:
        """All attendees of an event, newest first."""
        q = select(Attendee).where(Attendee.event_id == event_id).order_by(Attendee.created_at.desc())
        res = await self.session.execute(q)
        return list(res.scalars().all())


class AdminUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id) -> Optional[AdminUser]:
        parsed = _parse_uuid(user_id)
        if parsed is None:
            return None
        q = select(AdminUser).where(AdminUser.id == parsed)
        res = await self.session.execute(q)
        return res.scalars().first()
