from typing import Optional
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from owlrsvp.cache import redis_client
from owlrsvp.cache.cache_decorators import cached
from owlrsvp.core.config import settings
from owlrsvp.core.logging import logger
from owlrsvp.db.models.event import Event, AuthMode
from owlrsvp.db.repositories import EventRepository
from owlrsvp.schemas import EventCreate

PUBLIC_EVENT_CACHE_PREFIX = "events:public"


def serialize_event(ev: Event, include_private: bool = False) -> dict:
    data = {
        'id': str(ev.id),
        'title': ev.title,
        'auth_mode': ev.effective_auth_mode.value,
        'allow_plus_guests': bool(ev.allow_plus_guests),
        'event_date': ev.event_date.isoformat() if ev.event_date else None,
        'event_location': ev.event_location,
    }
    if include_private:
        data.update({
            'admin_token': ev.admin_token,
            'promo_code': ev.promo_code,
            'owner_id': str(ev.owner_id) if ev.owner_id else None,
        })
    return data


def validate_auth_settings(auth_mode: Optional[AuthMode], promo_code: Optional[str]) -> None:
    """Reject settings that would make every RSVP fail the code check."""
    if auth_mode == AuthMode.code and not (promo_code or "").strip():
        raise HTTPException(status_code=400, detail="A promo code is required when auth_mode is 'code'")


@cached(PUBLIC_EVENT_CACHE_PREFIX, expire=settings.EVENT_CACHE_TTL_SECONDS)
async def load_public_event(session: AsyncSession, event_ref: str) -> Optional[dict]:
    ev = await EventRepository(session).resolve(event_ref)
    return serialize_event(ev) if ev else None


async def invalidate_public_events() -> None:
    await redis_client.cache.delete_pattern(f"{PUBLIC_EVENT_CACHE_PREFIX}:*")


class EventService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.events = EventRepository(session)

    async def create_event(self, payload: EventCreate) -> dict:
        auth_mode = payload.auth_mode
        promo_code = payload.promo_code.strip() if payload.promo_code else None
        validate_auth_settings(auth_mode, promo_code)

        ev = await self.events.create({
            'title': payload.title,
            'auth_mode': auth_mode,
            'promo_code': promo_code,
            'allow_plus_guests': payload.allow_plus_guests,
            'event_date': payload.event_date,
            'event_location': payload.event_location,
        })
        logger.info(f"Created event {ev.id} ({auth_mode.value})")

        base = settings.PUBLIC_BASE_URL.rstrip("/")
        return {
            'event': serialize_event(ev, include_private=True),
            'guest_link': f"{base}/e/{ev.id}",
            'admin_link': f"{base}/a/{ev.admin_token}",
        }

    async def get_public_event(self, event_ref: str) -> Optional[dict]:
        return await load_public_event(self.session, event_ref)
