"""Database models package."""
from owlrsvp.db.models.admin_user import AdminUser
from owlrsvp.db.models.event import Event, AuthMode
from owlrsvp.db.models.attendee import Attendee

__all__ = ["AdminUser", "Event", "AuthMode", "Attendee"]
