from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, func, Enum, Index, Uuid
import uuid
from sqlalchemy.orm import relationship
from owlrsvp.db.session import Base
import enum

class AuthMode(str, enum.Enum):
    """How guests are let onto an event."""
    open = "open"
    code = "code"
    guest_list = "guest_list"

class Event(Base):
    __tablename__ = "events"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admin_token = Column(String(64), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey("admin_users.id"), nullable=True)
    auth_mode = Column(Enum(AuthMode), nullable=True)
    # Pre-auth_mode events only carry this flag
    open_invite = Column(Boolean, nullable=False, default=True)
    promo_code = Column(String(255), nullable=True)
    allow_plus_guests = Column(Boolean, nullable=False, default=False)
    event_date = Column(DateTime(timezone=True), nullable=True)
    event_location = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("AdminUser")

    __table_args__ = (
        Index('idx_event_owner', 'owner_id'),
        Index('idx_event_created_at', 'created_at'),
    )

    @property
    def effective_auth_mode(self) -> AuthMode:
        if self.auth_mode is not None:
            return AuthMode(self.auth_mode)
        return AuthMode.open if self.open_invite is not False else AuthMode.guest_list
