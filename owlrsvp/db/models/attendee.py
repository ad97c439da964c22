from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func, Index, Uuid
import uuid
from sqlalchemy.orm import relationship
from owlrsvp.db.session import Base


class Attendee(Base):
    __tablename__ = "attendees"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    address = Column(Text, nullable=True)
    attending = Column(Boolean, nullable=False, default=False)
    guest_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("Event")

    @property
    def party_size(self) -> int:
        return 1 + (self.guest_count or 0) if self.attending else 0


# One row per guest name within an event; re-submissions update it
Index(
    "uq_attendee_event_name",
    Attendee.event_id,
    func.lower(Attendee.first_name),
    func.lower(Attendee.last_name),
    unique=True,
)
Index("idx_attendee_event", Attendee.event_id)
Index("idx_attendee_event_email", Attendee.event_id, Attendee.email)
