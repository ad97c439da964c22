from sqlalchemy import Column, String, DateTime, func, Uuid
import uuid
from owlrsvp.db.session import Base


class AdminUser(Base):
    """Event organizer account; carries the subscription state used for tier limits."""
    __tablename__ = "admin_users"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    subscription_tier = Column(String(32), default="free", nullable=False)
    subscription_status = Column(String(32), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_subscription_id = Column(String(255), nullable=True)
    # Metered line item that overflow guests are billed against
    stripe_metered_item_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
