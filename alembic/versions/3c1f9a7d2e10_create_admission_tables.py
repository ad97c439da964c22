"""Create admin users, events and attendees

Revision ID: 3c1f9a7d2e10
Revises: 
Create Date: 2026-10-19 09:12:03.418552

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f9a7d2e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    auth_mode_enum = postgresql.ENUM('open', 'code', 'guest_list', name='authmode')
    auth_mode_enum.create(op.get_bind())

    op.create_table(
        'admin_users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('subscription_tier', sa.String(32), nullable=False, server_default='free'),
        sa.Column('subscription_status', sa.String(32), nullable=True),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=True),
        sa.Column('stripe_metered_item_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_admin_users_email', 'admin_users', ['email'])

    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('admin_token', sa.String(64), nullable=False, unique=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('owner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('admin_users.id'), nullable=True),
        sa.Column('auth_mode', postgresql.ENUM(name='authmode', create_type=False), nullable=True),
        sa.Column('open_invite', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('promo_code', sa.String(255), nullable=True),
        sa.Column('allow_plus_guests', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('event_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('event_location', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('idx_event_owner', 'events', ['owner_id'])
    op.create_index('idx_event_created_at', 'events', ['created_at'])

    op.create_table(
        'attendees',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(64), nullable=True),
        sa.Column('address', sa.Text, nullable=True),
        sa.Column('attending', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('guest_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('idx_attendee_event', 'attendees', ['event_id'])
    op.create_index('idx_attendee_event_email', 'attendees', ['event_id', 'email'])
    # Case-insensitive name identity; admission upserts rely on it
    op.execute(
        "CREATE UNIQUE INDEX uq_attendee_event_name "
        "ON attendees (event_id, lower(first_name), lower(last_name))"
    )


def downgrade() -> None:
    op.drop_table('attendees')
    op.drop_table('events')
    op.drop_table('admin_users')

    sa.Enum(name='authmode').drop(op.get_bind())
