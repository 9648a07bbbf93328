"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the club events tables: events, invitations, rsvps, users,
students and the read-only legacy calendar feed.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column("created_at", sa.String(40), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("start_date", sa.String(40), nullable=False),
        sa.Column("end_date", sa.String(40), nullable=False),
        sa.Column("location", sa.String(500), nullable=False, server_default=""),
        sa.Column("organizer_id", sa.String(64), nullable=False),
        sa.Column("organizer_email", sa.String(320), nullable=False),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("max_attendees", sa.Integer, nullable=True),
        sa.Column("updated_at", sa.String(40), nullable=True),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])

    # --- invitations ---
    op.create_table(
        "invitations",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=False),
        sa.Column("event_id", sa.String(32), primary_key=True),
        sa.Column("invitee_email", sa.String(320), nullable=False),
        sa.Column("invitee_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("sent_at", sa.String(40), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="sent"),
        sa.Column("delivered_at", sa.String(40), nullable=True),
        sa.Column("failed_at", sa.String(40), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
    )
    op.create_index("ix_invitations_event_id", "invitations", ["event_id"])
    op.create_index("ix_invitations_invitee_email", "invitations", ["invitee_email"])

    # --- rsvps ---
    op.create_table(
        "rsvps",
        sa.Column("invitation_id", sa.String(32), primary_key=True),
        sa.Column("event_id", sa.String(32), primary_key=True),
        sa.Column("response", sa.String(16), nullable=False),
        sa.Column("response_at", sa.String(40), nullable=False),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("responder_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("responder_email", sa.String(320), nullable=False, server_default=""),
    )
    op.create_index("ix_rsvps_event_id", "rsvps", ["event_id"])

    # --- users ---
    op.create_table(
        "users",
        sa.Column("email", sa.String(320), primary_key=True),
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(100), nullable=False, server_default=""),
        sa.Column("auth", sa.String(32), nullable=False, server_default="user"),
        sa.Column("email_notifications", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("calendar_invites", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("event_reminders", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("rsvp_notifications", sa.Boolean, nullable=False, server_default=sa.false()),
    )

    # --- students ---
    op.create_table(
        "students",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("username", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(320), nullable=True),
    )

    # --- calendar (legacy feed) ---
    op.create_table(
        "calendar",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("start", sa.String(40), nullable=False),
        sa.Column("end", sa.String(40), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("calendar")
    op.drop_table("students")
    op.drop_table("users")
    op.drop_index("ix_rsvps_event_id", table_name="rsvps")
    op.drop_table("rsvps")
    op.drop_index("ix_invitations_invitee_email", table_name="invitations")
    op.drop_index("ix_invitations_event_id", table_name="invitations")
    op.drop_table("invitations")
    op.drop_index("ix_events_organizer_id", table_name="events")
    op.drop_table("events")
