"""RSVP table: one row per (invitation_id, event_id)."""
from sqlalchemy import Column, String, Text
from club_events.database import Base


class RSVPRow(Base):
    __tablename__ = "rsvps"

    invitation_id = Column(String(32), primary_key=True)
    event_id = Column(String(32), primary_key=True, index=True)
    response = Column(String(16), nullable=False)
    response_at = Column(String(40), nullable=False)
    notes = Column(Text, nullable=False, default="")
    responder_name = Column(String(255), nullable=False, default="")
    responder_email = Column(String(320), nullable=False, default="")
