"""Event table: keyed by numeric id plus creation timestamp."""
from sqlalchemy import Column, String, Text, Boolean, Integer, BigInteger
from club_events.database import Base


class EventRow(Base):
    __tablename__ = "events"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    created_at = Column(String(40), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    start_date = Column(String(40), nullable=False)
    end_date = Column(String(40), nullable=False)
    location = Column(String(500), nullable=False, default="")
    organizer_id = Column(String(64), nullable=False, index=True)
    organizer_email = Column(String(320), nullable=False)
    is_public = Column(Boolean, nullable=False, default=True)
    max_attendees = Column(Integer, nullable=True)
    updated_at = Column(String(40), nullable=True)
