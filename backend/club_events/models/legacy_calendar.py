"""Pre-migration calendar feed, read only as a fallback for the calendar view."""
from sqlalchemy import Column, String
from club_events.database import Base


class LegacyCalendarRow(Base):
    __tablename__ = "calendar"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    start = Column(String(40), nullable=False)
    end = Column(String(40), nullable=True)
