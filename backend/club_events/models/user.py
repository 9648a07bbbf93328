"""User directory tables: registered site users and the player roster."""
from sqlalchemy import Column, String, Boolean
from club_events.database import Base


class UserRow(Base):
    __tablename__ = "users"

    email = Column(String(320), primary_key=True)
    id = Column(String(64), primary_key=True)
    username = Column(String(100), nullable=False, default="")
    auth = Column(String(32), nullable=False, default="user")  # "admin" grants full access
    email_notifications = Column(Boolean, nullable=False, default=True)
    calendar_invites = Column(Boolean, nullable=False, default=True)
    event_reminders = Column(Boolean, nullable=False, default=True)
    rsvp_notifications = Column(Boolean, nullable=False, default=False)


class StudentRow(Base):
    __tablename__ = "students"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    username = Column(String(100), nullable=False, default="")
    email = Column(String(320), nullable=True)
