from club_events.models.event import EventRow
from club_events.models.invitation import InvitationRow
from club_events.models.rsvp import RSVPRow
from club_events.models.user import UserRow, StudentRow
from club_events.models.legacy_calendar import LegacyCalendarRow

__all__ = [
    "EventRow",
    "InvitationRow",
    "RSVPRow",
    "UserRow",
    "StudentRow",
    "LegacyCalendarRow",
]
