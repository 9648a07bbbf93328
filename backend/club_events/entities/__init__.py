from club_events.entities.event import Event
from club_events.entities.invitation import Invitation, InvitationStatus, InvalidTransitionError
from club_events.entities.rsvp import RSVP, RSVPResponse
from club_events.entities.user import User, NotificationPreferences

__all__ = [
    "Event",
    "Invitation",
    "InvitationStatus",
    "InvalidTransitionError",
    "RSVP",
    "RSVPResponse",
    "User",
    "NotificationPreferences",
]
