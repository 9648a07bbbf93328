"""Who may manage or view an event."""
from typing import Optional

from club_events.entities import Event, User


def can_manage_event(event: Event, user: Optional[User]) -> bool:
    """Organizer or administrator."""
    if user is None:
        return False
    return str(event.organizer_id) == str(user.id) or user.is_admin


def can_view_event(event: Event, user: Optional[User]) -> bool:
    """Public events are visible to everyone; private ones only to managers."""
    return bool(event.is_public) or can_manage_event(event, user)
