"""Acting user and per-recipient notification preferences."""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class NotificationPreferences:
    """Opt-out flags; each class of email is gated independently."""

    email_notifications: bool = True
    calendar_invites: bool = True
    event_reminders: bool = False
    rsvp_notifications: bool = False

    @classmethod
    def for_user(cls, item: Optional[Mapping[str, Any]]) -> "NotificationPreferences":
        """Preferences for a stored user; unregistered addresses get the class defaults."""
        if item is None:
            return cls()
        return cls(
            email_notifications=item.get("email_notifications") is not False,
            calendar_invites=item.get("calendar_invites") is not False,
            event_reminders=item.get("event_reminders") is not False,
            rsvp_notifications=item.get("rsvp_notifications") is True,
        )

    @property
    def accepts_invites(self) -> bool:
        return self.email_notifications and self.calendar_invites

    @property
    def accepts_updates(self) -> bool:
        return self.email_notifications and self.event_reminders

    @property
    def accepts_rsvp_alerts(self) -> bool:
        return self.email_notifications and self.rsvp_notifications


@dataclass(frozen=True)
class User:
    id: str
    email: str
    username: str = ""
    auth: str = "user"

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "User":
        return cls(
            id=str(item["id"]),
            email=item["email"],
            username=item.get("username") or "",
            auth=item.get("auth") or "user",
        )

    @property
    def is_admin(self) -> bool:
        return self.auth == ADMIN_ROLE
