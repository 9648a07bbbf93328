"""Invitation value type and its one-way delivery state machine."""
import enum
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Mapping, Optional

from club_events.entities.common import (
    coerce_numeric_id,
    generate_id,
    is_valid_email,
    sanitize_text,
    utc_now_iso,
)


class InvitationStatus(str, enum.Enum):
    sent = "sent"
    delivered = "delivered"
    failed = "failed"


VALID_STATUSES = frozenset(s.value for s in InvitationStatus)


class InvalidTransitionError(Exception):
    """Raised when a delivery outcome is applied to an invitation that already has one."""


@dataclass(frozen=True)
class Invitation:
    event_id: Optional[str]
    invitee_email: Optional[str]
    id: int = field(default_factory=generate_id)
    invitee_name: str = ""
    sent_at: str = field(default_factory=utc_now_iso)
    status: str = InvitationStatus.sent.value
    delivered_at: Optional[str] = None
    failed_at: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "Invitation":
        event_id = item.get("event_id")
        return cls(
            id=coerce_numeric_id(item.get("id")) or generate_id(),
            event_id=str(event_id) if event_id not in (None, "") else None,
            invitee_email=item.get("invitee_email"),
            invitee_name=item.get("invitee_name") or "",
            sent_at=item.get("sent_at") or utc_now_iso(),
            status=item.get("status") or InvitationStatus.sent.value,
            delivered_at=item.get("delivered_at"),
            failed_at=item.get("failed_at"),
            error_message=item.get("error_message"),
        )

    def to_item(self) -> dict[str, Any]:
        return asdict(self)

    def validate(self) -> list[str]:
        errors = []
        if not self.event_id:
            errors.append("Event ID is required")
        if not is_valid_email(self.invitee_email):
            errors.append("Valid invitee email is required")
        if self.status not in VALID_STATUSES:
            errors.append("Status must be one of: sent, delivered, failed")
        return errors

    def sanitized(self) -> "Invitation":
        # Email addresses keep their special characters
        return replace(self, invitee_name=sanitize_text(self.invitee_name))

    @property
    def is_sent(self) -> bool:
        return self.status == InvitationStatus.sent.value

    @property
    def is_delivered(self) -> bool:
        return self.status == InvitationStatus.delivered.value

    @property
    def is_failed(self) -> bool:
        return self.status == InvitationStatus.failed.value

    def mark_delivered(self) -> "Invitation":
        self._require_sent()
        return replace(self, status=InvitationStatus.delivered.value, delivered_at=utc_now_iso())

    def mark_failed(self, error_message: str) -> "Invitation":
        self._require_sent()
        return replace(
            self,
            status=InvitationStatus.failed.value,
            failed_at=utc_now_iso(),
            error_message=error_message,
        )

    def rsvp_link(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/rsvp/{self.id}/{self.event_id}"

    def _require_sent(self) -> None:
        if not self.is_sent:
            raise InvalidTransitionError(
                f"Invitation {self.id} is already '{self.status}'; delivery outcome is set once"
            )
