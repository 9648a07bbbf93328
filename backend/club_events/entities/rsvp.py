"""RSVP value type: one current response per invitation."""
import enum
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Mapping, Optional

from club_events.entities.common import sanitize_text, utc_now_iso


class RSVPResponse(str, enum.Enum):
    accept = "accept"
    maybe = "maybe"
    decline = "decline"


VALID_RESPONSES = frozenset(r.value for r in RSVPResponse)

_LABELS = {
    RSVPResponse.accept.value: "Attending",
    RSVPResponse.maybe.value: "Maybe",
    RSVPResponse.decline.value: "Not Attending",
}

_COLORS = {
    RSVPResponse.accept.value: "#28a745",
    RSVPResponse.maybe.value: "#ffc107",
    RSVPResponse.decline.value: "#dc3545",
}


def is_valid_response(value: Any) -> bool:
    return isinstance(value, str) and value in VALID_RESPONSES


@dataclass(frozen=True)
class RSVP:
    invitation_id: Optional[str]
    event_id: Optional[str]
    response: Optional[str]
    response_at: str = field(default_factory=utc_now_iso)
    notes: str = ""
    responder_name: str = ""
    responder_email: str = ""

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "RSVP":
        invitation_id, event_id = item.get("invitation_id"), item.get("event_id")
        return cls(
            invitation_id=str(invitation_id) if invitation_id not in (None, "") else None,
            event_id=str(event_id) if event_id not in (None, "") else None,
            response=item.get("response"),
            response_at=item.get("response_at") or utc_now_iso(),
            notes=item.get("notes") or "",
            responder_name=item.get("responder_name") or "",
            responder_email=item.get("responder_email") or "",
        )

    def to_item(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def key(self) -> dict[str, str]:
        return {"invitation_id": self.invitation_id, "event_id": self.event_id}

    def validate(self) -> list[str]:
        errors = []
        if not self.invitation_id:
            errors.append("Invitation ID is required")
        if not self.event_id:
            errors.append("Event ID is required")
        if not is_valid_response(self.response):
            errors.append("Response must be one of: accept, maybe, decline")
        return errors

    def sanitized(self) -> "RSVP":
        return replace(
            self,
            notes=sanitize_text(self.notes),
            responder_name=sanitize_text(self.responder_name),
        )

    @property
    def is_accepted(self) -> bool:
        return self.response == RSVPResponse.accept.value

    @property
    def is_maybe(self) -> bool:
        return self.response == RSVPResponse.maybe.value

    @property
    def is_declined(self) -> bool:
        return self.response == RSVPResponse.decline.value

    @property
    def label(self) -> str:
        return _LABELS.get(self.response, "Unknown")

    @property
    def color(self) -> str:
        return _COLORS.get(self.response, "#6c757d")
