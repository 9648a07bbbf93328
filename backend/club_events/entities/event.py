"""Event value type: validation, sanitisation and derived predicates."""
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from club_events.entities.common import (
    coerce_numeric_id,
    generate_id,
    is_valid_email,
    parse_iso,
    sanitize_text,
    utc_now_iso,
)


@dataclass(frozen=True)
class Event:
    title: Optional[str]
    start_date: Optional[str]
    end_date: Optional[str]
    organizer_id: Optional[str]
    organizer_email: Optional[str]
    id: int = field(default_factory=generate_id)
    created_at: str = field(default_factory=utc_now_iso)
    description: str = ""
    location: str = ""
    is_public: bool = True
    max_attendees: Optional[int] = None
    updated_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "Event":
        """Build an Event from a raw field map, filling defaults for absent fields."""
        organizer_id = item.get("organizer_id")
        return cls(
            id=coerce_numeric_id(item.get("id")) or generate_id(),
            created_at=item.get("created_at") or utc_now_iso(),
            title=item.get("title"),
            description=item.get("description") or "",
            start_date=item.get("start_date"),
            end_date=item.get("end_date"),
            location=item.get("location") or "",
            organizer_id=str(organizer_id) if organizer_id not in (None, "") else None,
            organizer_email=item.get("organizer_email"),
            is_public=item["is_public"] if item.get("is_public") is not None else True,
            max_attendees=item.get("max_attendees") or None,
            updated_at=item.get("updated_at") or utc_now_iso(),
        )

    def to_item(self) -> dict[str, Any]:
        return asdict(self)

    def validate(self) -> list[str]:
        """Return every rule violation as a human-readable message."""
        errors = []

        if not self.title or not str(self.title).strip():
            errors.append("Title is required")

        start = parse_iso(self.start_date)
        end = parse_iso(self.end_date)

        if not self.start_date:
            errors.append("Start date is required")
        elif start is None:
            errors.append("Invalid start date format. Use ISO 8601 format")

        if not self.end_date:
            errors.append("End date is required")
        elif end is None:
            errors.append("Invalid end date format. Use ISO 8601 format")

        if start is not None and end is not None and start >= end:
            errors.append("End date must be after start date")

        if not self.organizer_id:
            errors.append("Organizer ID is required")

        if not is_valid_email(self.organizer_email):
            errors.append("Valid organizer email is required")

        if self.max_attendees is not None and (
            isinstance(self.max_attendees, bool)
            or not isinstance(self.max_attendees, int)
            or self.max_attendees < 1
        ):
            errors.append("Max attendees must be a positive integer")

        return errors

    def sanitized(self) -> "Event":
        return replace(
            self,
            title=sanitize_text(self.title),
            description=sanitize_text(self.description),
            location=sanitize_text(self.location),
        )

    # --- derived predicates ---

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        start = parse_iso(self.start_date)
        return start is not None and start > (now or datetime.now(timezone.utc))

    def is_past(self, now: Optional[datetime] = None) -> bool:
        end = parse_iso(self.end_date)
        return end is not None and end < (now or datetime.now(timezone.utc))

    def is_active(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        start, end = parse_iso(self.start_date), parse_iso(self.end_date)
        return start is not None and end is not None and start <= now < end

    @property
    def duration_label(self) -> str:
        start, end = parse_iso(self.start_date), parse_iso(self.end_date)
        if start is None or end is None:
            return ""
        minutes = int((end - start).total_seconds() // 60)
        return f"{minutes // 60}h {minutes % 60}m"

    def to_calendar_format(self) -> dict[str, Any]:
        """Record shape consumed by the FullCalendar front end."""
        return {
            "id": self.id,
            "title": self.title,
            "start": self.start_date,
            "end": self.end_date,
            "description": self.description,
            "location": self.location,
            "extendedProps": {
                "organizer_id": self.organizer_id,
                "organizer_email": self.organizer_email,
                "is_public": self.is_public,
                "max_attendees": self.max_attendees,
                "created_at": self.created_at,
            },
        }
