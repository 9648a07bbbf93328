"""Calendar service: owns the Event lifecycle.

Responsibilities:
- Validation before any write (errors collected, nothing persisted)
- Authorization: only the organizer or an administrator may update/delete
- Change detection on update, with a background notice to invitees
- Cascading delete of invitations and RSVPs
- Listing / calendar-feed projections that tolerate a not-yet-migrated table

Every public coroutine returns a ``{"success": ...}`` envelope instead of raising.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from club_events.entities import Event, Invitation, RSVP, User
from club_events.entities.common import coerce_numeric_id, format_local, parse_iso, utc_now_iso
from club_events.services import permissions, reporting
from club_events.services.background import BackgroundNotifier
from club_events.services.email_service import EmailService
from club_events.services.results import ErrorKind, failure, ok
from club_events.storage import StorageGateway, TableNotFoundError

logger = logging.getLogger(__name__)

# Fields an update may never overwrite
_IDENTITY_FIELDS = ("id", "created_at", "organizer_id", "organizer_email")

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _start_key(event: Event) -> datetime:
    return parse_iso(event.start_date) or _EARLIEST


class CalendarService:
    def __init__(
        self,
        storage: StorageGateway,
        email_service: EmailService,
        notifier: BackgroundNotifier,
        display_timezone: str = "UTC",
    ):
        self._storage = storage
        self._email = email_service
        self._notifier = notifier
        self._display_timezone = display_timezone

    # --- lookups shared with the invite service ---

    async def find_event(self, event_id: Any, created_at: Optional[str] = None) -> Optional[Event]:
        """Full-key lookup when ``created_at`` is known, otherwise a scan on ``id``."""
        numeric_id = coerce_numeric_id(event_id)
        if numeric_id is None:
            return None
        if created_at:
            item = await self._storage.get("events", {"id": numeric_id, "created_at": created_at})
        else:
            matches = await self._storage.scan("events", id=numeric_id)
            item = matches[0] if matches else None
        return Event.from_item(item) if item else None

    async def invitations_for(self, event_id: Any) -> list[Invitation]:
        items = await self._storage.scan("invitations", event_id=str(event_id))
        return [Invitation.from_item(item) for item in items]

    async def rsvps_for(self, event_id: Any) -> list[RSVP]:
        items = await self._storage.scan("rsvps", event_id=str(event_id))
        return [RSVP.from_item(item) for item in items]

    # --- lifecycle ---

    async def create_event(self, event_data: Mapping[str, Any], organizer: User) -> dict[str, Any]:
        """Validate and persist a new event owned by ``organizer``."""
        try:
            event = Event.from_item({
                **event_data,
                "organizer_id": organizer.id,
                "organizer_email": organizer.email,
                "created_at": utc_now_iso(),
                "updated_at": None,
            })

            errors = event.validate()
            if errors:
                return failure(errors, ErrorKind.validation)

            event = event.sanitized()
            await self._storage.put("events", event.to_item())

            logger.info("Event created: %s (%s) by %s", event.title, event.id, organizer.email)
            return ok(event=event, id=event.id)
        except Exception as exc:
            logger.exception("Error creating event")
            return failure("Failed to create event", ErrorKind.downstream, details=str(exc))

    async def get_event_details(self, event_id: Any, created_at: Optional[str] = None) -> dict[str, Any]:
        """Event plus its invitations, RSVPs and a response summary."""
        try:
            event = await self.find_event(event_id, created_at)
            if event is None:
                return failure("Event not found", ErrorKind.not_found)

            invitations, rsvps = await asyncio.gather(
                self.invitations_for(event.id),
                self.rsvps_for(event.id),
            )
            rsvps = reporting.current_rsvps(rsvps, invitations)

            return ok(
                event=event,
                invitations=invitations,
                rsvps=rsvps,
                rsvp_summary=reporting.details_summary(rsvps, len(invitations)),
                total_invited=len(invitations),
            )
        except Exception as exc:
            logger.exception("Error getting event details for %s", event_id)
            return failure("Failed to get event details", ErrorKind.downstream, details=str(exc))

    async def update_event(
        self,
        event_id: Any,
        created_at: Optional[str],
        update_data: Mapping[str, Any],
        user: User,
    ) -> dict[str, Any]:
        """Merge ``update_data`` over the stored event (organizer or admin only)."""
        try:
            existing = await self.find_event(event_id, created_at)
            if existing is None:
                return failure("Event not found", ErrorKind.not_found)

            if not self.can_user_manage_event(existing, user):
                return failure("Unauthorized to update this event", ErrorKind.forbidden)

            changes_requested = {k: v for k, v in update_data.items() if k not in _IDENTITY_FIELDS}
            updated = Event.from_item({
                **existing.to_item(),
                **changes_requested,
                "updated_at": utc_now_iso(),
            })

            errors = updated.validate()
            if errors:
                return failure(errors, ErrorKind.validation)

            updated = updated.sanitized()
            await self._storage.put("events", updated.to_item())

            changes = self.identify_changes(existing, updated)
            if changes:
                self._notifier.dispatch(
                    self._send_update_notifications(updated, changes),
                    f"update notice for event {updated.id}",
                )

            logger.info("Event updated: %s (%s) by %s, %d change(s)", updated.title, updated.id, user.email, len(changes))
            return ok(event=updated, changes=changes)
        except Exception as exc:
            logger.exception("Error updating event %s", event_id)
            return failure("Failed to update event", ErrorKind.downstream, details=str(exc))

    async def delete_event(self, event_id: Any, created_at: Optional[str], user: User) -> dict[str, Any]:
        """Delete the event together with every invitation and RSVP that references it.

        The RSVP deletes, invitation deletes and the event delete are issued
        together and awaited jointly; there is no cross-table transaction.
        """
        try:
            existing = await self.find_event(event_id, created_at)
            if existing is None:
                return failure("Event not found", ErrorKind.not_found)

            if not self.can_user_manage_event(existing, user):
                return failure("Unauthorized to delete this event", ErrorKind.forbidden)

            invitations, rsvps = await asyncio.gather(
                self.invitations_for(existing.id),
                self.rsvps_for(existing.id),
            )

            await asyncio.gather(
                *(self._storage.delete("rsvps", rsvp.key) for rsvp in rsvps),
                *(self._storage.delete("invitations", {"id": inv.id, "event_id": inv.event_id})
                  for inv in invitations),
                self._storage.delete("events", {"id": existing.id, "created_at": existing.created_at}),
            )

            logger.info("Event deleted: %s (%s) by %s", existing.title, existing.id, user.email)
            return ok(
                message=f'Event "{existing.title}" and all related data deleted successfully',
                deleted_invitations=len(invitations),
                deleted_rsvps=len(rsvps),
            )
        except Exception as exc:
            logger.exception("Error deleting event %s", event_id)
            return failure("Failed to delete event", ErrorKind.downstream, details=str(exc))

    # --- projections ---

    async def get_events_by_user(self, user_id: Any) -> dict[str, Any]:
        try:
            items = await self._storage.scan("events", organizer_id=str(user_id))
            events = sorted((Event.from_item(item) for item in items), key=_start_key)
            return ok(events=events)
        except Exception as exc:
            logger.exception("Error getting events for user %s", user_id)
            return failure("Failed to get user events", ErrorKind.downstream, details=str(exc))

    async def get_all_events(self, include_private: bool = False) -> dict[str, Any]:
        """All events sorted by start date; private ones only when ``include_private``."""
        try:
            items = await self._storage.scan("events")
        except TableNotFoundError:
            logger.info("Events table not found - returning empty events list")
            return ok(events=[])
        except Exception as exc:
            logger.exception("Error getting all events")
            return failure("Failed to get events", ErrorKind.downstream, details=str(exc))

        events = [Event.from_item(item) for item in items]
        if not include_private:
            events = [e for e in events if e.is_public]
        events.sort(key=_start_key)
        return ok(events=events)

    async def get_events_for_calendar(self, user_id: Any = None, include_private: bool = False) -> dict[str, Any]:
        """Calendar-display records. ``should_fallback`` tells the caller to use the legacy feed."""
        result = await self.get_all_events(include_private)
        if not result["success"]:
            return {**result, "should_fallback": True}

        if result["events"]:
            return ok(events=[e.to_calendar_format() for e in result["events"]], should_fallback=False)
        return ok(events=[], should_fallback=True)

    async def get_upcoming_events(self, limit: int = 10) -> dict[str, Any]:
        result = await self.get_all_events(include_private=False)
        if not result["success"]:
            return result

        now = datetime.now(timezone.utc)
        upcoming = [e for e in result["events"] if e.is_upcoming(now)]
        return ok(events=upcoming[:limit])

    # --- helpers ---

    def identify_changes(self, old: Event, new: Event) -> list[str]:
        """Human-readable list of the differences invitees care about."""
        changes = []
        if old.title != new.title:
            changes.append(f'Title changed from "{old.title}" to "{new.title}"')
        if old.start_date != new.start_date:
            changes.append(
                f"Start time changed from {self._fmt(old.start_date)} to {self._fmt(new.start_date)}"
            )
        if old.end_date != new.end_date:
            changes.append(
                f"End time changed from {self._fmt(old.end_date)} to {self._fmt(new.end_date)}"
            )
        if old.location != new.location:
            changes.append(f'Location changed from "{old.location or "TBD"}" to "{new.location or "TBD"}"')
        if old.description != new.description:
            changes.append("Event description updated")
        return changes

    def can_user_manage_event(self, event: Event, user: Optional[User]) -> bool:
        return permissions.can_manage_event(event, user)

    def can_user_view_event(self, event: Event, user: Optional[User]) -> bool:
        return permissions.can_view_event(event, user)

    def _fmt(self, value: Optional[str]) -> str:
        return format_local(value, self._display_timezone)

    async def _send_update_notifications(self, event: Event, changes: list[str]) -> None:
        invitations = await self.invitations_for(event.id)
        if not invitations:
            return
        emails = [inv.invitee_email for inv in invitations]
        await self._email.send_update_notice(event, changes, emails)
        logger.info("Update notifications processed for event: %s", event.title)
