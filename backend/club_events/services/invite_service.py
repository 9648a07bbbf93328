"""Invite service: owns the Invitation / RSVP lifecycle.

- Invitee resolution against the user and student directories, with dedup
- Bulk invitation dispatch: persist as ``sent``, email, then record the
  per-recipient outcome (``delivered`` / ``failed``) in a second write pass
- RSVP upsert keyed by (invitation_id, event_id): a changed mind overwrites,
  never duplicates
- Per-event and per-user reporting
"""
import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional

from club_events.entities import Event, Invitation, NotificationPreferences, RSVP, User
from club_events.entities.common import coerce_numeric_id, utc_now_iso
from club_events.entities.invitee import ResolvedInvitee, parse_invitee_list, resolve_invitees
from club_events.entities.rsvp import is_valid_response
from club_events.services import reporting
from club_events.services.background import BackgroundNotifier
from club_events.services.calendar_service import CalendarService
from club_events.services.email_service import EmailService
from club_events.services.results import ErrorKind, failure, ok
from club_events.storage import StorageGateway

logger = logging.getLogger(__name__)


class InviteService:
    def __init__(
        self,
        storage: StorageGateway,
        email_service: EmailService,
        notifier: BackgroundNotifier,
        calendar: CalendarService,
    ):
        self._storage = storage
        self._email = email_service
        self._notifier = notifier
        self._calendar = calendar

    async def create_invitations(
        self,
        event_id: Any,
        created_at: Optional[str],
        invitee_list: Iterable[Any],
        organizer: User,
    ) -> dict[str, Any]:
        """Invite everyone on ``invitee_list`` who is not already invited to the event."""
        try:
            event = await self._calendar.find_event(event_id, created_at)
            if event is None:
                return failure("Event not found", ErrorKind.not_found)

            if not self._calendar.can_user_manage_event(event, organizer):
                return failure("Unauthorized to send invitations for this event", ErrorKind.forbidden)

            resolved = await self.resolve_invitee_list(invitee_list)
            if not resolved:
                return failure("No valid invitees provided", ErrorKind.validation)

            existing = await self._calendar.invitations_for(event.id)
            already_invited = {inv.invitee_email for inv in existing}
            new_invitees = [r for r in resolved if r.email not in already_invited]
            if not new_invitees:
                return failure("All specified users have already been invited", ErrorKind.conflict)

            invitations = self._build_invitations(event, new_invitees)
            await asyncio.gather(*(self._storage.put("invitations", inv.to_item()) for inv in invitations))

            email_results = await self._email.send_bulk(event, invitations)
            if email_results.get("success"):
                invitations = await self._record_delivery(email_results["results"])

            logger.info("Sent %d invitations for event: %s", len(invitations), event.title)
            return ok(
                invitations_sent=len(invitations),
                emails_sent=email_results.get("total_sent", 0),
                emails_failed=email_results.get("total_failed", 0),
                already_invited=len(resolved) - len(new_invitees),
                invitations=invitations,
            )
        except Exception as exc:
            logger.exception("Error creating invitations for event %s", event_id)
            return failure("Failed to create invitations", ErrorKind.downstream, details=str(exc))

    async def resolve_invitee_list(self, invitee_list: Iterable[Any]) -> list[ResolvedInvitee]:
        """Parse raw entries and resolve them to unique, valid email/name pairs."""
        invitees = parse_invitee_list(invitee_list)
        if not invitees:
            return []
        try:
            users, students = await asyncio.gather(
                self._storage.scan("users"),
                self._storage.scan("students"),
            )
        except Exception as exc:
            # Emails and records still resolve without the directories; roster ids do not
            logger.warning("Directory lookup failed during invitee resolution: %s", exc)
            users, students = [], []
        return resolve_invitees(invitees, users, students)

    def _build_invitations(self, event: Event, invitees: list[ResolvedInvitee]) -> list[Invitation]:
        invitations = []
        for invitee in invitees:
            invitation = Invitation(
                event_id=str(event.id),
                invitee_email=invitee.email,
                invitee_name=invitee.name or "",
                sent_at=utc_now_iso(),
            )
            errors = invitation.validate()
            if errors:
                logger.error("Invalid invitation for %s: %s", invitee.email, errors)
                continue
            invitations.append(invitation.sanitized())
        return invitations

    async def _record_delivery(self, results: list[dict[str, Any]]) -> list[Invitation]:
        """Apply each send outcome to its invitation and persist the new status."""
        updated = []
        for entry in results:
            invitation, outcome = entry["invitation"], entry["result"]
            if outcome.get("success"):
                updated.append(invitation.mark_delivered())
            else:
                updated.append(invitation.mark_failed(outcome.get("error") or "Email delivery failed"))
        await asyncio.gather(*(self._storage.put("invitations", inv.to_item()) for inv in updated))
        return updated

    async def process_rsvp(
        self,
        invitation_id: Any,
        event_id: Any,
        response: str,
        notes: Optional[str] = "",
        responder: Optional[Mapping[str, Any]] = None,
    ) -> dict[str, Any]:
        """Record a response to an invitation, creating or overwriting the single RSVP."""
        try:
            if not is_valid_response(response):
                return failure("Invalid response. Must be accept, maybe, or decline", ErrorKind.validation)

            # No secondary index on invitation id: search within the event's invitations
            invitations = await self._calendar.invitations_for(event_id)
            invitation = next((inv for inv in invitations if str(inv.id) == str(invitation_id)), None)
            if invitation is None:
                return failure("Invitation not found", ErrorKind.not_found)

            key = {"invitation_id": str(invitation.id), "event_id": str(event_id)}
            previous = await self._storage.get("rsvps", key)

            responder = responder or {}
            rsvp = RSVP(
                invitation_id=key["invitation_id"],
                event_id=key["event_id"],
                response=response,
                response_at=utc_now_iso(),
                notes=notes or "",
                responder_name=responder.get("name") or invitation.invitee_name or "",
                responder_email=invitation.invitee_email,
            )
            errors = rsvp.validate()
            if errors:
                return failure(errors, ErrorKind.validation)

            rsvp = rsvp.sanitized()
            await self._storage.put("rsvps", rsvp.to_item())

            event = await self._calendar.find_event(event_id)
            if event is not None:
                self._notifier.dispatch(
                    self._notify_organizer(event, invitation, rsvp, previous is not None),
                    f"RSVP alert for event {event.id}",
                )

            verb = "updated" if previous else "recorded"
            logger.info("RSVP %s: %s -> %s for event %s", verb, invitation.invitee_email, response, event_id)
            return ok(rsvp=rsvp, updated=previous is not None, message=f"RSVP {verb} successfully")
        except Exception as exc:
            logger.exception("Error processing RSVP for invitation %s", invitation_id)
            return failure("Failed to process RSVP", ErrorKind.downstream, details=str(exc))

    async def _notify_organizer(self, event: Event, invitation: Invitation, rsvp: RSVP, previous: bool) -> None:
        """Alert the organizer unless they opted out of RSVP notifications."""
        organizers = await self._storage.scan("users", id=str(event.organizer_id))
        if not organizers:
            return
        organizer = organizers[0]
        if not NotificationPreferences.for_user(organizer).accepts_rsvp_alerts:
            return
        await self._email.send_rsvp_alert(event, invitation, rsvp, organizer["email"], previous)

    async def get_user_invitations(self, user_email: str, include_responded: bool = True) -> dict[str, Any]:
        """Invitations addressed to ``user_email``, each joined with its current RSVP, newest first."""
        try:
            items = await self._storage.scan("invitations", invitee_email=user_email)
            invitations = [Invitation.from_item(item) for item in items]

            rsvp_items = await asyncio.gather(*(
                self._storage.get("rsvps", {"invitation_id": str(inv.id), "event_id": inv.event_id})
                for inv in invitations
            ))
            entries = [
                {"invitation": inv, "rsvp": RSVP.from_item(item) if item else None}
                for inv, item in zip(invitations, rsvp_items)
            ]
            if not include_responded:
                entries = [entry for entry in entries if entry["rsvp"] is None]

            entries.sort(key=lambda entry: entry["invitation"].sent_at, reverse=True)
            return ok(invitations=entries)
        except Exception as exc:
            logger.exception("Error getting invitations for %s", user_email)
            return failure("Failed to get user invitations", ErrorKind.downstream, details=str(exc))

    async def get_pending_invitations_count(self, user_email: str) -> dict[str, Any]:
        result = await self.get_user_invitations(user_email, include_responded=False)
        if not result["success"]:
            return {**result, "count": 0}
        return ok(count=len(result["invitations"]))

    async def get_event_rsvp_summary(self, event_id: Any) -> dict[str, Any]:
        try:
            invitations, rsvps = await asyncio.gather(
                self._calendar.invitations_for(event_id),
                self._calendar.rsvps_for(event_id),
            )
            rsvps = reporting.current_rsvps(rsvps, invitations)
            return ok(summary=reporting.rsvp_summary(rsvps, len(invitations)), rsvps=rsvps)
        except Exception as exc:
            logger.exception("Error getting RSVP summary for event %s", event_id)
            return failure("Failed to get RSVP summary", ErrorKind.downstream, details=str(exc))

    async def remove_invitation(self, invitation_id: Any, event_id: Any, user: User) -> dict[str, Any]:
        """Revoke an invitation and any response to it (organizer or admin only)."""
        try:
            event = await self._calendar.find_event(event_id)
            if event is None:
                return failure("Event not found", ErrorKind.not_found)

            if not self._calendar.can_user_manage_event(event, user):
                return failure("Unauthorized to remove invitations for this event", ErrorKind.forbidden)

            numeric_id = coerce_numeric_id(invitation_id)
            if numeric_id is None:
                return failure("Invitation not found", ErrorKind.not_found)

            # A missing RSVP is fine; the invitee may never have answered
            await self._storage.delete("rsvps", {"invitation_id": str(numeric_id), "event_id": str(event.id)})
            removed = await self._storage.delete("invitations", {"id": numeric_id, "event_id": str(event.id)})
            if not removed:
                return failure("Invitation not found", ErrorKind.not_found)

            logger.info("Invitation %s removed from event %s by %s", numeric_id, event.id, user.email)
            return ok(message="Invitation removed successfully")
        except Exception as exc:
            logger.exception("Error removing invitation %s", invitation_id)
            return failure("Failed to remove invitation", ErrorKind.downstream, details=str(exc))
