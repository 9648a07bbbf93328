"""Transactional email: calendar invites, update notices and RSVP alerts.

Bodies are rendered from Jinja2 templates (HTML + plain text); invites also
carry an .ics REQUEST attachment. Delivery goes through a pluggable
transport so the service itself never touches sockets.
"""
import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any, Optional, Protocol

from jinja2 import Environment, PackageLoader, select_autoescape

from club_events.config import Settings
from club_events.entities import Event, Invitation, NotificationPreferences, RSVP
from club_events.entities.common import format_local
from club_events.services.calendar_invite import attachment_filename, build_calendar_invite
from club_events.storage import StorageGateway

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10


class MailTransport(Protocol):
    async def send(self, message: EmailMessage) -> str:
        """Deliver the message and return its message id."""

    async def verify(self) -> None:
        """Raise if the transport cannot reach its server."""


class SmtpTransport:
    """smtplib delivery, run in a worker thread so the event loop never blocks."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_ssl: bool = False,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpTransport":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_ssl=settings.SMTP_SECURE,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )

    async def send(self, message: EmailMessage) -> str:
        await asyncio.to_thread(self._send_sync, message)
        return message["Message-ID"]

    async def verify(self) -> None:
        await asyncio.to_thread(self._verify_sync)

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
        if self.username:
            server.login(self.username, self.password)
        return server

    def _send_sync(self, message: EmailMessage) -> None:
        with self._connect() as server:
            server.send_message(message)

    def _verify_sync(self) -> None:
        with self._connect() as server:
            server.noop()


@dataclass(frozen=True)
class EmailSettings:
    from_email: str
    from_name: str
    organization_name: str
    support_email: str
    base_url: str
    enable_email: bool = True
    max_recipients: int = 50
    batch_delay_seconds: float = 2.0
    display_timezone: str = "UTC"

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailSettings":
        return cls(
            from_email=settings.FROM_EMAIL,
            from_name=settings.FROM_NAME,
            organization_name=settings.ORGANIZATION_NAME,
            support_email=settings.SUPPORT_EMAIL,
            base_url=settings.BASE_URL.rstrip("/"),
            enable_email=settings.ENABLE_EMAIL,
            max_recipients=settings.MAX_RECIPIENTS,
            batch_delay_seconds=settings.EMAIL_BATCH_DELAY_SECONDS,
            display_timezone=settings.DISPLAY_TIMEZONE,
        )

    @property
    def batch_size(self) -> int:
        return max(1, min(self.max_recipients, MAX_BATCH_SIZE))


class EmailService:
    def __init__(
        self,
        storage: StorageGateway,
        transport: Optional[MailTransport],
        config: EmailSettings,
    ):
        self._storage = storage
        self._transport = transport
        self.config = config
        self._templates = Environment(
            loader=PackageLoader("club_events", "templates"),
            autoescape=select_autoescape(["html"]),
        )

    @property
    def available(self) -> bool:
        return self.config.enable_email and self._transport is not None

    async def get_user_preferences(self, email: str) -> NotificationPreferences:
        """Stored preferences for ``email``; defaults when unregistered or the lookup fails."""
        try:
            users = await self._storage.scan("users", email=email)
        except Exception as exc:
            logger.error("Error getting user preferences for %s: %s", email, exc)
            return NotificationPreferences.for_user(None)
        return NotificationPreferences.for_user(users[0] if users else None)

    # --- invites ---

    async def send_single(self, event: Event, invitation: Invitation) -> dict[str, Any]:
        """Send one calendar invite. Never raises; the outcome is in the result."""
        if not self.available:
            return {"success": False, "error": "Email service not available"}

        try:
            prefs = await self.get_user_preferences(invitation.invitee_email)
            if not prefs.accepts_invites:
                logger.info("User %s has disabled calendar invites", invitation.invitee_email)
                return {"success": False, "error": "User has disabled calendar invites"}

            message = self._compose_invite(event, invitation)
            message_id = await self._transport.send(message)
            logger.info("Calendar invite sent to %s (%s)", invitation.invitee_email, message_id)
            return {"success": True, "message_id": message_id}
        except Exception as exc:
            logger.error("Error sending calendar invite to %s: %s", invitation.invitee_email, exc)
            return {"success": False, "error": str(exc)}

    async def send_bulk(self, event: Event, invitations: list[Invitation]) -> dict[str, Any]:
        """Send invites in batches, pausing between batches to respect provider rate limits.

        ``results`` preserves the order of ``invitations``.
        """
        if not self.available:
            return {"success": False, "message": "Email service not available"}

        results: list[dict[str, Any]] = []
        size = self.config.batch_size
        for start in range(0, len(invitations), size):
            batch = invitations[start:start + size]
            outcomes = await asyncio.gather(*(self.send_single(event, inv) for inv in batch))
            results.extend({"invitation": inv, "result": res} for inv, res in zip(batch, outcomes))

            if start + size < len(invitations) and self.config.batch_delay_seconds > 0:
                await asyncio.sleep(self.config.batch_delay_seconds)

        total_sent = sum(1 for r in results if r["result"]["success"])
        return {
            "success": True,
            "total_sent": total_sent,
            "total_failed": len(results) - total_sent,
            "results": results,
        }

    # --- update notices ---

    async def send_update_notice(self, event: Event, changes: list[str], emails: list[str]) -> list[dict[str, Any]]:
        """Tell invitees what changed; recipients who opted out of reminders are skipped."""
        if not self.available:
            return [{"email": email, "success": False, "message": "Email service not available"} for email in emails]

        results = []
        for email in emails:
            prefs = await self.get_user_preferences(email)
            if not prefs.accepts_updates:
                results.append({"email": email, "success": False, "message": "User notifications disabled"})
                continue
            try:
                message = self._compose(
                    to=email,
                    subject=f"📝 Event Updated: {event.title}",
                    template="update",
                    event=event,
                    changes=changes,
                )
                message_id = await self._transport.send(message)
                results.append({"email": email, "success": True, "message_id": message_id})
            except Exception as exc:
                logger.error("Error sending update notice to %s: %s", email, exc)
                results.append({"email": email, "success": False, "error": str(exc)})

        logger.info("Update notices for event %s: %d/%d sent", event.id,
                    sum(1 for r in results if r["success"]), len(emails))
        return results

    # --- organizer alerts ---

    async def send_rsvp_alert(
        self,
        event: Event,
        invitation: Invitation,
        rsvp: RSVP,
        organizer_email: str,
        previous: bool,
    ) -> dict[str, Any]:
        if not self.available:
            return {"success": False, "message": "Email service not available"}

        message = self._compose(
            to=organizer_email,
            subject=f"RSVP {'Updated' if previous else 'Received'}: {event.title}",
            template="rsvp_alert",
            event=event,
            invitation=invitation,
            rsvp=rsvp,
            previous=previous,
        )
        message_id = await self._transport.send(message)
        logger.info("RSVP alert sent to organizer %s", organizer_email)
        return {"success": True, "message_id": message_id}

    async def verify(self) -> dict[str, Any]:
        """Check that the transport can reach its server."""
        if self._transport is None:
            return {"success": False, "message": "Email transport not initialized"}
        try:
            await self._transport.verify()
            return {"success": True, "message": "Email configuration is valid"}
        except Exception as exc:
            logger.error("Email server connection failed: %s", exc)
            return {"success": False, "error": str(exc)}

    # --- composition ---

    def _compose_invite(self, event: Event, invitation: Invitation) -> EmailMessage:
        message = self._compose(
            to=invitation.invitee_email,
            subject=f"📅 Calendar Invite: {event.title}",
            template="invite",
            event=event,
            invitation=invitation,
            rsvp_link=invitation.rsvp_link(self.config.base_url),
        )
        ics = build_calendar_invite(event, invitation, self.config.organization_name, self.config.base_url)
        message.add_attachment(
            ics,
            maintype="text",
            subtype="calendar",
            filename=attachment_filename(event),
            params={"method": "REQUEST"},
        )
        message["X-Priority"] = "3"
        message["Importance"] = "Normal"
        return message

    def _compose(self, to: str, subject: str, template: str, event: Event, **context: Any) -> EmailMessage:
        context.update(
            event=event,
            organization_name=self.config.organization_name,
            support_email=self.config.support_email,
            event_url=f"{self.config.base_url}/events/{event.id}",
            starts=format_local(event.start_date, self.config.display_timezone),
            ends=format_local(event.end_date, self.config.display_timezone),
        )
        message = EmailMessage()
        message["From"] = formataddr((self.config.from_name, self.config.from_email))
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=self.config.from_email.rpartition("@")[2] or None)
        message.set_content(self._templates.get_template(f"email/{template}.txt").render(**context))
        message.add_alternative(
            self._templates.get_template(f"email/{template}.html").render(**context),
            subtype="html",
        )
        return message
