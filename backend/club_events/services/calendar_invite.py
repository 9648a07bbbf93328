"""iCalendar (.ics) REQUEST attachment for an invitation."""
import re
from datetime import datetime, timezone

from icalendar import Calendar, Event as ICalEvent, vCalAddress, vText

from club_events.entities import Event, Invitation
from club_events.entities.common import parse_iso


def attachment_filename(event: Event) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", event.title or "event") + ".ics"


def build_calendar_invite(
    event: Event,
    invitation: Invitation,
    organization_name: str,
    base_url: str,
) -> bytes:
    """Serialize a single-event calendar addressed to the invitee."""
    base_url = base_url.rstrip("/")
    rsvp_link = invitation.rsvp_link(base_url)

    calendar = Calendar()
    calendar.add("prodid", f"-//{organization_name}//Calendar Invite System//EN")
    calendar.add("version", "2.0")
    calendar.add("method", "REQUEST")
    calendar.add("x-wr-calname", f"{organization_name} Calendar")

    vevent = ICalEvent()
    vevent.add("uid", f"{event.id}-{invitation.id}@{organization_name.replace(' ', '-').lower()}")
    vevent.add("dtstamp", datetime.now(timezone.utc))
    vevent.add("dtstart", parse_iso(event.start_date).astimezone(timezone.utc))
    vevent.add("dtend", parse_iso(event.end_date).astimezone(timezone.utc))
    vevent.add("summary", event.title or "")
    vevent.add("description", f"{event.description}\n\nRSVP: {rsvp_link}".strip())
    vevent.add("location", event.location or "")
    vevent.add("url", f"{base_url}/events/{event.id}")
    vevent.add("status", "CONFIRMED")
    vevent.add("transp", "OPAQUE")

    organizer = vCalAddress(f"mailto:{event.organizer_email}")
    organizer.params["cn"] = vText(organization_name)
    vevent.add("organizer", organizer)

    attendee = vCalAddress(f"mailto:{invitation.invitee_email}")
    attendee.params["cn"] = vText(invitation.invitee_name or invitation.invitee_email)
    attendee.params["rsvp"] = vText("TRUE")
    attendee.params["partstat"] = vText("NEEDS-ACTION")
    vevent.add("attendee", attendee)

    calendar.add_component(vevent)
    return calendar.to_ical()
