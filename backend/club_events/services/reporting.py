"""RSVP aggregation shared by event details and the summary report."""
from collections import Counter
from typing import Iterable

from club_events.entities import Invitation, RSVP
from club_events.entities.rsvp import RSVPResponse


def current_rsvps(rsvps: Iterable[RSVP], invitations: Iterable[Invitation]) -> list[RSVP]:
    """RSVPs that belong to an invitation still on the event."""
    invitation_ids = {str(inv.id) for inv in invitations}
    return [r for r in rsvps if r.invitation_id in invitation_ids]


def count_responses(rsvps: Iterable[RSVP]) -> Counter:
    counts = Counter({r.value: 0 for r in RSVPResponse})
    counts.update(r.response for r in rsvps if r.response in counts)
    return counts


def details_summary(rsvps: list[RSVP], total_invited: int) -> dict[str, int]:
    """Counts shown on the event page: recorded responses and who has not answered."""
    counts = count_responses(rsvps)
    return {
        "total": len(rsvps),
        "accept": counts["accept"],
        "maybe": counts["maybe"],
        "decline": counts["decline"],
        "no_response": max(total_invited - len(rsvps), 0),
    }


def rsvp_summary(rsvps: list[RSVP], total_invited: int) -> dict[str, int]:
    """Organizer report. accept + maybe + decline + no_response == total_invited."""
    counts = count_responses(rsvps)
    total_responded = len(rsvps)
    return {
        "total_invited": total_invited,
        "total_responded": total_responded,
        "accept": counts["accept"],
        "maybe": counts["maybe"],
        "decline": counts["decline"],
        "no_response": max(total_invited - total_responded, 0),
        # Halves round up
        "response_rate": int(100 * total_responded / total_invited + 0.5) if total_invited else 0,
    }
