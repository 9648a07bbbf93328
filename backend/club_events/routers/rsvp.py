"""RSVP endpoints targeted by the links in invitation emails.

Both routes are idempotent: repeating a submission rewrites the same RSVP.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from club_events.container import Services
from club_events.entities.common import sanitize_text
from club_events.entities.rsvp import is_valid_response
from club_events.routers.deps import get_services, unwrap
from club_events.schemas.invitation import RSVPSubmission

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{invitation_id}/{event_id}")
async def rsvp_link(
    invitation_id: str,
    event_id: str,
    response: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    """One-click response from an email button; without a valid response, ask for the form."""
    if not is_valid_response(response):
        return {"show_form": True, "invitation_id": invitation_id, "event_id": event_id}
    return unwrap(await services.invites.process_rsvp(invitation_id, event_id, response))


@router.post("/{invitation_id}/{event_id}")
async def submit_rsvp(
    invitation_id: str,
    event_id: str,
    payload: RSVPSubmission,
    services: Services = Depends(get_services),
):
    """Form submission with optional notes and display name."""
    return unwrap(await services.invites.process_rsvp(
        invitation_id,
        event_id,
        payload.response,
        payload.notes or "",
        {"name": sanitize_text(payload.responder_name or "")},
    ))
