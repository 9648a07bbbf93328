"""Invitation API routes: sending, listing and revoking invitations."""
import logging

from fastapi import APIRouter, Depends, Query

from club_events.container import Services
from club_events.entities import User
from club_events.routers.deps import get_services, require_actor, unwrap
from club_events.schemas.invitation import InvitationRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/")
async def send_invitations(
    payload: InvitationRequest,
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    """Invite a list of emails, roster ids or {email, name} records to an event."""
    return unwrap(await services.invites.create_invitations(
        payload.event_id, payload.created_at, payload.invitees, actor,
    ))


@router.get("/mine")
async def my_invitations(
    include_responded: bool = Query(True),
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    return unwrap(await services.invites.get_user_invitations(actor.email, include_responded))


@router.get("/pending-count")
async def pending_count(
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    return unwrap(await services.invites.get_pending_invitations_count(actor.email))


@router.delete("/{invitation_id}/{event_id}")
async def remove_invitation(
    invitation_id: str,
    event_id: str,
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    """Revoke an invitation and its RSVP (organizer or admin only)."""
    return unwrap(await services.invites.remove_invitation(invitation_id, event_id, actor))
