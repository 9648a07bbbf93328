"""Event API routes: delegates to the calendar service."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from club_events.container import Services
from club_events.entities import User
from club_events.routers.deps import get_actor, get_services, require_actor, unwrap
from club_events.schemas.event import EventCreate, EventUpdate
from club_events.storage import StorageError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    """Create an event owned by the acting user, optionally inviting people straight away."""
    data = payload.model_dump(exclude={"invitees"}, exclude_none=True)
    result = unwrap(await services.calendar.create_event(data, actor))

    if payload.invitees:
        event = result["event"]
        result["invitations"] = await services.invites.create_invitations(
            event.id, event.created_at, payload.invitees, actor,
        )
    return result


@router.get("/")
async def list_events(
    include_private: bool = Query(False),
    actor: Optional[User] = Depends(get_actor),
    services: Services = Depends(get_services),
):
    """List events sorted by start date. Private events are listed for administrators only."""
    include_private = include_private and actor is not None and actor.is_admin
    return unwrap(await services.calendar.get_all_events(include_private))


@router.get("/upcoming")
async def upcoming_events(
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
):
    return unwrap(await services.calendar.get_upcoming_events(limit))


@router.get("/calendar")
async def calendar_feed(
    actor: Optional[User] = Depends(get_actor),
    services: Services = Depends(get_services),
):
    """Calendar records; falls back to the legacy calendar table when there are none."""
    include_private = actor is not None and actor.is_admin
    result = await services.calendar.get_events_for_calendar(actor.id if actor else None, include_private)
    if result["success"] and not result["should_fallback"]:
        return result["events"]

    logger.info("Falling back to legacy calendar feed")
    try:
        return await services.storage.scan("calendar")
    except StorageError as exc:
        # Keep the calendar page rendering even when both feeds are unavailable
        logger.error("Legacy calendar feed also failed: %s", exc)
        return []


@router.get("/mine")
async def my_events(
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    return unwrap(await services.calendar.get_events_by_user(actor.id))


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    created_at: Optional[str] = Query(None),
    actor: Optional[User] = Depends(get_actor),
    services: Services = Depends(get_services),
):
    """Event details with invitations, RSVPs and the response summary."""
    result = unwrap(await services.calendar.get_event_details(event_id, created_at))
    event = result["event"]
    if not services.calendar.can_user_view_event(event, actor):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This event is private")
    result["can_manage"] = services.calendar.can_user_manage_event(event, actor)
    return result


@router.put("/{event_id}")
async def update_event(
    event_id: str,
    payload: EventUpdate,
    created_at: Optional[str] = Query(None),
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    """Update an event (organizer or admin only)."""
    updates = payload.model_dump(exclude_unset=True)
    return unwrap(await services.calendar.update_event(event_id, created_at, updates, actor))


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    created_at: Optional[str] = Query(None),
    actor: User = Depends(require_actor),
    services: Services = Depends(get_services),
):
    """Delete an event and everything that references it (organizer or admin only)."""
    return unwrap(await services.calendar.delete_event(event_id, created_at, actor))


@router.get("/{event_id}/rsvp-summary")
async def rsvp_summary(event_id: str, services: Services = Depends(get_services)):
    return unwrap(await services.invites.get_event_rsvp_summary(event_id))
