"""Shared router dependencies: service lookup, acting user, envelope → HTTP mapping."""
import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException, Query, Request, status

from club_events.container import Services
from club_events.entities import User
from club_events.services.results import ErrorKind

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.validation.value: status.HTTP_400_BAD_REQUEST,
    ErrorKind.forbidden.value: status.HTTP_403_FORBIDDEN,
    ErrorKind.not_found.value: status.HTTP_404_NOT_FOUND,
    ErrorKind.conflict.value: status.HTTP_409_CONFLICT,
    ErrorKind.downstream.value: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_actor(
    actor_email: Optional[str] = Query(None, description="Email of the user performing the request"),
    services: Services = Depends(get_services),
) -> Optional[User]:
    """Resolve the acting user from the users table; anonymous when absent or unknown."""
    if not actor_email:
        return None
    items = await services.storage.scan("users", email=actor_email)
    return User.from_item(items[0]) if items else None


async def require_actor(actor: Optional[User] = Depends(get_actor)) -> User:
    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    return actor


def unwrap(result: dict[str, Any]) -> dict[str, Any]:
    """Return a successful envelope; turn a failed one into an HTTPException."""
    if result.get("success"):
        return result

    kind = result.get("error_type", ErrorKind.downstream.value)
    code = _STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if kind == ErrorKind.downstream.value:
        # Internals stay in the logs
        logger.error("Request failed: %s (%s)", result.get("error"), result.get("details"))
        raise HTTPException(status_code=code, detail="Something went wrong")
    if "errors" in result:
        raise HTTPException(status_code=code, detail={"errors": result["errors"]})
    raise HTTPException(status_code=code, detail=result.get("error"))
