"""Pydantic schemas for invitations and RSVP submissions."""
from __future__ import annotations
from typing import Any, Optional, Union
from pydantic import BaseModel, field_validator


class InvitationRequest(BaseModel):
    event_id: Union[int, str]
    created_at: Optional[str] = None
    invitees: list[Union[str, dict[str, Any]]]

    @field_validator("invitees", mode="before")
    @classmethod
    def split_comma_separated(cls, value: Any) -> Any:
        """Accept "a@x.edu, b@x.edu" as well as a JSON list."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


class RSVPSubmission(BaseModel):
    response: Optional[str] = None
    notes: Optional[str] = None
    responder_name: Optional[str] = None
