"""Pydantic schemas for Events.

Fields are mostly optional strings; the calendar service validates and
reports every problem at once.
"""
from __future__ import annotations
from typing import Any, Optional, Union
from pydantic import BaseModel


class EventCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    is_public: bool = True
    max_attendees: Optional[int] = None
    # Optional invitees to send right after creation (emails, roster ids or {email, name})
    invitees: list[Union[str, dict[str, Any]]] = []


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    is_public: Optional[bool] = None
    max_attendees: Optional[int] = None
