"""Invitee references and their resolution to confirmed email + display name.

An invitee list entry is one of three explicit variants:

- ``ByEmail``: a bare email address
- ``ById``: a roster (student) id, resolved through the student directory
- ``ByRecord``: an email/name pair supplied by the caller

Raw request payloads are turned into variants by ``parse_invitee``;
``resolve_invitee`` is the single place each variant is handled.
"""
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from club_events.entities.common import is_valid_email


@dataclass(frozen=True)
class ByEmail:
    email: str


@dataclass(frozen=True)
class ById:
    student_id: str


@dataclass(frozen=True)
class ByRecord:
    email: str
    name: str = ""


Invitee = Union[ByEmail, ById, ByRecord]


@dataclass(frozen=True)
class ResolvedInvitee:
    email: str
    name: str = ""


def parse_invitee(raw: Any) -> Optional[Invitee]:
    """Classify one raw entry. Returns None for entries that cannot name anyone."""
    if isinstance(raw, (ByEmail, ById, ByRecord)):
        return raw
    if isinstance(raw, str):
        value = raw.strip()
        if not value:
            return None
        return ByEmail(value) if "@" in value else ById(value)
    if isinstance(raw, Mapping) and raw.get("email"):
        return ByRecord(email=str(raw["email"]).strip(), name=raw.get("name") or "")
    return None


def parse_invitee_list(raw_list: Iterable[Any]) -> list[Invitee]:
    parsed = (parse_invitee(raw) for raw in raw_list)
    return [invitee for invitee in parsed if invitee is not None]


def resolve_invitee(
    invitee: Invitee,
    users_by_email: Mapping[str, Mapping[str, Any]],
    students_by_id: Mapping[str, Mapping[str, Any]],
) -> Optional[ResolvedInvitee]:
    """Map a variant to an email/name pair using the user and student directories."""
    if isinstance(invitee, ByEmail):
        user = users_by_email.get(invitee.email)
        return ResolvedInvitee(invitee.email, (user or {}).get("username") or "")
    if isinstance(invitee, ById):
        student = students_by_id.get(invitee.student_id)
        if not student or not student.get("email"):
            return None
        name = student.get("name") or student.get("username") or ""
        return ResolvedInvitee(student["email"], name)
    if isinstance(invitee, ByRecord):
        return ResolvedInvitee(invitee.email, invitee.name)
    raise TypeError(f"Unsupported invitee variant: {invitee!r}")


def resolve_invitees(
    invitees: Iterable[Invitee],
    users: Iterable[Mapping[str, Any]],
    students: Iterable[Mapping[str, Any]],
) -> list[ResolvedInvitee]:
    """Resolve every entry, dropping unresolvable, invalid and duplicate emails (first wins)."""
    users_by_email = {u["email"]: u for u in users if u.get("email")}
    students_by_id = {str(s["id"]): s for s in students if s.get("id") is not None}

    resolved: list[ResolvedInvitee] = []
    seen: set[str] = set()
    for invitee in invitees:
        result = resolve_invitee(invitee, users_by_email, students_by_id)
        if result is None or not is_valid_email(result.email) or result.email in seen:
            continue
        seen.add(result.email)
        resolved.append(result)
    return resolved
