"""Uniform ``{"success": ...}`` envelopes returned by the service layer."""
import enum
from typing import Any, Optional, Union


class ErrorKind(str, enum.Enum):
    validation = "validation"
    not_found = "not_found"
    forbidden = "forbidden"
    conflict = "conflict"
    downstream = "downstream"


def ok(**payload: Any) -> dict[str, Any]:
    return {"success": True, **payload}


def failure(
    error: Union[str, list[str]],
    kind: ErrorKind,
    details: Optional[str] = None,
    **extra: Any,
) -> dict[str, Any]:
    """Failure envelope. A list of messages is reported under ``errors``."""
    result: dict[str, Any] = {"success": False, "error_type": kind.value}
    if isinstance(error, list):
        result["errors"] = error
    else:
        result["error"] = error
    if details is not None:
        result["details"] = details
    result.update(extra)
    return result
