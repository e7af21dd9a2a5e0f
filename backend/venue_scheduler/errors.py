# backend/venue_scheduler/errors.py
"""Error kinds surfaced by the scheduler and query layer.

Each carries a human-readable message, a short category string and the HTTP
status the API layer maps it to.
"""

from __future__ import annotations

from typing import Optional

from fastapi import status


class SchedulingError(Exception):
    category = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "category": self.category}


class FormatError(SchedulingError):
    """A date or time string does not match its fixed pattern."""
    category = "format"
    status_code = status.HTTP_406_NOT_ACCEPTABLE

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {**super().to_dict(), "field": self.field}


class OrderError(SchedulingError):
    category = "order"
    status_code = status.HTTP_406_NOT_ACCEPTABLE


class ConflictError(SchedulingError):
    category = "conflict"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, event_id: Optional[int] = None):
        super().__init__(message)
        self.event_id = event_id

    def to_dict(self) -> dict:
        out = super().to_dict()
        if self.event_id is not None:
            out["conflictingEventId"] = self.event_id
        return out


class NotFoundError(SchedulingError):
    category = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InputError(SchedulingError):
    category = "input"
    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(SchedulingError):
    """The store failed underneath a transaction (unavailable, deadlock, ...)."""
    category = "storage"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def parse_id(raw: str, name: str) -> int:
    """Turn a path identifier into a positive int or raise InputError."""
    text = (raw or "").strip()
    if not (text.isascii() and text.isdigit()) or int(text) < 1:
        raise InputError(f"{name} must be a positive integer, got {raw!r}")
    return int(text)
