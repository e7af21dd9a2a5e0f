# backend/venue_scheduler/queries.py
"""
Read paths for events.

Every query over events starts from live_events() so the soft-delete filter
lives in exactly one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import Select, false, func, or_, select
from sqlalchemy.orm import Session, selectinload

from .config import settings
from .errors import InputError, NotFoundError
from .intervals import parse_date, parse_minutes, format_minutes
from .models import Event

SEARCHABLE_FIELDS = (Event.location, Event.description, Event.name)


def _exact_text(column) -> Callable[[str], Any]:
    return lambda value: column == value


def _exact_date(value: str):
    return Event.date == parse_date(value, "date")


def _exact_time(column, field: str) -> Callable[[str], Any]:
    return lambda value: column == format_minutes(parse_minutes(value, field))


# query parameter name → builder of a WHERE clause
FILTERS: dict[str, Callable[[str], Any]] = {
    "name": _exact_text(Event.name),
    "location": _exact_text(Event.location),
    "date": _exact_date,
    "startTime": _exact_time(Event.start_time, "startTime"),
    "endTime": _exact_time(Event.end_time, "endTime"),
}

SORTABLE = {
    "createdAt": Event.created_at,
    "date": Event.date,
    "startTime": Event.start_time,
    "name": Event.name,
    "location": Event.location,
}

PAGINATION_KEYS = ("page", "limit", "sortBy", "sortOrder")


def live_events() -> Select:
    return select(Event).where(Event.is_deleted == false())


def get_live_event(db: Session, event_id: int, *, for_update: bool = False) -> Event:
    """Load a non-deleted event or raise NotFoundError."""
    q = live_events().where(Event.id == event_id)
    if for_update:
        q = q.with_for_update()
    ev = db.execute(q).scalars().first()
    if ev is None:
        raise NotFoundError(f"Event {event_id} not found.")
    return ev


def get_event(db: Session, event_id: int) -> Event:
    q = live_events().where(Event.id == event_id).options(selectinload(Event.participants))
    ev = db.execute(q).scalars().first()
    if ev is None:
        raise NotFoundError(f"Event {event_id} not found.")
    return ev


@dataclass
class Pagination:
    page: int
    limit: int
    sort_by: str
    sort_order: str

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _positive_int(raw: Optional[str], name: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    if not (raw.isascii() and raw.isdigit()) or int(raw) < 1:
        raise InputError(f"{name} must be a positive integer, got {raw!r}")
    return int(raw)


def parse_pagination(params: Mapping[str, Optional[str]]) -> Pagination:
    limit = _positive_int(params.get("limit"), "limit", settings.default_page_limit)
    if limit > settings.max_page_limit:
        raise InputError(f"limit cannot exceed {settings.max_page_limit}")

    sort_by = params.get("sortBy") or "createdAt"
    if sort_by not in SORTABLE:
        raise InputError(f"Cannot sort by {sort_by!r}; choose one of {', '.join(SORTABLE)}")

    sort_order = (params.get("sortOrder") or "desc").lower()
    if sort_order not in ("asc", "desc"):
        raise InputError("sortOrder must be 'asc' or 'desc'")

    return Pagination(
        page=_positive_int(params.get("page"), "page", 1),
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def build_conditions(filters: Mapping[str, Optional[str]]) -> list:
    """Translate searchTerm plus allow-listed equality filters into WHERE clauses."""
    conditions = []
    for key, value in filters.items():
        if value is None or value == "":
            continue
        if key == "searchTerm":
            conditions.append(or_(*(col.icontains(value, autoescape=True) for col in SEARCHABLE_FIELDS)))
        elif key in FILTERS:
            conditions.append(FILTERS[key](value))
        else:
            allowed = ", ".join(["searchTerm", *FILTERS])
            raise InputError(f"Unknown filter {key!r}; allowed filters: {allowed}")
    return conditions


def list_events(
    db: Session,
    filters: Mapping[str, Optional[str]],
    pagination: Pagination,
) -> tuple[list[Event], int]:
    """Return one page of live events and the total number of matches."""
    conditions = build_conditions(filters)
    q = live_events()
    if conditions:
        q = q.where(*conditions)

    total = db.execute(select(func.count()).select_from(q.subquery())).scalar_one()

    column = SORTABLE[pagination.sort_by]
    order = column.asc() if pagination.sort_order == "asc" else column.desc()
    tiebreak = Event.id.asc() if pagination.sort_order == "asc" else Event.id.desc()
    rows = db.execute(
        q.options(selectinload(Event.participants))
        .order_by(order, tiebreak)
        .offset(pagination.skip)
        .limit(pagination.limit)
    ).scalars().all()
    return list(rows), total


def split_query_params(params: Mapping[str, str]) -> tuple[dict, Pagination]:
    """Separate pagination keys from filter keys in a flat query string."""
    filters = {k: v for k, v in params.items() if k not in PAGINATION_KEYS}
    return filters, parse_pagination(params)
