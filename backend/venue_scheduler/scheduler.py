# backend/venue_scheduler/scheduler.py
"""
Admission control for events at a location.

Every write follows the same shape: validate the interval outside the
database, then inside one transaction lock the (location, date) partition,
scan live events there for an overlapping slot, write the event row and
link its participants. Any failure rolls the whole unit back.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from sqlalchemy import false, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import ParticipantPolicy, settings
from .db import lock_partition, transaction
from .errors import ConflictError, NotFoundError
from .intervals import Interval, validate_interval
from .models import Event, Participant
from .queries import get_live_event, live_events
from .schemas import EventIn, EventUpdate

logger = logging.getLogger(__name__)


def normalize_emails(emails: Iterable[str]) -> list[str]:
    """Trim, lower-case and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for e in emails:
        e = e.strip().lower()
        if e:
            seen.setdefault(e, None)
    return list(seen)


def find_conflict(
    db: Session,
    location: str,
    interval: Interval,
    exclude_event_id: Optional[int] = None,
) -> Optional[Event]:
    """
    Return a live event at `location` on the interval's date whose slot
    overlaps [start, end), or None.

    Times are stored as zero-padded HH:MM, so string comparison orders them
    chronologically and the half-open test is start < other_end and
    other_start < end.
    """
    q = live_events().where(
        Event.location == location,
        Event.date == interval.date,
        Event.start_time < interval.end_time,
        Event.end_time > interval.start_time,
    )
    if exclude_event_id is not None:
        q = q.where(Event.id != exclude_event_id)
    return db.execute(q.order_by(Event.start_time).limit(1)).scalars().first()


def _admit(db: Session, location: str, interval: Interval, exclude_event_id: Optional[int] = None) -> None:
    lock_partition(db, location, interval.date)
    clash = find_conflict(db, location, interval, exclude_event_id)
    if clash is not None:
        logger.info(
            "rejected %s %s %s-%s: overlaps event %s (%s-%s)",
            location, interval.date, interval.start_time, interval.end_time,
            clash.id, clash.start_time, clash.end_time,
        )
        raise ConflictError(
            f"Time conflict with event {clash.id} ({clash.start_time}-{clash.end_time}) "
            f"at {location} on {interval.date.isoformat()}.",
            event_id=clash.id,
        )


def _flush_slot(db: Session, location: str, interval: Interval) -> None:
    # the live-slot unique index catches a racing identical booking
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError(
            f"Time conflict at {location} on {interval.date.isoformat()} "
            f"({interval.start_time}-{interval.end_time})."
        ) from exc


def link_participants(
    db: Session,
    event: Event,
    emails: Iterable[str],
    policy: ParticipantPolicy,
) -> list[Participant]:
    """
    Upsert participants by email onto `event`.

    Returns the rows that were created or (re)linked by this call. Emails
    already live on this event are left alone; emails live on another event
    follow `policy`. Soft-deleted rows are free and always revived.
    """
    wanted = normalize_emails(emails)
    if not wanted:
        return []

    existing = {
        p.email: p
        for p in db.execute(select(Participant).where(Participant.email.in_(wanted))).scalars()
    }

    linked: list[Participant] = []
    for email in wanted:
        row = existing.get(email)
        if row is None:
            row = Participant(email=email, event_id=event.id, is_deleted=False)
            db.add(row)
        elif row.is_deleted:
            row.event_id = event.id
            row.is_deleted = False
        elif row.event_id == event.id:
            continue
        elif policy is ParticipantPolicy.RELINK:
            logger.info("moving participant %s from event %s to event %s", email, row.event_id, event.id)
            row.event_id = event.id
        elif policy is ParticipantPolicy.SKIP:
            logger.info("participant %s already on event %s, skipped", email, row.event_id)
            continue
        else:
            raise ConflictError(
                f"Participant {email} is already registered for event {row.event_id}.",
                event_id=row.event_id,
            )
        linked.append(row)

    # participants.email is unique: a concurrent insert of the same address lands here
    try:
        db.flush()
    except IntegrityError as exc:
        logger.info("participant insert for event %s lost a race on %s", event.id, ", ".join(wanted))
        raise ConflictError(
            "A participant email was registered by another request at the same time; retry the request."
        ) from exc
    return linked


def _policy(policy: Union[ParticipantPolicy, str, None]) -> ParticipantPolicy:
    return ParticipantPolicy(policy or settings.on_existing_participant)


def create_event(
    db: Session,
    data: EventIn,
    policy: Union[ParticipantPolicy, str, None] = None,
) -> Event:
    """Admit a new event and its participants, or raise without writing anything."""
    interval = validate_interval(data.date, data.start_time, data.end_time)
    location = data.location.strip()
    pol = _policy(policy)

    with transaction(db):
        _admit(db, location, interval)
        ev = Event(
            name=data.name,
            date=interval.date,
            start_time=interval.start_time,
            end_time=interval.end_time,
            location=location,
            description=data.description,
            is_deleted=False,
        )
        db.add(ev)
        _flush_slot(db, location, interval)
        link_participants(db, ev, data.participants, pol)

    db.refresh(ev)
    logger.info("created event %s at %s %s %s-%s", ev.id, ev.location, ev.date, ev.start_time, ev.end_time)
    return ev


def update_event(
    db: Session,
    event_id: int,
    data: Union[EventIn, EventUpdate],
    policy: Union[ParticipantPolicy, str, None] = None,
) -> Event:
    """
    Replace the supplied fields of a live event.

    The merged slot goes through the same conflict check as a create, with
    the event itself excluded from the scan.
    """
    changes = data.model_dump(exclude_unset=True)
    emails = changes.pop("participants", None) or []
    # null means "not supplied" for every field except description
    changes = {k: v for k, v in changes.items() if v is not None or k == "description"}
    pol = _policy(policy)

    with transaction(db):
        ev = get_live_event(db, event_id, for_update=True)
        merged = {
            "date": changes.get("date", ev.date.isoformat()),
            "start_time": changes.get("start_time", ev.start_time),
            "end_time": changes.get("end_time", ev.end_time),
        }
        interval = validate_interval(merged["date"], merged["start_time"], merged["end_time"])
        location = changes.get("location", ev.location).strip()

        _admit(db, location, interval, exclude_event_id=ev.id)

        ev.name = changes.get("name", ev.name)
        ev.date = interval.date
        ev.start_time = interval.start_time
        ev.end_time = interval.end_time
        ev.location = location
        if "description" in changes:
            ev.description = changes["description"]
        _flush_slot(db, location, interval)
        link_participants(db, ev, emails, pol)

    db.refresh(ev)
    logger.info("updated event %s -> %s %s %s-%s", ev.id, ev.location, ev.date, ev.start_time, ev.end_time)
    return ev


def delete_event(db: Session, event_id: int) -> Event:
    """Soft-delete an event and hide its participants with it."""
    with transaction(db):
        ev = get_live_event(db, event_id, for_update=True)
        ev.is_deleted = True
        db.execute(
            update(Participant)
            .where(Participant.event_id == ev.id, Participant.is_deleted == false())
            .values(is_deleted=True)
        )
    logger.info("soft-deleted event %s", event_id)
    return ev


def add_participants(
    db: Session,
    event_id: int,
    emails: Iterable[str],
    policy: Union[ParticipantPolicy, str, None] = None,
) -> list[Participant]:
    pol = _policy(policy)
    with transaction(db):
        ev = get_live_event(db, event_id)
        added = link_participants(db, ev, emails, pol)
    logger.info("event %s: %d participant(s) added (policy=%s)", event_id, len(added), pol.value)
    return added


def remove_participant(db: Session, event_id: int, participant_id: int) -> Participant:
    with transaction(db):
        get_live_event(db, event_id)
        p = db.execute(
            select(Participant).where(
                Participant.id == participant_id,
                Participant.event_id == event_id,
                Participant.is_deleted == false(),
            )
        ).scalars().first()
        if p is None:
            raise NotFoundError(f"Participant {participant_id} not found on event {event_id}.")
        p.is_deleted = True
    logger.info("removed participant %s from event %s", participant_id, event_id)
    return p
