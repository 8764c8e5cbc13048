"""Core event service: creation, lookup and organizer-only edits.

Responsibilities:
- Date validation against an injected clock (date in the future, end >= start)
- Private events require invitees
- Creator is always the ORGANIZER attendee, committed with the event itself
- Every read goes through the visibility resolver
- Only the creator may update or delete an event
"""
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session, joinedload

from cns_network.clock import Clock, as_utc, system_clock, utcnow
from cns_network.errors import ForbiddenError, InvalidArgumentError, NotFoundError
from cns_network.models.attendee import AttendeeRole, AttendeeStatus, EventAttendee
from cns_network.models.chapter import Chapter
from cns_network.models.event import Event
from cns_network.models.user import User
from cns_network.schemas.event import EventCreate, EventFilters, EventUpdate
from cns_network.services.projections import event_summary, user_summary
from cns_network.services.visibility import (
    attendee_counts,
    list_visible_events,
    visible_events_query,
)

logger = logging.getLogger(__name__)

# Columns that an update may change but never clear
_NON_NULLABLE_UPDATES = ("title", "description", "type", "is_virtual", "date")


def _check_dates(start: datetime, end: Optional[datetime], now: datetime) -> None:
    if as_utc(start) <= now:
        raise InvalidArgumentError("Event date must be in the future")
    if end is not None and as_utc(end) < as_utc(start):
        raise InvalidArgumentError("End date must be after start date")


def check_organizer(event: Event, acting_user_id: str, action: str) -> None:
    if event.creator_id != acting_user_id:
        raise ForbiddenError(f"Only the event organizer can {action}")


def missing_users(db: Session, user_ids: list[str]) -> list[str]:
    if not user_ids:
        return []
    found = {uid for (uid,) in db.query(User.id).filter(User.id.in_(user_ids)).all()}
    return [uid for uid in user_ids if uid not in found]


def unique_ids(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def get_event_or_404(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


def get_visible_event(db: Session, event_id: str, viewer_id: Optional[str]) -> Event:
    """Fetch an event the viewer may see; hidden events read as missing."""
    event = visible_events_query(db, viewer_id=viewer_id).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


def create_event(
    db: Session,
    data: EventCreate,
    creator_id: str,
    clock: Clock = system_clock,
) -> Event:
    """Create an event together with its organizer and invitee attendee rows."""
    _check_dates(data.date, data.end_date, clock.now())

    invitee_ids = [uid for uid in unique_ids(data.invited_user_ids) if uid != creator_id]
    if not data.is_public and not invitee_ids:
        raise InvalidArgumentError("Private events must have at least one invitee")

    if data.chapter_id and not db.query(Chapter).filter(Chapter.id == data.chapter_id).first():
        raise NotFoundError("Chapter not found")

    if not data.is_public:
        missing = missing_users(db, invitee_ids)
        if missing:
            raise NotFoundError("Invited user not found", user_ids=missing)

    event = Event(
        title=data.title,
        description=data.description,
        type=data.type,
        location=data.location,
        is_virtual=data.is_virtual,
        virtual_link=data.virtual_link,
        date=as_utc(data.date),
        end_date=as_utc(data.end_date) if data.end_date else None,
        is_recurring=data.is_recurring,
        recurrence_type=data.recurrence_type,
        chapter_id=data.chapter_id,
        creator_id=creator_id,
        is_public=data.is_public,
        entry_fee=data.entry_fee,
    )
    # Organizer and invitees are built on the event and committed in one unit
    event.attendees.append(
        EventAttendee(user_id=creator_id, status=AttendeeStatus.going, role=AttendeeRole.organizer)
    )
    if not data.is_public:
        for uid in invitee_ids:
            event.attendees.append(
                EventAttendee(user_id=uid, status=AttendeeStatus.invited, role=AttendeeRole.attendee)
            )

    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(
        "Created %s event '%s' (%s) by %s with %d invitees",
        "public" if event.is_public else "private",
        event.title,
        event.id,
        creator_id,
        len(invitee_ids) if not data.is_public else 0,
    )
    return event


def get_events(
    db: Session,
    filters: EventFilters,
    viewer_id: Optional[str] = None,
) -> list[dict[str, Any]]:
    return list_visible_events(db, filters, viewer_id)


def get_upcoming_events(
    db: Session,
    viewer_id: Optional[str] = None,
    clock: Clock = system_clock,
) -> list[dict[str, Any]]:
    return list_visible_events(db, EventFilters(start_date=clock.now()), viewer_id)


def get_events_by_chapter(
    db: Session,
    chapter_id: str,
    viewer_id: Optional[str] = None,
) -> list[dict[str, Any]]:
    return list_visible_events(db, EventFilters(chapter_id=chapter_id), viewer_id)


def _attendee_view(attendee: EventAttendee) -> dict[str, Any]:
    return {
        "id": attendee.id,
        "event_id": attendee.event_id,
        "user_id": attendee.user_id,
        "status": attendee.status.value,
        "role": attendee.role.value,
        "created_at": attendee.created_at,
        "user": user_summary(attendee.user),
    }


def get_event_by_id(db: Session, event_id: str, viewer_id: Optional[str] = None) -> dict[str, Any]:
    """Single event with its attendees and the viewer's own RSVP and organizer flag."""
    event = get_visible_event(db, event_id, viewer_id)
    attendees = (
        db.query(EventAttendee)
        .options(joinedload(EventAttendee.user))
        .filter(EventAttendee.event_id == event.id)
        .order_by(EventAttendee.created_at.asc())
        .all()
    )

    user_rsvp_status = None
    if viewer_id:
        mine = next((a for a in attendees if a.user_id == viewer_id), None)
        user_rsvp_status = mine.status.value if mine else None

    data = event_summary(event, len(attendees), user_rsvp_status)
    data["attendees"] = [_attendee_view(a) for a in attendees]
    data["is_organizer"] = bool(viewer_id) and event.creator_id == viewer_id
    return data


def update_event(
    db: Session,
    event_id: str,
    data: EventUpdate,
    acting_user_id: str,
    clock: Clock = system_clock,
) -> Event:
    """Apply a partial update; organizer only."""
    event = get_event_or_404(db, event_id)
    check_organizer(event, acting_user_id, "update the event")

    updates = data.model_dump(exclude_unset=True)
    cleared = [field for field in _NON_NULLABLE_UPDATES if field in updates and updates[field] is None]
    if cleared:
        raise InvalidArgumentError("Fields cannot be null", fields=cleared)

    if "date" in updates or "end_date" in updates:
        new_start = updates.get("date", event.date)
        new_end = updates.get("end_date", event.end_date)
        if "date" in updates:
            _check_dates(new_start, new_end, clock.now())
        elif new_end is not None and as_utc(new_end) < as_utc(new_start):
            raise InvalidArgumentError("End date must be after start date")

    for field, value in updates.items():
        if isinstance(value, datetime):
            value = as_utc(value)
        setattr(event, field, value)
    event.updated_at = utcnow()

    db.commit()
    db.refresh(event)
    logger.info("Updated event %s fields %s", event_id, sorted(updates))
    return event


def delete_event(db: Session, event_id: str, acting_user_id: str) -> dict[str, str]:
    """Hard-delete an event and its attendee rows; organizer only."""
    event = get_event_or_404(db, event_id)
    check_organizer(event, acting_user_id, "delete the event")

    db.delete(event)
    db.commit()
    logger.info("Deleted event %s by %s", event_id, acting_user_id)
    return {"message": "Event deleted successfully"}


def get_attendees(db: Session, event_id: str, viewer_id: Optional[str] = None) -> list[dict[str, Any]]:
    event = get_visible_event(db, event_id, viewer_id)
    attendees = (
        db.query(EventAttendee)
        .options(joinedload(EventAttendee.user))
        .filter(EventAttendee.event_id == event.id)
        .order_by(EventAttendee.created_at.asc())
        .all()
    )
    return [_attendee_view(a) for a in attendees]


def get_my_events(db: Session, user_id: str) -> dict[str, list[dict[str, Any]]]:
    """Events the user created, and events they are going to or might attend."""
    created = (
        db.query(Event)
        .options(joinedload(Event.creator), joinedload(Event.chapter))
        .filter(Event.creator_id == user_id)
        .order_by(Event.date.asc())
        .all()
    )
    attending_rows = (
        db.query(EventAttendee, Event)
        .join(Event, EventAttendee.event_id == Event.id)
        .options(joinedload(Event.creator), joinedload(Event.chapter))
        .filter(
            EventAttendee.user_id == user_id,
            EventAttendee.status.in_([AttendeeStatus.going, AttendeeStatus.maybe]),
        )
        .order_by(Event.date.asc())
        .all()
    )

    counts = attendee_counts(db, [e.id for e in created] + [e.id for _, e in attending_rows])
    return {
        "created": [event_summary(e, counts.get(e.id, 0)) for e in created],
        "attending": [
            event_summary(e, counts.get(e.id, 0), attendee.status.value)
            for attendee, e in attending_rows
        ],
    }
