"""Event visibility resolver.

A viewer sees an event when it is public, when they created it, or when they
hold an attendee row for it. Anonymous viewers see public events only. The
rule is expressed as a SQL predicate so every list is filtered by the
database, never in memory.
"""
import logging
from typing import Any, Optional

from sqlalchemy import exists, func, or_
from sqlalchemy.orm import Query, Session, joinedload

from cns_network.clock import as_utc
from cns_network.database import contains_pattern
from cns_network.models.attendee import EventAttendee
from cns_network.models.chapter import Chapter
from cns_network.models.event import Event
from cns_network.models.user import User
from cns_network.schemas.event import EventFilters
from cns_network.services.projections import event_summary

logger = logging.getLogger(__name__)


def visibility_clause(viewer_id: Optional[str]):
    """Predicate selecting the events ``viewer_id`` may see."""
    if not viewer_id:
        return Event.is_public.is_(True)

    is_member = exists().where(
        EventAttendee.event_id == Event.id,
        EventAttendee.user_id == viewer_id,
    )
    return or_(Event.is_public.is_(True), Event.creator_id == viewer_id, is_member)


def _search_clause(term: str):
    pattern = contains_pattern(term)

    def matches(column):
        return column.ilike(pattern, escape="\\")

    return or_(
        matches(Event.title),
        matches(Event.description),
        matches(Event.location),
        Event.creator.has(or_(matches(User.first_name), matches(User.last_name))),
        Event.chapter.has(or_(matches(Chapter.name), matches(Chapter.city))),
    )


def visible_events_query(
    db: Session,
    filters: Optional[EventFilters] = None,
    viewer_id: Optional[str] = None,
) -> Query:
    """Events visible to the viewer, narrowed by the optional filters."""
    query = (
        db.query(Event)
        .options(joinedload(Event.creator), joinedload(Event.chapter))
        .filter(visibility_clause(viewer_id))
    )
    if filters is None:
        return query

    if filters.type:
        query = query.filter(Event.type == filters.type)
    if filters.chapter_id:
        query = query.filter(Event.chapter_id == filters.chapter_id)
    if filters.start_date:
        query = query.filter(Event.date >= as_utc(filters.start_date))
    if filters.end_date:
        query = query.filter(Event.date <= as_utc(filters.end_date))
    if filters.search:
        query = query.filter(_search_clause(filters.search))
    return query


def attendee_counts(db: Session, event_ids: list[str]) -> dict[str, int]:
    if not event_ids:
        return {}
    rows = (
        db.query(EventAttendee.event_id, func.count(EventAttendee.id))
        .filter(EventAttendee.event_id.in_(event_ids))
        .group_by(EventAttendee.event_id)
        .all()
    )
    return {event_id: count for event_id, count in rows}


def viewer_statuses(db: Session, event_ids: list[str], viewer_id: Optional[str]) -> dict[str, str]:
    """RSVP status of the viewer for each listed event they have a row for."""
    if not viewer_id or not event_ids:
        return {}
    rows = (
        db.query(EventAttendee.event_id, EventAttendee.status)
        .filter(EventAttendee.event_id.in_(event_ids), EventAttendee.user_id == viewer_id)
        .all()
    )
    return {event_id: status.value for event_id, status in rows}


def list_visible_events(
    db: Session,
    filters: Optional[EventFilters] = None,
    viewer_id: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Visible events ordered by date, with attendee counts and the viewer's RSVP."""
    events = visible_events_query(db, filters, viewer_id).order_by(Event.date.asc()).all()
    ids = [event.id for event in events]
    counts = attendee_counts(db, ids)
    statuses = viewer_statuses(db, ids, viewer_id)
    logger.debug("Resolved %d visible events for viewer %s", len(events), viewer_id or "anonymous")
    return [
        event_summary(event, counts.get(event.id, 0), statuses.get(event.id))
        for event in events
    ]
