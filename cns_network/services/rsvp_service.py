"""RSVP state machine for event attendees.

INVITED  -> GOING | MAYBE | DECLINED
GOING    -> MAYBE | DECLINED
MAYBE    -> GOING | DECLINED
DECLINED -> (terminal)

A first RSVP on a visible event creates the attendee row directly in the
requested status. Later changes are compare-and-swap updates keyed on the
status that was validated, so two racing requests cannot both apply.
"""
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cns_network.errors import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError
from cns_network.models.attendee import AttendeeRole, AttendeeStatus, EventAttendee
from cns_network.models.user import User
from cns_network.services.event_service import get_visible_event

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[AttendeeStatus, frozenset[AttendeeStatus]] = {
    AttendeeStatus.invited: frozenset({AttendeeStatus.going, AttendeeStatus.maybe, AttendeeStatus.declined}),
    AttendeeStatus.going: frozenset({AttendeeStatus.maybe, AttendeeStatus.declined}),
    AttendeeStatus.maybe: frozenset({AttendeeStatus.going, AttendeeStatus.declined}),
    AttendeeStatus.declined: frozenset(),
}

RESPONSE_STATUSES = frozenset({AttendeeStatus.going, AttendeeStatus.maybe, AttendeeStatus.declined})


def allowed_next(current: AttendeeStatus) -> list[str]:
    """Statuses reachable from ``current``, sorted for stable client messages."""
    return sorted(s.value for s in ALLOWED_TRANSITIONS[current])


def parse_response(raw: str) -> AttendeeStatus:
    try:
        status = AttendeeStatus(raw)
    except ValueError:
        status = None
    if status not in RESPONSE_STATUSES:
        raise InvalidArgumentError(
            f"Invalid RSVP status: {raw}",
            allowed=sorted(s.value for s in RESPONSE_STATUSES),
        )
    return status


def check_transition(current: AttendeeStatus, new_status: AttendeeStatus) -> None:
    if new_status not in ALLOWED_TRANSITIONS[current]:
        allowed = allowed_next(current)
        raise InvalidStateError(
            f"Cannot change RSVP from {current.value} to {new_status.value}. "
            f"Allowed transitions: {', '.join(allowed) or 'none'}",
            current_status=current.value,
            allowed=allowed,
        )


def _transition(db: Session, attendee: EventAttendee, new_status: AttendeeStatus) -> EventAttendee:
    current = attendee.status
    try:
        check_transition(current, new_status)
    except InvalidStateError:
        logger.warning(
            "Rejected RSVP %s -> %s for user %s on event %s",
            current.value, new_status.value, attendee.user_id, attendee.event_id,
        )
        raise

    result = db.execute(
        update(EventAttendee)
        .where(
            EventAttendee.event_id == attendee.event_id,
            EventAttendee.user_id == attendee.user_id,
            EventAttendee.status == current,
        )
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        logger.warning("RSVP for user %s on event %s changed concurrently", attendee.user_id, attendee.event_id)
        raise ConflictError("RSVP was changed by another request; re-fetch and retry")

    db.commit()
    db.refresh(attendee)
    return attendee


def _find_attendee(db: Session, event_id: str, user_id: str):
    return (
        db.query(EventAttendee)
        .filter(EventAttendee.event_id == event_id, EventAttendee.user_id == user_id)
        .first()
    )


def rsvp(db: Session, event_id: str, user_id: str, new_status: str) -> EventAttendee:
    """Record ``user_id``'s response to an event."""
    status = parse_response(new_status)
    if not db.query(User).filter(User.id == user_id).first():
        raise NotFoundError("User not found", user_id=user_id)
    event = get_visible_event(db, event_id, user_id)

    attendee = _find_attendee(db, event.id, user_id)
    if attendee:
        attendee = _transition(db, attendee, status)
        logger.info("User %s RSVP'd %s to event %s", user_id, status.value, event_id)
        return attendee

    attendee = EventAttendee(
        event_id=event.id,
        user_id=user_id,
        status=status,
        role=AttendeeRole.attendee,
    )
    db.add(attendee)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent first RSVP created the row; validate against it instead
        db.rollback()
        existing = _find_attendee(db, event.id, user_id)
        if existing is None:
            raise
        attendee = _transition(db, existing, status)
    else:
        db.refresh(attendee)

    logger.info("User %s RSVP'd %s to event %s", user_id, status.value, event_id)
    return attendee
