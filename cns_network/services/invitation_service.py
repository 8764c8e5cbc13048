"""Invitation service: organizer-only invitee management, stats and export,
plus the invitee's view of pending invitations.
"""
import csv
import io
import logging
import re
from datetime import timedelta
from typing import Any

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from cns_network.errors import ConflictError, InvalidArgumentError, InvalidStateError, NotFoundError
from cns_network.models.attendee import AttendeeRole, AttendeeStatus, EventAttendee
from cns_network.models.event import Event
from cns_network.services.event_service import check_organizer, get_event_or_404, missing_users, unique_ids
from cns_network.services.projections import event_summary, user_summary
from cns_network.services.visibility import attendee_counts

logger = logging.getLogger(__name__)

EXPORT_HEADER = ["Name", "Email", "Company", "Position", "Location", "Status", "Role"]

# Export order: awaiting reply first, then by response
_STATUS_ORDER = case(
    (EventAttendee.status == AttendeeStatus.invited, 0),
    (EventAttendee.status == AttendeeStatus.going, 1),
    (EventAttendee.status == AttendeeStatus.maybe, 2),
    else_=3,
)


def add_invitees(db: Session, event_id: str, organizer_id: str, user_ids: list[str]) -> dict[str, Any]:
    """Invite more users to a private event; users already on the list are skipped."""
    if not user_ids:
        raise InvalidArgumentError("invited_user_ids must be a non-empty list")

    event = get_event_or_404(db, event_id)
    check_organizer(event, organizer_id, "add invitees")
    if event.is_public:
        raise InvalidStateError("Cannot add invitees to public events")

    requested = unique_ids(user_ids)
    missing = missing_users(db, requested)
    if missing:
        raise NotFoundError("Invited user not found", user_ids=missing)

    existing = {
        uid
        for (uid,) in db.query(EventAttendee.user_id).filter(EventAttendee.event_id == event_id).all()
    }
    new_invitees = [uid for uid in requested if uid not in existing]
    if not new_invitees:
        logger.info("No new invitees for event %s; all %d already invited", event_id, len(requested))
        return {"invited": 0, "message": "All selected users are already invited"}

    db.add_all(
        EventAttendee(
            event_id=event_id,
            user_id=uid,
            status=AttendeeStatus.invited,
            role=AttendeeRole.attendee,
        )
        for uid in new_invitees
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent invitee update on event %s", event_id)
        raise ConflictError("Invitee list changed by another request; re-fetch and retry")
    logger.info("Invited %d users to event %s", len(new_invitees), event_id)
    return {"invited": len(new_invitees)}


def _response_rate(total: int, invited: int) -> int:
    if total == 0:
        return 0
    # Half-up rounding
    return int((100 * (total - invited) + total // 2) // total)


def get_invitation_stats(db: Session, event_id: str, requesting_user_id: str) -> dict[str, Any]:
    """Per-status counts and members of an event's attendee list; organizer only."""
    event = get_event_or_404(db, event_id)
    check_organizer(event, requesting_user_id, "view invitation stats")

    attendees = (
        db.query(EventAttendee)
        .options(joinedload(EventAttendee.user))
        .filter(EventAttendee.event_id == event_id)
        .order_by(EventAttendee.created_at.asc())
        .all()
    )

    buckets: dict[AttendeeStatus, list[dict[str, Any]]] = {status: [] for status in AttendeeStatus}
    for attendee in attendees:
        # No update timestamp on attendee rows; creation time stands in for the reply time
        buckets[attendee.status].append(
            {
                **user_summary(attendee.user),
                "responded_at": attendee.created_at,
                "role": attendee.role.value,
            }
        )

    total = len(attendees)
    invited = len(buckets[AttendeeStatus.invited])
    return {
        "total": total,
        "invited": invited,
        "going": len(buckets[AttendeeStatus.going]),
        "maybe": len(buckets[AttendeeStatus.maybe]),
        "declined": len(buckets[AttendeeStatus.declined]),
        "response_rate": _response_rate(total, invited),
        "by_status": {status.name: users for status, users in buckets.items()},
    }


def export_filename(title: str) -> str:
    return f"{re.sub(r'[^A-Za-z0-9]+', '_', title)}_attendees.csv"


def export_attendees(db: Session, event_id: str, requesting_user_id: str) -> dict[str, str]:
    """Attendee roster as CSV text plus a suggested download filename; organizer only."""
    event = get_event_or_404(db, event_id)
    check_organizer(event, requesting_user_id, "export attendees")

    attendees = (
        db.query(EventAttendee)
        .options(joinedload(EventAttendee.user))
        .filter(EventAttendee.event_id == event_id)
        .order_by(_STATUS_ORDER, EventAttendee.created_at.asc())
        .all()
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for attendee in attendees:
        user = attendee.user
        writer.writerow([
            user.full_name,
            user.email,
            user.company or "",
            user.position or "",
            user.city or "",
            attendee.status.value,
            attendee.role.value,
        ])

    logger.info("Exported %d attendees of event %s", len(attendees), event_id)
    return {"content": buffer.getvalue(), "suggested_filename": export_filename(event.title)}


def get_invited_events(db: Session, user_id: str, limit: int = 10, offset: int = 0) -> dict[str, Any]:
    """Events awaiting the user's reply, newest invitation first."""
    base = db.query(EventAttendee).filter(
        EventAttendee.user_id == user_id,
        EventAttendee.status == AttendeeStatus.invited,
    )
    total = base.with_entities(func.count(EventAttendee.id)).scalar() or 0

    invitations = (
        base.options(
            joinedload(EventAttendee.event).joinedload(Event.creator),
            joinedload(EventAttendee.event).joinedload(Event.chapter),
        )
        .order_by(EventAttendee.created_at.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )

    counts = attendee_counts(db, [inv.event_id for inv in invitations])
    items = []
    for inv in invitations:
        item = event_summary(inv.event, counts.get(inv.event_id, 0), inv.status.value)
        item["invited_at"] = inv.created_at
        item["suggested_respond_by"] = inv.event.date - timedelta(hours=24)
        items.append(item)

    return {
        "invitations": items,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + limit < total,
        },
    }


def get_invitation_count(db: Session, user_id: str) -> dict[str, int]:
    count = (
        db.query(func.count(EventAttendee.id))
        .filter(EventAttendee.user_id == user_id, EventAttendee.status == AttendeeStatus.invited)
        .scalar()
    )
    return {"count": count or 0}
