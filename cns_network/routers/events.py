"""Event API routes: delegates to the event, RSVP and invitation services."""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from cns_network.clock import Clock, get_clock
from cns_network.config import settings
from cns_network.database import get_db
from cns_network.deps import get_current_user_id, get_optional_user_id
from cns_network.schemas.connection import MessageOut
from cns_network.schemas.event import (
    AddInviteesResult,
    AttendeeOut,
    EventCreate,
    EventDetail,
    EventFilters,
    EventListItem,
    EventOut,
    EventUpdate,
    InvitationCountOut,
    InvitationStatsOut,
    InvitedEventsOut,
    InviteesPayload,
    MyEventsOut,
    RSVPPayload,
)
from cns_network.services import event_service, invitation_service, rsvp_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Create an event; the caller becomes its organizer."""
    return event_service.create_event(db, payload, user_id, clock)


@router.get("/", response_model=list[EventListItem])
def list_events(
    type: Optional[str] = Query(None),
    chapter_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """List events visible to the caller, with optional filters."""
    filters = EventFilters(
        type=type,
        chapter_id=chapter_id,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )
    return event_service.get_events(db, filters, viewer_id)


@router.get("/upcoming", response_model=list[EventListItem])
def upcoming_events(
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    return event_service.get_upcoming_events(db, viewer_id, clock)


@router.get("/my-events", response_model=MyEventsOut)
def my_events(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Events the caller created or is attending."""
    return event_service.get_my_events(db, user_id)


@router.get("/invitations", response_model=InvitedEventsOut)
def invited_events(
    limit: int = Query(settings.INVITATION_PAGE_SIZE, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Events waiting for the caller's reply (paginated)."""
    return invitation_service.get_invited_events(db, user_id, limit, offset)


@router.get("/invitations/count", response_model=InvitationCountOut)
def invitation_count(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return invitation_service.get_invitation_count(db, user_id)


@router.get("/chapter/{chapter_id}", response_model=list[EventListItem])
def chapter_events(
    chapter_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return event_service.get_events_by_chapter(db, chapter_id, viewer_id)


@router.get("/{event_id}/invitation-stats", response_model=InvitationStatsOut)
def invitation_stats(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Response statistics for an event (organizer only)."""
    return invitation_service.get_invitation_stats(db, event_id, user_id)


@router.get("/{event_id}/attendees/export")
def export_attendees(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Download the attendee roster as CSV (organizer only)."""
    export = invitation_service.export_attendees(db, event_id, user_id)
    return Response(
        content=export["content"],
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export["suggested_filename"]}"'},
    )


@router.get("/{event_id}/attendees", response_model=list[AttendeeOut])
def list_attendees(
    event_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return event_service.get_attendees(db, event_id, viewer_id)


@router.get("/{event_id}", response_model=EventDetail)
def get_event(
    event_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Fetch a single event with attendees and the caller's RSVP."""
    return event_service.get_event_by_id(db, event_id, viewer_id)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdate,
    user_id: str = Depends(get_current_user_id),
    clock: Clock = Depends(get_clock),
    db: Session = Depends(get_db),
):
    """Update an event (organizer only)."""
    return event_service.update_event(db, event_id, payload, user_id, clock)


@router.delete("/{event_id}", response_model=MessageOut)
def delete_event(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return event_service.delete_event(db, event_id, user_id)


@router.post("/{event_id}/rsvp", response_model=AttendeeOut)
def rsvp(
    event_id: str,
    payload: RSVPPayload,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Set or change the caller's RSVP."""
    return rsvp_service.rsvp(db, event_id, user_id, payload.status)


@router.post("/{event_id}/invite", response_model=AddInviteesResult)
def add_invitees(
    event_id: str,
    payload: InviteesPayload,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Invite more users to a private event (organizer only)."""
    return invitation_service.add_invitees(db, event_id, user_id, payload.invited_user_ids)
