"""Dict projections shared by the read paths."""
from typing import Any, Optional

from cns_network.models.chapter import Chapter
from cns_network.models.event import Event
from cns_network.models.user import User

_EVENT_FIELDS = (
    "id", "title", "description", "type", "location", "is_virtual", "virtual_link",
    "date", "end_date", "is_recurring", "recurrence_type", "chapter_id", "creator_id",
    "is_public", "entry_fee", "created_at",
)


def user_summary(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "profile_photo": user.profile_photo,
        "company": user.company,
        "position": user.position,
        "city": user.city,
    }


def chapter_summary(chapter: Optional[Chapter]) -> Optional[dict[str, Any]]:
    if chapter is None:
        return None
    return {"id": chapter.id, "name": chapter.name, "city": chapter.city}


def event_summary(
    event: Event,
    attendee_count: int = 0,
    user_rsvp_status: Optional[str] = None,
) -> dict[str, Any]:
    data = {field: getattr(event, field) for field in _EVENT_FIELDS}
    data.update(
        creator=user_summary(event.creator),
        chapter=chapter_summary(event.chapter),
        attendee_count=attendee_count,
        user_rsvp_status=user_rsvp_status,
    )
    return data
