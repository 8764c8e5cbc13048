"""EventAttendee ORM model: per-user RSVP status and role for an event."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship
from cns_network.clock import utcnow
from cns_network.database import Base


class AttendeeStatus(str, enum.Enum):
    invited = "INVITED"
    going = "GOING"
    maybe = "MAYBE"
    declined = "DECLINED"


class AttendeeRole(str, enum.Enum):
    organizer = "ORGANIZER"
    attendee = "ATTENDEE"


class EventAttendee(Base):
    __tablename__ = "event_attendees"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendees_event_user"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(SAEnum(AttendeeStatus), nullable=False, default=AttendeeStatus.invited)
    role = Column(SAEnum(AttendeeRole), nullable=False, default=AttendeeRole.attendee)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    event = relationship("Event", back_populates="attendees")
    user = relationship("User")
