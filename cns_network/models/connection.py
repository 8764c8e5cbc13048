"""Connection ORM model: one row per unordered pair of users."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship
from cns_network.clock import utcnow
from cns_network.database import Base


class ConnectionStatus(str, enum.Enum):
    pending = "PENDING"
    accepted = "ACCEPTED"
    declined = "DECLINED"
    # Reserved: checked on the request path, no route sets it yet
    blocked = "BLOCKED"


def ordered_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Direction-free key for a pair of user ids."""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


class Connection(Base):
    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_connections_pair"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    requester_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    addressee_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    user_low_id = Column(String(36), nullable=False)
    user_high_id = Column(String(36), nullable=False)
    status = Column(SAEnum(ConnectionStatus), nullable=False, default=ConnectionStatus.pending)
    request_message = Column(Text, nullable=True)
    last_action_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    accepted_at = Column(DateTime(timezone=True), nullable=True)

    requester = relationship("User", foreign_keys=[requester_id])
    addressee = relationship("User", foreign_keys=[addressee_id])
