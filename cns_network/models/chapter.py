"""Chapter ORM model: local chapter an event or member belongs to."""
import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from cns_network.database import Base


class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    city = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
