"""Pydantic schemas for Connections."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from cns_network.schemas.user import UserSummary


class ConnectionRequestCreate(BaseModel):
    addressee_id: str
    message: Optional[str] = None


class ConnectionOut(BaseModel):
    id: str
    requester_id: str
    addressee_id: str
    status: str
    request_message: Optional[str] = None
    last_action_by: str
    created_at: datetime
    accepted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ConnectionItem(BaseModel):
    id: str
    user: UserSummary
    connected_since: datetime
    status: str


class ConnectionListOut(BaseModel):
    connections: list[ConnectionItem]
    count: int


class PendingRequestOut(BaseModel):
    id: str
    requester: UserSummary
    message: Optional[str] = None
    created_at: datetime


class SentRequestOut(BaseModel):
    id: str
    addressee: UserSummary
    status: str
    created_at: datetime


class ConnectionStatsOut(BaseModel):
    total: int
    pending_received: int
    pending_sent: int


class ConnectionStatusOut(BaseModel):
    status: str
    connection_id: Optional[str] = None
    is_pending: bool = False
    is_sent_by_me: bool = False


class MessageOut(BaseModel):
    message: str
