"""Pydantic schemas for Events, attendees and invitations."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from cns_network.schemas.chapter import ChapterSummary
from cns_network.schemas.user import UserSummary


class EventCreate(BaseModel):
    title: str
    description: str = ""
    type: str
    location: Optional[str] = None
    is_virtual: bool = False
    virtual_link: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None
    is_recurring: bool = False
    recurrence_type: Optional[str] = None
    chapter_id: Optional[str] = None
    is_public: bool = True
    entry_fee: Optional[Decimal] = None
    invited_user_ids: list[str] = []


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None
    is_virtual: Optional[bool] = None
    virtual_link: Optional[str] = None
    date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class EventFilters(BaseModel):
    type: Optional[str] = None
    chapter_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None


class EventOut(BaseModel):
    id: str
    title: str
    description: str
    type: str
    location: Optional[str] = None
    is_virtual: bool
    virtual_link: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None
    is_recurring: bool
    recurrence_type: Optional[str] = None
    chapter_id: Optional[str] = None
    creator_id: str
    is_public: bool
    entry_fee: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EventListItem(EventOut):
    creator: UserSummary
    chapter: Optional[ChapterSummary] = None
    attendee_count: int = 0
    user_rsvp_status: Optional[str] = None


class AttendeeOut(BaseModel):
    id: str
    event_id: str
    user_id: str
    status: str
    role: str
    created_at: datetime
    user: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class EventDetail(EventListItem):
    attendees: list[AttendeeOut] = []
    is_organizer: bool = False


class MyEventsOut(BaseModel):
    created: list[EventListItem]
    attending: list[EventListItem]


class RSVPPayload(BaseModel):
    status: str  # GOING, MAYBE, DECLINED


class InviteesPayload(BaseModel):
    invited_user_ids: list[str]


class AddInviteesResult(BaseModel):
    invited: int
    message: Optional[str] = None


class InvitedUser(UserSummary):
    responded_at: datetime
    role: str


class InvitationBuckets(BaseModel):
    invited: list[InvitedUser] = []
    going: list[InvitedUser] = []
    maybe: list[InvitedUser] = []
    declined: list[InvitedUser] = []


class InvitationStatsOut(BaseModel):
    total: int
    invited: int
    going: int
    maybe: int
    declined: int
    response_rate: int
    by_status: InvitationBuckets


class InvitedEvent(EventListItem):
    invited_at: datetime
    suggested_respond_by: datetime


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class InvitedEventsOut(BaseModel):
    invitations: list[InvitedEvent]
    pagination: Pagination


class InvitationCountOut(BaseModel):
    count: int
