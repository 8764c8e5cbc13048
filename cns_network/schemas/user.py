"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr


class UserCreate(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str
    company: Optional[str] = None
    position: Optional[str] = None
    city: Optional[str] = None
    profile_photo: Optional[str] = None
    chapter_id: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    company: Optional[str] = None
    position: Optional[str] = None
    city: Optional[str] = None
    profile_photo: Optional[str] = None
    chapter_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Public projection of a user shown next to connections and events."""

    id: str
    first_name: str
    last_name: str
    profile_photo: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None
    city: Optional[str] = None

    model_config = {"from_attributes": True}
