"""Pydantic schemas for Chapters."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ChapterCreate(BaseModel):
    name: str
    city: Optional[str] = None


class ChapterOut(BaseModel):
    id: str
    name: str
    city: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ChapterSummary(BaseModel):
    id: str
    name: str
    city: Optional[str] = None

    model_config = {"from_attributes": True}
