from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import Field
from carelearn.schemas.base import RequestModel, ResponseModel


class MoodType(str, Enum):
    HAPPY = "happy"
    CALM = "calm"
    NEUTRAL = "neutral"
    STRESSED = "stressed"
    SAD = "sad"
    ANGRY = "angry"
    ANXIOUS = "anxious"


class MoodEntryCreate(RequestModel):
    mood_type: MoodType = Field(alias="moodType")
    mood_score: int = Field(alias="moodScore", ge=1, le=10)
    journal_entry: Optional[str] = Field(default=None, alias="journalEntry")
    content_item_id: Optional[UUID] = Field(default=None, alias="contentItemId")


class MoodEntryQuery(RequestModel):
    limit: int = Field(default=10, ge=1, le=100)


class MoodEntryResponse(ResponseModel):
    id: str
    patient_id: str
    content_item_id: Optional[str] = None
    mood_type: MoodType
    mood_score: int
    journal_entry: Optional[str] = None
    entry_timestamp: datetime
    created_at: Optional[datetime] = None
