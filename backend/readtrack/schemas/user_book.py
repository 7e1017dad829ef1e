from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from uuid import UUID
from readtrack.models import ReadingFormat, ReadingStatus
from readtrack.schemas.book import BookResponse


class StatusUpdateRequest(BaseModel):
    status: ReadingStatus
    date_started: Optional[datetime] = None
    date_finished: Optional[datetime] = None
    dnf_reason: Optional[str] = None


class ReviewUpdateRequest(BaseModel):
    rating: float
    attributes: Dict[str, Any] = {}  # moods, pacing, difficulty, structural flags


class UserBookResponse(BaseModel):
    id: UUID
    user_id: UUID
    book_id: UUID
    status: ReadingStatus
    rating: Optional[float]
    review_attributes: Optional[Dict[str, Any]]
    reading_format: Optional[ReadingFormat]
    notes: Optional[str]
    date_added: datetime
    date_started: Optional[datetime]
    date_finished: Optional[datetime]
    updated_at: Optional[datetime] = None
    book: Optional[BookResponse] = None

    class Config:
        from_attributes = True
