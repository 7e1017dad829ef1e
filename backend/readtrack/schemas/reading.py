from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from uuid import UUID


class ProgressUpdateRequest(BaseModel):
    book_id: UUID
    current_page: int = Field(ge=0)
    session_date: Optional[date] = None
    duration_minutes: Optional[int] = Field(default=None, ge=0)


class ProgressResponse(BaseModel):
    book_id: UUID
    pages_read: int
    pages_logged: int
    updated_at: datetime


class WeekdayPages(BaseModel):
    day: str
    pages: int


class BookAnalyticsResponse(BaseModel):
    pages_read_today: int
    daily_goal: int
    average_pages_per_day: int
    weekly_data: List[WeekdayPages]
    total_reading_time: str
