from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID

MIN_DAILY_GOAL = 1
MAX_DAILY_GOAL = 1000


class MeResponse(BaseModel):
    id: UUID
    auth_user_id: Optional[str] = None
    email: Optional[str] = None
    daily_reading_goal: int
    created_at: Optional[datetime] = None


class DailyGoalResponse(BaseModel):
    daily_goal: int


class DailyGoalUpdate(BaseModel):
    daily_goal: int = Field(ge=MIN_DAILY_GOAL, le=MAX_DAILY_GOAL, description="Pages per day")
