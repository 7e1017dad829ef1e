from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from uuid import UUID
from readtrack.models import GoalStatus, GoalType, GoalVisibility


class GoalCreate(BaseModel):
    type: GoalType
    target: int = Field(gt=0)
    year: Optional[int] = None  # defaults to the current year
    visibility: GoalVisibility = GoalVisibility.PRIVATE
    period_months: Optional[int] = Field(default=None, gt=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class GoalResponse(BaseModel):
    id: UUID
    type: GoalType
    target: int
    current: int
    year: int
    visibility: GoalVisibility
    status: GoalStatus
    period_months: Optional[int]
    start_date: Optional[date]
    end_date: Optional[date]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GoalUpdate(BaseModel):
    """Partial edit; only the fields sent are changed."""
    target: Optional[int] = Field(default=None, gt=0)
    visibility: Optional[GoalVisibility] = None
    period_months: Optional[int] = Field(default=None, gt=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class GoalTargetIncrease(BaseModel):
    amount: int = Field(default=10, gt=0)
