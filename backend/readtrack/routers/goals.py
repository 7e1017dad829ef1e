from datetime import date
from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from readtrack.core.auth import get_current_user
from readtrack.database import get_db
from readtrack.models import ReadingGoal, User
from readtrack.schemas.goal import GoalCreate, GoalResponse, GoalTargetIncrease, GoalUpdate
from readtrack.services.goals import (
    GoalConflictError,
    GoalNotFoundError,
    InvalidGoalUpdateError,
    create_goal,
    increase_goal_target,
    refresh_goal_progress,
    update_goal,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("", response_model=List[GoalResponse])
async def list_goals(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    goals = (
        db.query(ReadingGoal)
        .filter(ReadingGoal.user_id == user.id)
        .order_by(ReadingGoal.year.desc(), ReadingGoal.created_at.desc())
        .all()
    )
    return refresh_goal_progress(db, goals, date.today())


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def add_goal(
    payload: GoalCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload.start_date and payload.end_date and payload.end_date < payload.start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date",
        )

    try:
        goal = create_goal(
            db,
            user.id,
            payload.type,
            payload.target,
            payload.year or date.today().year,
            visibility=payload.visibility,
            period_months=payload.period_months,
            start_date=payload.start_date,
            end_date=payload.end_date,
        )
    except GoalConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    refresh_goal_progress(db, [goal], date.today())
    return goal


@router.patch("/{goal_id}", response_model=GoalResponse)
async def edit_goal(
    goal_id: UUID,
    payload: GoalUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        goal = update_goal(db, user.id, goal_id, payload.model_dump(exclude_unset=True))
    except GoalNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    except InvalidGoalUpdateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error("Failed to update goal: goal_id=%s, error=%s", goal_id, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update goal",
        )

    refresh_goal_progress(db, [goal], date.today())
    return goal


@router.post("/{goal_id}/increase-target", response_model=GoalResponse)
async def raise_goal_target(
    goal_id: UUID,
    payload: GoalTargetIncrease = GoalTargetIncrease(),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        goal = increase_goal_target(db, user.id, goal_id, payload.amount)
    except GoalNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    except GoalConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    refresh_goal_progress(db, [goal], date.today())
    return goal
