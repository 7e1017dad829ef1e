import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from readtrack.core.auth import get_current_user
from readtrack.core.config import settings
from readtrack.database import get_db
from readtrack.models import User
from readtrack.schemas.user import DailyGoalResponse, DailyGoalUpdate, MeResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/me", tags=["me"])


def _daily_goal(user: User) -> int:
    return user.daily_reading_goal or settings.DEFAULT_DAILY_GOAL


@router.get("", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return MeResponse(
        id=user.id,
        auth_user_id=user.auth_user_id,
        email=user.email,
        daily_reading_goal=_daily_goal(user),
        created_at=user.created_at,
    )


@router.get("/daily-goal", response_model=DailyGoalResponse)
def get_daily_goal(user: User = Depends(get_current_user)):
    """Pages-per-day target; the default applies until the reader sets one."""
    return DailyGoalResponse(daily_goal=_daily_goal(user))


@router.put("/daily-goal", response_model=DailyGoalResponse)
def update_daily_goal(
    payload: DailyGoalUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        user.daily_reading_goal = payload.daily_goal
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.error("Failed to update daily goal: user_id=%s, error=%s", user.id, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update daily goal",
        )

    logger.info("Daily goal updated: user_id=%s, daily_goal=%s", user.id, payload.daily_goal)
    return DailyGoalResponse(daily_goal=user.daily_reading_goal)
