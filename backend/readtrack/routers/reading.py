"""
Reading progress logging and the per-book analytics card.
"""
from datetime import date
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from readtrack.core.auth import get_current_user
from readtrack.core.config import settings
from readtrack.database import get_db
from readtrack.models import Book, ReadingProgress, ReadingSession, User
from readtrack.schemas.reading import BookAnalyticsResponse, ProgressResponse, ProgressUpdateRequest
from readtrack.services import presenters
from readtrack.services.progress import reading_analytics, record_progress

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reading", tags=["reading"])


@router.post("/progress", response_model=ProgressResponse)
async def log_progress(
    payload: ProgressUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    book = db.query(Book).filter(Book.id == payload.book_id).first()
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")

    current_page = payload.current_page
    if book.page_count:
        current_page = min(current_page, book.page_count)

    try:
        update = record_progress(
            db,
            user.id,
            payload.book_id,
            current_page,
            session_date=payload.session_date,
            duration_minutes=payload.duration_minutes,
        )
    except Exception as e:
        db.rollback()
        logger.error(
            "Failed to record progress: book_id=%s, user_id=%s, error=%s",
            payload.book_id,
            user.id,
            str(e),
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record progress",
        )

    return ProgressResponse(
        book_id=payload.book_id,
        pages_read=update.progress.pages_read,
        pages_logged=update.pages_logged,
        updated_at=update.progress.updated_at,
    )


@router.get("/{book_id}/analytics", response_model=BookAnalyticsResponse)
async def get_book_analytics(
    book_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    progress = db.query(ReadingProgress).filter(
        ReadingProgress.user_id == user.id,
        ReadingProgress.book_id == book_id,
    ).one_or_none()
    sessions = db.query(ReadingSession).filter(
        ReadingSession.user_id == user.id,
        ReadingSession.book_id == book_id,
    ).all()

    daily_goal = user.daily_reading_goal or settings.DEFAULT_DAILY_GOAL
    analytics = reading_analytics(sessions, progress, date.today(), daily_goal)
    return presenters.present_book_analytics(analytics)
