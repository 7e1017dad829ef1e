from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from uuid import UUID
import logging

from readtrack.database import get_db
from readtrack.models import Book, ReadingStatus, User, UserBook
from readtrack.schemas.user_book import ReviewUpdateRequest, StatusUpdateRequest, UserBookResponse
from readtrack.core.auth import get_current_user
from readtrack.services.book_status import (
    InvalidStatusTransitionError,
    UserBookNotFoundError,
    redeem_book,
    update_status,
)
from readtrack.services.reviews import InvalidRatingError, update_review

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user-books", tags=["user-books"])


def _require_book(db: Session, book_id: UUID) -> Book:
    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )
    return book


@router.get("", response_model=List[UserBookResponse])
async def get_user_books(
    status_filter: Optional[ReadingStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The current user's library, most recently updated first."""
    query = db.query(UserBook).options(joinedload(UserBook.book)).filter(UserBook.user_id == user.id)
    if status_filter:
        query = query.filter(UserBook.status == status_filter)
    return query.order_by(UserBook.updated_at.desc()).all()


@router.put("/{book_id}/status", response_model=UserBookResponse)
async def set_status(
    book_id: UUID,
    payload: StatusUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_book(db, book_id)
    try:
        return update_status(
            db,
            user.id,
            book_id,
            payload.status,
            date_started=payload.date_started,
            date_finished=payload.date_finished,
            dnf_reason=payload.dnf_reason,
        )
    except InvalidStatusTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(
            "Failed to update status: book_id=%s, user_id=%s, error=%s",
            book_id,
            user.id,
            str(e),
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update book status",
        )


@router.put("/{book_id}/review", response_model=UserBookResponse)
async def set_review(
    book_id: UUID,
    payload: ReviewUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save a rating (snapped to quarter stars) and merge review attributes."""
    _require_book(db, book_id)
    try:
        return update_review(db, user.id, book_id, payload.rating, payload.attributes)
    except InvalidRatingError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(
            "Failed to save review: book_id=%s, user_id=%s, error=%s",
            book_id,
            user.id,
            str(e),
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save review",
        )


@router.post("/{book_id}/redeem", response_model=UserBookResponse)
async def redeem(
    book_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Move a DNF or paused book back to want_to_read for another attempt."""
    try:
        return redeem_book(db, user.id, book_id)
    except UserBookNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStatusTransitionError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.error(
            "Failed to redeem book: book_id=%s, user_id=%s, error=%s",
            book_id,
            user.id,
            str(e),
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to redeem book",
        )
