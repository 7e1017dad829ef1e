"""
Ratings and review attributes for a user's book.
"""
import logging
import math
from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.orm import Session

from readtrack.models import ReadingStatus, UserBook

logger = logging.getLogger(__name__)

MIN_RATING = 0.0
MAX_RATING = 5.0
RATING_STEP = 0.25


class InvalidRatingError(ValueError):
    """Raised when a rating is not a number in [0, 5]."""
    pass


def round_to_quarter(value: float) -> float:
    """Nearest 0.25, halves rounded up (4.625 -> 4.75)."""
    return math.floor(value / RATING_STEP + 0.5) * RATING_STEP


def normalize_rating(value: Any) -> float:
    """
    Validate a rating and snap it to the quarter-star grid.

    4.62 -> 4.5, 3.9 -> 4.0; anything outside [0, 5] is rejected rather than clamped.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise InvalidRatingError("Rating must be a number")
    if value < MIN_RATING or value > MAX_RATING:
        raise InvalidRatingError("Rating must be between 0 and 5")
    return round_to_quarter(float(value))


def update_review(
    db: Session,
    user_id: UUID,
    book_id: UUID,
    rating: Any,
    attributes: Dict[str, Any],
) -> UserBook:
    """
    Store a normalized rating and merge ``attributes`` into the existing
    review attributes. Books not yet in the library land on want_to_read.
    """
    validated = normalize_rating(rating)
    if not isinstance(attributes, dict):
        raise InvalidRatingError("Attributes must be an object")

    user_book = db.query(UserBook).filter(
        UserBook.user_id == user_id,
        UserBook.book_id == book_id,
    ).one_or_none()

    if user_book is None:
        user_book = UserBook(
            user_id=user_id,
            book_id=book_id,
            status=ReadingStatus.WANT_TO_READ,
            date_added=datetime.utcnow(),
        )
        db.add(user_book)

    # Reassign rather than mutate so the JSON column is flagged dirty
    user_book.review_attributes = {**(user_book.review_attributes or {}), **attributes}
    user_book.rating = validated
    user_book.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(user_book)
    logger.info("Review saved: user_id=%s book_id=%s rating=%s", user_id, book_id, validated)
    return user_book
