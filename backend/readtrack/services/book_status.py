"""
Shelf status lifecycle for UserBook rows.

want_to_read -> currently_reading -> {finished, paused, dnf}, with paused books
resumable and dnf/paused books redeemable back onto want_to_read.
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from readtrack.models import ReadingProgress, ReadingStatus, UserBook

logger = logging.getLogger(__name__)

PREVIOUS_ATTEMPT_PREFIX = "Previous Attempt: "

ALLOWED_TRANSITIONS = {
    ReadingStatus.WANT_TO_READ: {ReadingStatus.CURRENTLY_READING, ReadingStatus.FINISHED},
    ReadingStatus.CURRENTLY_READING: {ReadingStatus.FINISHED, ReadingStatus.PAUSED, ReadingStatus.DNF},
    ReadingStatus.PAUSED: {ReadingStatus.CURRENTLY_READING, ReadingStatus.WANT_TO_READ},
    ReadingStatus.DNF: {ReadingStatus.WANT_TO_READ},
    ReadingStatus.FINISHED: set(),
}

REDEEMABLE = {ReadingStatus.DNF, ReadingStatus.PAUSED}


class InvalidStatusTransitionError(ValueError):
    """Raised when a status change is not part of the shelf lifecycle."""

    def __init__(self, current: ReadingStatus, target: ReadingStatus):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move a book from {current.value} to {target.value}")


class UserBookNotFoundError(LookupError):
    pass


def can_transition(current: ReadingStatus, target: ReadingStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS.get(current, set())


def apply_status(
    user_book: UserBook,
    target: ReadingStatus,
    now: datetime,
    date_started: Optional[datetime] = None,
    date_finished: Optional[datetime] = None,
    dnf_reason: Optional[str] = None,
) -> UserBook:
    """
    Move ``user_book`` to ``target`` and keep its dates consistent with the
    new status. Does not touch the database session.
    """
    current = ReadingStatus(user_book.status)
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current, target)

    user_book.status = target

    if target == ReadingStatus.CURRENTLY_READING:
        user_book.date_started = date_started or user_book.date_started or now
        user_book.date_finished = None
    elif target == ReadingStatus.FINISHED:
        if date_started is not None:
            user_book.date_started = date_started
        user_book.date_finished = date_finished or now
    elif target in (ReadingStatus.PAUSED, ReadingStatus.DNF):
        user_book.date_finished = None
        if target == ReadingStatus.DNF and dnf_reason is not None:
            user_book.notes = dnf_reason
    elif target == ReadingStatus.WANT_TO_READ:
        user_book.date_started = None
        user_book.date_finished = None

    user_book.updated_at = now
    return user_book


def _get_user_book(db: Session, user_id: UUID, book_id: UUID) -> UserBook:
    user_book = db.query(UserBook).filter(
        UserBook.user_id == user_id,
        UserBook.book_id == book_id,
    ).one_or_none()
    if user_book is None:
        raise UserBookNotFoundError(f"Book {book_id} is not in the library")
    return user_book


def update_status(
    db: Session,
    user_id: UUID,
    book_id: UUID,
    target: ReadingStatus,
    date_started: Optional[datetime] = None,
    date_finished: Optional[datetime] = None,
    dnf_reason: Optional[str] = None,
) -> UserBook:
    """Update an existing library entry, or add the book when it is new."""
    now = datetime.utcnow()
    user_book = db.query(UserBook).filter(
        UserBook.user_id == user_id,
        UserBook.book_id == book_id,
    ).one_or_none()

    if user_book is None:
        user_book = UserBook(
            user_id=user_id,
            book_id=book_id,
            status=ReadingStatus.WANT_TO_READ,
            date_added=now,
        )
        db.add(user_book)

    previous = user_book.status
    apply_status(
        user_book,
        target,
        now,
        date_started=date_started,
        date_finished=date_finished,
        dnf_reason=dnf_reason,
    )
    db.commit()
    db.refresh(user_book)
    logger.info(
        "Book status changed: user_id=%s book_id=%s %s -> %s",
        user_id,
        book_id,
        getattr(previous, "value", previous),
        target.value,
    )
    return user_book


def redeem_book(db: Session, user_id: UUID, book_id: UUID) -> UserBook:
    """
    Give a DNF or paused book another shot: back to want_to_read, notes kept
    as a "Previous Attempt", reading progress cleared.
    """
    user_book = _get_user_book(db, user_id, book_id)
    current = ReadingStatus(user_book.status)
    if current not in REDEEMABLE:
        raise InvalidStatusTransitionError(current, ReadingStatus.WANT_TO_READ)

    notes = user_book.notes
    apply_status(user_book, ReadingStatus.WANT_TO_READ, datetime.utcnow())
    if notes and notes.strip():
        user_book.notes = notes if notes.startswith(PREVIOUS_ATTEMPT_PREFIX) else f"{PREVIOUS_ATTEMPT_PREFIX}{notes}"

    deleted = db.query(ReadingProgress).filter(
        ReadingProgress.user_id == user_id,
        ReadingProgress.book_id == book_id,
    ).delete(synchronize_session=False)

    db.commit()
    db.refresh(user_book)
    logger.info(
        "Book redeemed: user_id=%s book_id=%s from=%s progress_rows_cleared=%s",
        user_id,
        book_id,
        current.value,
        deleted,
    )
    return user_book
