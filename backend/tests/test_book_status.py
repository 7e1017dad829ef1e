"""Tests for the shelf status lifecycle and DNF redemption."""
from datetime import datetime

import pytest
from sqlalchemy.orm import Session

from readtrack.models import ReadingProgress, ReadingStatus, UserBook
from readtrack.services.book_status import (
    PREVIOUS_ATTEMPT_PREFIX,
    InvalidStatusTransitionError,
    UserBookNotFoundError,
    apply_status,
    can_transition,
    redeem_book,
    update_status,
)

NOW = datetime(2026, 10, 17, 9, 30)


def test_allowed_transitions():
    assert can_transition(ReadingStatus.WANT_TO_READ, ReadingStatus.CURRENTLY_READING)
    assert can_transition(ReadingStatus.WANT_TO_READ, ReadingStatus.FINISHED)
    assert can_transition(ReadingStatus.PAUSED, ReadingStatus.CURRENTLY_READING)
    assert can_transition(ReadingStatus.FINISHED, ReadingStatus.FINISHED)
    assert not can_transition(ReadingStatus.FINISHED, ReadingStatus.CURRENTLY_READING)
    assert not can_transition(ReadingStatus.WANT_TO_READ, ReadingStatus.DNF)


def test_start_reading_sets_date_started():
    user_book = UserBook(status=ReadingStatus.WANT_TO_READ)
    apply_status(user_book, ReadingStatus.CURRENTLY_READING, NOW)
    assert user_book.status == ReadingStatus.CURRENTLY_READING
    assert user_book.date_started == NOW
    assert user_book.date_finished is None


def test_finishing_keeps_start_and_sets_finish():
    started = datetime(2026, 10, 1)
    user_book = UserBook(status=ReadingStatus.CURRENTLY_READING, date_started=started)
    apply_status(user_book, ReadingStatus.FINISHED, NOW)
    assert user_book.date_started == started
    assert user_book.date_finished == NOW


def test_dnf_records_reason():
    user_book = UserBook(status=ReadingStatus.CURRENTLY_READING, notes="loved chapter one")
    apply_status(user_book, ReadingStatus.DNF, NOW, dnf_reason="Too slow")
    assert user_book.notes == "Too slow"


def test_invalid_transition_raises():
    user_book = UserBook(status=ReadingStatus.FINISHED)
    with pytest.raises(InvalidStatusTransitionError) as exc:
        apply_status(user_book, ReadingStatus.PAUSED, NOW)
    assert exc.value.current == ReadingStatus.FINISHED
    assert user_book.status == ReadingStatus.FINISHED


def test_update_status_adds_new_book(db: Session, test_user, make_book):
    book = make_book()
    user_book = update_status(db, test_user.id, book.id, ReadingStatus.CURRENTLY_READING)
    assert user_book.status == ReadingStatus.CURRENTLY_READING
    assert user_book.date_added is not None
    assert user_book.date_started is not None


def _shelve(db: Session, user, book, status, notes=None) -> UserBook:
    user_book = UserBook(
        user_id=user.id,
        book_id=book.id,
        status=status,
        notes=notes,
        date_added=NOW,
        date_started=NOW,
    )
    db.add(user_book)
    db.commit()
    return user_book


def test_redeem_dnf_book(db: Session, test_user, make_book):
    book = make_book()
    _shelve(db, test_user, book, ReadingStatus.DNF, notes="Lost interest")
    db.add(ReadingProgress(user_id=test_user.id, book_id=book.id, pages_read=120))
    db.commit()

    user_book = redeem_book(db, test_user.id, book.id)

    assert user_book.status == ReadingStatus.WANT_TO_READ
    assert user_book.notes == f"{PREVIOUS_ATTEMPT_PREFIX}Lost interest"
    assert user_book.date_started is None
    assert db.query(ReadingProgress).filter(ReadingProgress.book_id == book.id).count() == 0


def test_redeem_does_not_double_prefix(db: Session, test_user, make_book):
    book = make_book()
    _shelve(db, test_user, book, ReadingStatus.PAUSED, notes=f"{PREVIOUS_ATTEMPT_PREFIX}Busy month")
    user_book = redeem_book(db, test_user.id, book.id)
    assert user_book.notes == f"{PREVIOUS_ATTEMPT_PREFIX}Busy month"


def test_redeem_requires_dnf_or_paused(db: Session, test_user, make_book):
    book = make_book()
    _shelve(db, test_user, book, ReadingStatus.CURRENTLY_READING)
    with pytest.raises(InvalidStatusTransitionError):
        redeem_book(db, test_user.id, book.id)


def test_redeem_missing_book(db: Session, test_user, make_book):
    book = make_book()
    with pytest.raises(UserBookNotFoundError):
        redeem_book(db, test_user.id, book.id)
