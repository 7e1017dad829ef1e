"""Tests for progress logging and the per-book analytics card."""
from datetime import date, datetime, timedelta
from types import SimpleNamespace

from sqlalchemy.orm import Session

from readtrack.models import ReadingSession
from readtrack.services.progress import (
    WEEKDAY_LABELS,
    format_reading_time,
    reading_analytics,
    record_progress,
    weekly_chart,
)

TODAY = date(2026, 10, 17)  # a Saturday


def test_first_update_logs_all_pages(db: Session, test_user, make_book):
    book = make_book()
    update = record_progress(db, test_user.id, book.id, 40, session_date=TODAY, duration_minutes=45)

    assert update.progress.pages_read == 40
    assert update.pages_logged == 40
    assert update.session.pages_read == 40
    assert update.session.duration_minutes == 45


def test_only_the_delta_is_logged(db: Session, test_user, make_book):
    book = make_book()
    record_progress(db, test_user.id, book.id, 40, session_date=TODAY)
    update = record_progress(db, test_user.id, book.id, 65, session_date=TODAY)

    assert update.pages_logged == 25
    pages = [s.pages_read for s in db.query(ReadingSession).order_by(ReadingSession.pages_read).all()]
    assert pages == [25, 40]


def test_moving_backwards_logs_nothing(db: Session, test_user, make_book):
    book = make_book()
    record_progress(db, test_user.id, book.id, 80, session_date=TODAY)
    update = record_progress(db, test_user.id, book.id, 60, session_date=TODAY)

    assert update.progress.pages_read == 60
    assert update.session is None
    assert update.pages_logged == 0
    assert db.query(ReadingSession).count() == 1


def test_format_reading_time():
    assert format_reading_time(0) == "0h 0m"
    assert format_reading_time(125) == "2h 5m"


def test_weekly_chart_is_monday_first():
    sessions = [
        SimpleNamespace(session_date=TODAY, pages_read=10),
        SimpleNamespace(session_date=TODAY - timedelta(days=5), pages_read=7),
        SimpleNamespace(session_date=TODAY - timedelta(days=7), pages_read=99),
    ]
    chart = weekly_chart(sessions, TODAY)
    assert [day for day, _ in chart] == WEEKDAY_LABELS
    assert dict(chart) == {"Mon": 7, "Tue": 0, "Wed": 0, "Thu": 0, "Fri": 0, "Sat": 10, "Sun": 0}


def test_analytics_without_progress():
    analytics = reading_analytics([], None, TODAY, 40)
    assert analytics.pages_read_today == 0
    assert analytics.daily_goal == 40
    assert analytics.total_reading_time == "0h 0m"


def test_analytics_card():
    progress = SimpleNamespace(pages_read=100, started_at=datetime(2026, 10, 7, 8, 0))
    sessions = [
        SimpleNamespace(session_date=TODAY, pages_read=20, duration_minutes=30),
        SimpleNamespace(session_date=TODAY - timedelta(days=1), pages_read=30, duration_minutes=50),
        SimpleNamespace(session_date=TODAY - timedelta(days=10), pages_read=50, duration_minutes=600),
    ]
    analytics = reading_analytics(sessions, progress, TODAY, 25)

    assert analytics.pages_read_today == 20
    assert analytics.average_pages_per_day == 10
    assert analytics.total_reading_time == "1h 20m"
    assert dict(analytics.weekly_data)["Fri"] == 30
