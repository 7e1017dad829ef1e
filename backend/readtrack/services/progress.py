"""
Reading progress updates and the per-book analytics card.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from readtrack.models import ReadingProgress, ReadingSession
from readtrack.services.velocity import pages_by_date

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


@dataclass
class ProgressUpdate:
    progress: ReadingProgress
    session: Optional[ReadingSession]
    pages_logged: int


@dataclass
class BookAnalytics:
    pages_read_today: int = 0
    daily_goal: int = 0
    average_pages_per_day: int = 0
    weekly_data: List[Tuple[str, int]] = field(default_factory=lambda: [(d, 0) for d in WEEKDAY_LABELS])
    total_reading_time: str = "0h 0m"


def record_progress(
    db: Session,
    user_id: UUID,
    book_id: UUID,
    current_page: int,
    session_date: Optional[date] = None,
    duration_minutes: Optional[int] = None,
) -> ProgressUpdate:
    """
    Upsert the current page and append a ReadingSession for the pages gained.

    Moving backwards (re-reading, typo fixes) updates the progress row but
    never logs a negative session.
    """
    current_page = max(0, int(current_page))
    session_date = session_date or date.today()

    progress = db.query(ReadingProgress).filter(
        ReadingProgress.user_id == user_id,
        ReadingProgress.book_id == book_id,
    ).one_or_none()

    previous_page = progress.pages_read if progress else 0
    if progress is None:
        progress = ReadingProgress(user_id=user_id, book_id=book_id, pages_read=current_page)
        db.add(progress)
    else:
        progress.pages_read = current_page
        progress.updated_at = datetime.utcnow()

    delta = current_page - previous_page
    session = None
    if delta > 0:
        session = ReadingSession(
            user_id=user_id,
            book_id=book_id,
            session_date=session_date,
            pages_read=delta,
            duration_minutes=duration_minutes,
        )
        db.add(session)

    db.commit()
    db.refresh(progress)
    logger.info(
        "Progress recorded: user_id=%s book_id=%s page=%s logged=%s",
        user_id,
        book_id,
        current_page,
        max(0, delta),
    )
    return ProgressUpdate(progress=progress, session=session, pages_logged=max(0, delta))


def format_reading_time(total_minutes: int) -> str:
    total_minutes = max(0, total_minutes)
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def weekly_chart(sessions: Iterable, today: date) -> List[Tuple[str, int]]:
    """Pages per weekday over the last 7 days, Monday first."""
    buckets = dict.fromkeys(WEEKDAY_LABELS, 0)
    week_start = today - timedelta(days=6)
    for day, pages in pages_by_date(sessions).items():
        if week_start <= day <= today:
            buckets[WEEKDAY_LABELS[day.weekday()]] += pages
    return list(buckets.items())


def reading_analytics(
    sessions: Iterable,
    progress: Optional[ReadingProgress],
    today: date,
    daily_goal: int,
) -> BookAnalytics:
    """Card for one book: today's pages, pace since starting, this week's chart."""
    if progress is None:
        return BookAnalytics(daily_goal=daily_goal)

    sessions = list(sessions)
    daily = pages_by_date(sessions)

    started = progress.started_at.date() if isinstance(progress.started_at, datetime) else progress.started_at
    days_since_start = max(1, (today - (started or today)).days)
    week_start = today - timedelta(days=6)
    minutes = sum(
        s.duration_minutes or 0
        for s in sessions
        if s.session_date is not None and week_start <= s.session_date <= today
    )

    return BookAnalytics(
        pages_read_today=daily.get(today, 0),
        daily_goal=daily_goal,
        average_pages_per_day=math.floor(progress.pages_read / days_since_start + 0.5),
        weekly_data=weekly_chart(sessions, today),
        total_reading_time=format_reading_time(minutes),
    )
