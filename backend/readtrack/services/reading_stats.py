"""
Headline numbers for the dashboard strip: books finished this year, pages
into the current books, the reading streak, and pages per day since each
current book was started.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable
import logging
import math

from readtrack.services.velocity import as_date, calculate_streaks

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class ReadingStats:
    books_read: int = 0
    pages_read: int = 0
    reading_streak: int = 0
    avg_pages_per_day: int = 0


def days_since(started_at: datetime, now: datetime) -> int:
    """Whole days since ``started_at``, rounded up, never less than one."""
    elapsed = (now - started_at).total_seconds()
    return max(1, math.ceil(elapsed / SECONDS_PER_DAY))


def calculate_reading_stats(
    current_progress: Iterable,
    finished_dates: Iterable,
    sessions: Iterable,
    now: datetime,
) -> ReadingStats:
    """
    ``current_progress`` holds the ReadingProgress rows of currently-reading
    books. The average divides their pages by the summed days since each was
    started; progress without a start date adds pages but no days.
    """
    today = now.date()
    progress = list(current_progress)

    pages_read = sum(max(0, p.pages_read or 0) for p in progress)
    total_days = sum(days_since(p.started_at, now) for p in progress if p.started_at is not None)
    avg_pages_per_day = math.floor(pages_read / total_days + 0.5) if total_days else 0

    year_start = date(today.year, 1, 1)
    books_read = sum(1 for value in finished_dates if value is not None and as_date(value) >= year_start)

    stats = ReadingStats(
        books_read=books_read,
        pages_read=pages_read,
        reading_streak=calculate_streaks(sessions, today).current,
        avg_pages_per_day=avg_pages_per_day,
    )
    logger.debug("reading stats: %s", stats)
    return stats
