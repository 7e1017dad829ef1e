"""
Reading velocity and streak calculations.

Everything here is a pure function over already-fetched ReadingSession rows
(anything with ``session_date`` and ``pages_read`` attributes). Empty input
always produces zeroed stats, never an exception.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
import enum
import logging

logger = logging.getLogger(__name__)

WEEK_DAYS = 7
LAST_30_DAYS = 30


class VelocityRange(str, enum.Enum):
    LAST_30_DAYS = "30days"
    YEAR_TO_DATE = "ytd"
    ALL_TIME = "alltime"


@dataclass
class StreakStats:
    current: int = 0
    best: int = 0


@dataclass
class VelocityWindow:
    range: VelocityRange
    start: Optional[date]
    end: date
    label: str

    @property
    def elapsed_days(self) -> int:
        """Calendar days in the window, both ends included; 0 for an empty window."""
        if self.start is None or self.start > self.end:
            return 0
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start is not None and self.start <= day <= self.end


@dataclass
class HeatmapPoint:
    date: date
    count: int


@dataclass
class VelocityStats:
    range: VelocityRange
    range_label: str
    pages_per_day: float = 0.0
    weekly_total: int = 0
    current_streak: int = 0
    best_streak: int = 0
    total_pages: int = 0
    active_days: int = 0
    elapsed_days: int = 0
    active_days_last_30: int = 0
    total_pages_last_30_days: int = 0
    books_finished: int = 0
    heatmap: List[HeatmapPoint] = field(default_factory=list)


def as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # ISO strings ("2026-10-17" or "2026-10-17T08:00:00Z")
    return date.fromisoformat(str(value)[:10])


def pages_by_date(sessions: Iterable) -> Dict[date, int]:
    """Sum pages_read per calendar day. Sessions without a date are skipped."""
    totals: Dict[date, int] = defaultdict(int)
    for session in sessions:
        if getattr(session, "session_date", None) is None:
            continue
        totals[as_date(session.session_date)] += max(0, session.pages_read or 0)
    return dict(totals)


def calculate_streaks(sessions: Iterable, today: date) -> StreakStats:
    """
    Current streak: consecutive days ending today with at least one page read.
    Best streak: the longest such run anywhere in the history.
    Days after ``today`` are ignored.
    """
    active = {day for day, pages in pages_by_date(sessions).items() if pages >= 1 and day <= today}
    if not active:
        return StreakStats()

    current = 0
    cursor = today
    while cursor in active:
        current += 1
        cursor -= timedelta(days=1)

    best = 0
    run = 0
    previous: Optional[date] = None
    for day in sorted(active):
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day

    return StreakStats(current=current, best=max(best, current))


def resolve_window(range_: VelocityRange, today: date, sessions: Iterable = ()) -> VelocityWindow:
    range_ = VelocityRange(range_)
    if range_ == VelocityRange.LAST_30_DAYS:
        return VelocityWindow(range_, today - timedelta(days=LAST_30_DAYS - 1), today, "Last 30 Days")
    if range_ == VelocityRange.YEAR_TO_DATE:
        return VelocityWindow(range_, date(today.year, 1, 1), today, f"Year to Date ({today.year})")

    logged_days = [day for day in pages_by_date(sessions) if day <= today]
    start = min(logged_days) if logged_days else None
    return VelocityWindow(range_, start, today, "All Time")


def _window_totals(daily: Dict[date, int], start: date, end: date) -> Tuple[int, int]:
    """Return (total pages, active days) for days in [start, end]."""
    total = 0
    active = 0
    for day, pages in daily.items():
        if start <= day <= end:
            total += pages
            if pages > 0:
                active += 1
    return total, active


def _count_finished(finished_dates: Iterable, window: VelocityWindow) -> int:
    days = [as_date(value) for value in finished_dates if value is not None]
    if window.range == VelocityRange.ALL_TIME:
        return len(days)
    return sum(1 for day in days if window.contains(day))


def calculate_velocity(
    sessions: Iterable,
    today: date,
    range_: VelocityRange = VelocityRange.YEAR_TO_DATE,
    finished_dates: Iterable = (),
) -> VelocityStats:
    """
    Pace, weekly volume and streaks for one user.

    ``pages_per_day`` divides the pages logged in the window by the window's
    elapsed calendar days, so rest days pull the average down.
    ``finished_dates`` are the ``date_finished`` values of the user's finished
    books; ``books_finished`` counts those inside the window (all of them for
    ``alltime``).
    """
    sessions = list(sessions)
    window = resolve_window(range_, today, sessions)
    stats = VelocityStats(range=window.range, range_label=window.label)
    stats.books_finished = _count_finished(finished_dates, window)
    if not sessions:
        return stats

    daily = pages_by_date(sessions)

    stats.heatmap = [HeatmapPoint(date=day, count=pages) for day, pages in sorted(daily.items())]

    stats.weekly_total, _ = _window_totals(daily, today - timedelta(days=WEEK_DAYS - 1), today)
    stats.total_pages_last_30_days, stats.active_days_last_30 = _window_totals(
        daily, today - timedelta(days=LAST_30_DAYS - 1), today
    )

    stats.elapsed_days = window.elapsed_days
    if window.start is not None:
        stats.total_pages, stats.active_days = _window_totals(daily, window.start, window.end)
    if stats.elapsed_days > 0:
        stats.pages_per_day = stats.total_pages / stats.elapsed_days

    streaks = calculate_streaks(sessions, today)
    stats.current_streak = streaks.current
    stats.best_streak = streaks.best

    logger.debug(
        "velocity range=%s pages=%s elapsed_days=%s pace=%.2f streak=%s/%s",
        window.range.value,
        stats.total_pages,
        stats.elapsed_days,
        stats.pages_per_day,
        stats.current_streak,
        stats.best_streak,
    )
    return stats
