"""Finish-date forecasts for books in progress."""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional
import math


NOT_STARTED = "not_started"
ON_PACE = "on_pace"
COMPLETE = "complete"


@dataclass
class ForecastInput:
    book_id: str
    title: str
    author: str
    current_page: int
    total_pages: Optional[int]


@dataclass
class Forecast:
    book_id: str
    title: str
    author: str
    current_page: int
    total_pages: int
    pages_per_day: float
    status: str
    days_to_finish: Optional[int] = None
    estimated_finish: Optional[date] = None

    @property
    def pages_remaining(self) -> int:
        return max(0, self.total_pages - self.current_page)


def days_to_finish(current_page: int, total_pages: int, pages_per_day: float) -> Optional[int]:
    """ceil(remaining / pace); None when there is no pace to project from."""
    remaining = max(0, total_pages - max(0, current_page))
    if remaining == 0:
        return 0
    if pages_per_day <= 0:
        return None
    return math.ceil(remaining / pages_per_day)


def forecast_finish(
    current_page: int,
    total_pages: int,
    pages_per_day: float,
    today: date,
    book_id: str = "",
    title: str = "",
    author: str = "",
) -> Forecast:
    days = days_to_finish(current_page, total_pages, pages_per_day)
    if days is None:
        status, finish = NOT_STARTED, None
    else:
        status = COMPLETE if days == 0 else ON_PACE
        finish = today + timedelta(days=days)

    return Forecast(
        book_id=book_id,
        title=title,
        author=author,
        current_page=max(0, current_page),
        total_pages=total_pages,
        pages_per_day=pages_per_day,
        status=status,
        days_to_finish=days,
        estimated_finish=finish,
    )


def build_forecasts(books: Iterable[ForecastInput], pages_per_day: float, today: date) -> List[Forecast]:
    """One forecast per in-progress book; books without a page count are skipped."""
    forecasts = []
    for book in books:
        if not book.total_pages or book.total_pages <= 0:
            continue
        forecasts.append(
            forecast_finish(
                book.current_page,
                book.total_pages,
                pages_per_day,
                today,
                book_id=book.book_id,
                title=book.title,
                author=book.author,
            )
        )
    return forecasts


def soonest_forecast(forecasts: Iterable[Forecast]) -> Optional[Forecast]:
    """Headline pick: fewest days to finish, title breaks ties."""
    dated = [f for f in forecasts if f.days_to_finish is not None]
    if not dated:
        return None
    return min(dated, key=lambda f: (f.days_to_finish, f.title.lower()))
