"""Tests for reading velocity and streak calculations."""
from datetime import date, datetime, timedelta
import random
from types import SimpleNamespace

import pytest

from readtrack.services.velocity import (
    VelocityRange,
    calculate_streaks,
    calculate_velocity,
    pages_by_date,
    resolve_window,
)

TODAY = date(2026, 3, 1)


def session(day: date, pages: int):
    return SimpleNamespace(session_date=day, pages_read=pages)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def test_empty_sessions_produce_zeroed_stats():
    stats = calculate_velocity([], TODAY, VelocityRange.LAST_30_DAYS)
    assert stats.pages_per_day == 0
    assert stats.weekly_total == 0
    assert stats.current_streak == 0
    assert stats.best_streak == 0
    assert stats.heatmap == []
    assert stats.range_label == "Last 30 Days"


def test_pages_by_date_sums_same_day_and_skips_undated():
    totals = pages_by_date([
        session(TODAY, 10),
        session(TODAY, 15),
        SimpleNamespace(session_date=None, pages_read=99),
        SimpleNamespace(session_date=datetime(2026, 2, 28, 22, 0), pages_read=5),
    ])
    assert totals == {TODAY: 25, days_ago(1): 5}


def test_current_streak_counts_back_from_today():
    sessions = [session(days_ago(n), 10) for n in (0, 1, 2)] + [session(days_ago(5), 10)]
    streaks = calculate_streaks(sessions, TODAY)
    assert streaks.current == 3
    assert streaks.best == 3


def test_no_reading_today_means_no_current_streak():
    sessions = [session(days_ago(1), 10), session(days_ago(2), 10)]
    streaks = calculate_streaks(sessions, TODAY)
    assert streaks.current == 0
    assert streaks.best == 2


def test_best_streak_found_anywhere_in_history():
    sessions = [session(days_ago(n), 5) for n in range(20, 26)] + [session(TODAY, 5)]
    streaks = calculate_streaks(sessions, TODAY)
    assert streaks.best == 6
    assert streaks.current == 1


def test_zero_page_days_do_not_count_toward_streaks():
    sessions = [session(TODAY, 0), session(days_ago(1), 12)]
    assert calculate_streaks(sessions, TODAY).current == 0


def test_pages_per_day_divides_by_elapsed_calendar_days():
    sessions = [session(days_ago(n), 30) for n in range(10)]
    stats = calculate_velocity(sessions, TODAY, VelocityRange.LAST_30_DAYS)
    assert stats.total_pages == 300
    assert stats.elapsed_days == 30
    assert stats.pages_per_day == pytest.approx(10.0)
    assert stats.active_days == 10


def test_year_to_date_window_starts_january_first():
    window = resolve_window(VelocityRange.YEAR_TO_DATE, TODAY)
    assert window.start == date(2026, 1, 1)
    assert window.elapsed_days == 60
    assert window.label == "Year to Date (2026)"


def test_all_time_window_starts_at_first_session():
    sessions = [session(days_ago(9), 50), session(TODAY, 50)]
    stats = calculate_velocity(sessions, TODAY, VelocityRange.ALL_TIME)
    assert stats.elapsed_days == 10
    assert stats.pages_per_day == pytest.approx(10.0)


def test_weekly_total_covers_last_seven_days_only():
    sessions = [session(days_ago(6), 20), session(days_ago(7), 100), session(TODAY, 5)]
    stats = calculate_velocity(sessions, TODAY)
    assert stats.weekly_total == 25


def test_heatmap_is_sorted_by_date():
    sessions = [session(TODAY, 5), session(days_ago(3), 7), session(days_ago(3), 3)]
    stats = calculate_velocity(sessions, TODAY)
    assert [(p.date, p.count) for p in stats.heatmap] == [(days_ago(3), 10), (TODAY, 5)]


def test_range_accepts_plain_string():
    stats = calculate_velocity([session(TODAY, 10)], TODAY, "30days")
    assert stats.range == VelocityRange.LAST_30_DAYS


def random_sessions(seed: int):
    rng = random.Random(seed)
    # a few future-dated rows on purpose; they must be ignored
    return [session(days_ago(rng.randint(-3, 400)), rng.randint(0, 60)) for _ in range(rng.randint(0, 80))]


@pytest.mark.parametrize("seed", range(25))
def test_current_streak_never_exceeds_best(seed):
    streaks = calculate_streaks(random_sessions(seed), TODAY)
    assert streaks.current <= streaks.best


def test_unbroken_daily_reading_streak_spans_whole_run():
    start = TODAY - timedelta(days=400)
    sessions = [session(start + timedelta(days=n), 5) for n in range((TODAY - start).days + 1)]
    streaks = calculate_streaks(sessions, TODAY)
    assert streaks.current == (TODAY - start).days + 1
    assert streaks.best == streaks.current


@pytest.mark.parametrize("range_", list(VelocityRange))
@pytest.mark.parametrize("seed", range(10))
def test_pace_never_exceeds_pages_logged_in_window(range_, seed):
    sessions = random_sessions(seed)
    stats = calculate_velocity(sessions, TODAY, range_)
    window = resolve_window(range_, TODAY, sessions)

    logged = sum(
        s.pages_read for s in sessions
        if window.start is not None and window.start <= s.session_date <= TODAY
    )
    assert stats.total_pages == logged
    assert stats.pages_per_day * stats.elapsed_days <= logged + 1e-9


def test_books_finished_counts_only_the_selected_window():
    finished = [
        days_ago(0),
        days_ago(29),
        days_ago(30),
        datetime(2026, 1, 1, 9, 30),
        date(2025, 12, 31),
        None,
    ]

    def books_finished(range_):
        return calculate_velocity([], TODAY, range_, finished_dates=finished).books_finished

    assert books_finished(VelocityRange.LAST_30_DAYS) == 2
    assert books_finished(VelocityRange.YEAR_TO_DATE) == 4
    assert books_finished(VelocityRange.ALL_TIME) == 5
