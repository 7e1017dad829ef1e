"""Tests for finish-date forecasts."""
from datetime import date, timedelta

from readtrack.services.forecast import (
    COMPLETE,
    NOT_STARTED,
    ON_PACE,
    ForecastInput,
    build_forecasts,
    days_to_finish,
    forecast_finish,
    soonest_forecast,
)

TODAY = date(2026, 10, 17)


def test_days_to_finish_rounds_up():
    assert days_to_finish(100, 300, 20) == 10
    assert days_to_finish(199, 300, 20) == 6


def test_forecast_on_pace():
    forecast = forecast_finish(100, 300, 20.0, TODAY, title="Dune")
    assert forecast.status == ON_PACE
    assert forecast.days_to_finish == 10
    assert forecast.estimated_finish == TODAY + timedelta(days=10)
    assert forecast.pages_remaining == 200


def test_zero_pace_has_no_finish_date():
    forecast = forecast_finish(50, 300, 0.0, TODAY)
    assert forecast.status == NOT_STARTED
    assert forecast.days_to_finish is None
    assert forecast.estimated_finish is None


def test_finished_book_is_complete_today():
    forecast = forecast_finish(320, 300, 0.0, TODAY)
    assert forecast.status == COMPLETE
    assert forecast.days_to_finish == 0
    assert forecast.estimated_finish == TODAY
    assert forecast.pages_remaining == 0


def test_build_forecasts_skips_books_without_page_count():
    books = [
        ForecastInput("1", "Known", "A", 10, 110),
        ForecastInput("2", "Unknown", "B", 10, None),
        ForecastInput("3", "Zero", "C", 0, 0),
    ]
    forecasts = build_forecasts(books, 10.0, TODAY)
    assert [f.book_id for f in forecasts] == ["1"]
    assert forecasts[0].days_to_finish == 10


def test_soonest_forecast_breaks_ties_by_title():
    books = [
        ForecastInput("1", "Zebra", "A", 0, 100),
        ForecastInput("2", "apple", "B", 0, 100),
        ForecastInput("3", "Long", "C", 0, 500),
    ]
    soonest = soonest_forecast(build_forecasts(books, 25.0, TODAY))
    assert soonest.title == "apple"


def test_soonest_forecast_none_without_pace():
    forecasts = build_forecasts([ForecastInput("1", "A", "B", 0, 100)], 0.0, TODAY)
    assert soonest_forecast(forecasts) is None


def test_halfway_book_at_25_pages_a_day():
    assert days_to_finish(150, 300, 25) == 6
    forecast = forecast_finish(150, 300, 25.0, TODAY)
    assert forecast.estimated_finish == TODAY + timedelta(days=6)
