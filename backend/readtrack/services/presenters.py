"""
Turn calculator results into API response models.

The calculators return plain dataclasses; everything about field naming and
list-of-pairs vs. list-of-objects lives here.
"""
from typing import Iterable, List, Optional

from readtrack.schemas.insights import (
    CommunityInsightResponse,
    CommunityMood,
    ComplexityCount,
    ForecastResponse,
    GoalInsightResponse,
    GoalInsightsResponse,
    HeatmapPointResponse,
    MoodBadge,
    MoodCount,
    MoodSummaryResponse,
    PaceAlertResponse,
    PacingStatResponse,
    ReadingDNAResponse,
    ReadingStatsResponse,
    StructuralFlagResponse,
    SubjectStatResponse,
    VelocityResponse,
    WinningComboResponse,
)
from readtrack.schemas.reading import BookAnalyticsResponse, WeekdayPages
from readtrack.services.community import CommunityInsight
from readtrack.services.forecast import Forecast
from readtrack.services.goals import GoalInsight
from readtrack.services.progress import BookAnalytics
from readtrack.services.reading_dna import MoodSummary, ReadingDNA, WinningCombo
from readtrack.services.reading_stats import ReadingStats
from readtrack.services.velocity import VelocityStats


def present_forecast(forecast: Forecast) -> ForecastResponse:
    return ForecastResponse(
        book_id=forecast.book_id,
        title=forecast.title,
        author=forecast.author,
        current_page=forecast.current_page,
        total_pages=forecast.total_pages,
        pages_remaining=forecast.pages_remaining,
        pages_per_day=forecast.pages_per_day,
        status=forecast.status,
        days_to_finish=forecast.days_to_finish,
        estimated_finish=forecast.estimated_finish,
    )


def present_velocity(
    stats: VelocityStats,
    forecasts: Iterable[Forecast] = (),
    next_finish: Optional[Forecast] = None,
) -> VelocityResponse:
    return VelocityResponse(
        range=stats.range.value,
        range_label=stats.range_label,
        pages_per_day=stats.pages_per_day,
        weekly_total=stats.weekly_total,
        current_streak=stats.current_streak,
        best_streak=stats.best_streak,
        total_pages=stats.total_pages,
        active_days=stats.active_days,
        elapsed_days=stats.elapsed_days,
        active_days_last_30=stats.active_days_last_30,
        total_pages_last_30_days=stats.total_pages_last_30_days,
        books_finished=stats.books_finished,
        heatmap=[HeatmapPointResponse(date=p.date, count=p.count) for p in stats.heatmap],
        forecasts=[present_forecast(f) for f in forecasts],
        next_finish=present_forecast(next_finish) if next_finish else None,
    )


def present_reading_stats(stats: ReadingStats) -> ReadingStatsResponse:
    return ReadingStatsResponse(
        books_read=stats.books_read,
        pages_read=stats.pages_read,
        reading_streak=stats.reading_streak,
        avg_pages_per_day=stats.avg_pages_per_day,
    )


def present_winning_combo(combo: Optional[WinningCombo]) -> Optional[WinningComboResponse]:
    if combo is None:
        return None
    return WinningComboResponse(
        pacing=combo.pacing,
        reading_format=combo.reading_format,
        moods=list(combo.moods),
        subject=combo.subject,
        summary=combo.summary,
        book_count=combo.book_count,
        average_rating=combo.average_rating,
    )


def present_reading_dna(dna: ReadingDNA) -> ReadingDNAResponse:
    return ReadingDNAResponse(
        book_count=dna.book_count,
        moods=[MoodCount(mood=m, count=c) for m, c in dna.moods],
        pacing=[PacingStatResponse(label=s.label, avg_rating=s.avg_rating, count=s.count) for s in dna.pacing_stats],
        complexity=[ComplexityCount(level=level, count=c) for level, c in dna.complexity],
        subjects=[SubjectStatResponse(name=s.name, count=s.count, avg_rating=s.avg_rating) for s in dna.subjects],
        structural_flags=[StructuralFlagResponse(key=k, percentage=p) for k, p in dna.structural_flags],
        formats=dict(dna.formats),
        diverse_cast_percent=dna.diverse_cast_percent,
        winning_combo=present_winning_combo(dna.winning_combo),
    )


def present_mood_summary(summary: MoodSummary) -> MoodSummaryResponse:
    return MoodSummaryResponse(
        has_enough_data=summary.has_enough_data,
        moods=[MoodBadge(mood=m, color=c) for m, c in summary.moods],
        pacing=summary.pacing,
    )


def present_community_insight(insight: CommunityInsight) -> CommunityInsightResponse:
    return CommunityInsightResponse(
        summary=insight.summary,
        has_data=insight.has_data,
        moods=[CommunityMood(mood=m, percentage=p) for m, p in insight.moods],
        average_pacing=insight.average_pacing,
        total_reviews=insight.total_reviews,
    )


def present_goal_insights(insights: List[GoalInsight], success_rate: int, total_goals: int) -> GoalInsightsResponse:
    cards = []
    alerts = []
    for insight in insights:
        cards.append(
            GoalInsightResponse(
                goal_id=insight.goal_id,
                goal_type=insight.goal_type,
                target=insight.target,
                current=insight.current,
                required_daily_pace=insight.required_daily_pace,
                time_elapsed_percent=insight.time_elapsed_percent,
                progress_percent=insight.progress_percent,
                is_on_track=insight.is_on_track,
                start_date=insight.start_date,
                end_date=insight.end_date,
            )
        )
        if insight.alert:
            alerts.append(PaceAlertResponse(**vars(insight.alert)))
    return GoalInsightsResponse(
        insights=cards,
        alerts=alerts,
        success_rate=success_rate,
        total_goals=total_goals,
    )


def present_book_analytics(analytics: BookAnalytics) -> BookAnalyticsResponse:
    return BookAnalyticsResponse(
        pages_read_today=analytics.pages_read_today,
        daily_goal=analytics.daily_goal,
        average_pages_per_day=analytics.average_pages_per_day,
        weekly_data=[WeekdayPages(day=d, pages=p) for d, p in analytics.weekly_data],
        total_reading_time=analytics.total_reading_time,
    )
