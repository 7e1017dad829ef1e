"""
Insights endpoints: velocity dashboard, reading DNA, sweet spot, mood badge, goal cards.

Each endpoint loads the user's rows once and hands them to the pure
calculators in readtrack.services.
"""
from datetime import date, datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from readtrack.core.auth import get_current_user
from readtrack.database import get_db
from readtrack.models import (
    ReadingGoal,
    ReadingProgress,
    ReadingSession,
    ReadingStatus,
    User,
    UserBook,
)
from readtrack.schemas.insights import (
    GoalInsightsResponse,
    MoodSummaryResponse,
    ReadingDNAResponse,
    ReadingStatsResponse,
    VelocityResponse,
    WinningComboEnvelope,
)
from readtrack.services import presenters
from readtrack.services.forecast import ForecastInput, build_forecasts, soonest_forecast
from readtrack.services.goals import goal_insights, goal_success_rate, refresh_goal_progress
from readtrack.services.reading_dna import (
    build_reading_dna,
    calculate_winning_combo,
    rated_book_from_user_book,
    summarize_moods,
)
from readtrack.services.reading_stats import calculate_reading_stats
from readtrack.services.velocity import VelocityRange, calculate_velocity
from readtrack.utils.timing import log_elapsed, now_ms, time_operation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/insights", tags=["insights"])

MOOD_SUMMARY_RECENT_FINISHED = 10
MOOD_SUMMARY_MIN_RATING = 4


def _finished_with_attributes(db: Session, user: User):
    return (
        db.query(UserBook)
        .options(joinedload(UserBook.book))
        .filter(
            UserBook.user_id == user.id,
            UserBook.status == ReadingStatus.FINISHED,
            UserBook.review_attributes.isnot(None),
        )
        .all()
    )


@router.get("/velocity", response_model=VelocityResponse)
async def get_velocity(
    range_: VelocityRange = Query(VelocityRange.YEAR_TO_DATE, alias="range"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Pace, streaks, heatmap and finish-date forecasts for books in progress."""
    today = date.today()
    try:
        with time_operation("insights.velocity.queries"):
            sessions = db.query(ReadingSession).filter(ReadingSession.user_id == user.id).all()
            reading = (
                db.query(UserBook)
                .options(joinedload(UserBook.book))
                .filter(
                    UserBook.user_id == user.id,
                    UserBook.status == ReadingStatus.CURRENTLY_READING,
                )
                .all()
            )
            progress_rows = db.query(ReadingProgress).filter(ReadingProgress.user_id == user.id).all()
            finished_dates = [
                finished_at
                for (finished_at,) in db.query(UserBook.date_finished).filter(
                    UserBook.user_id == user.id,
                    UserBook.status == ReadingStatus.FINISHED,
                )
            ]
    except Exception as e:
        db.rollback()
        logger.error("Failed to load velocity data: user_id=%s, error=%s", user.id, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load reading sessions",
        )

    with time_operation("insights.velocity.calculation"):
        stats = calculate_velocity(sessions, today, range_, finished_dates=finished_dates)
        pages_by_book = {p.book_id: p.pages_read for p in progress_rows}
        inputs = [
            ForecastInput(
                book_id=str(ub.book_id),
                title=ub.book.title if ub.book else "",
                author=", ".join(ub.book.authors or []) if ub.book else "",
                current_page=pages_by_book.get(ub.book_id, 0),
                total_pages=ub.book.page_count if ub.book else None,
            )
            for ub in reading
        ]
        forecasts = build_forecasts(inputs, stats.pages_per_day, today)

    return presenters.present_velocity(stats, forecasts, soonest_forecast(forecasts))


@router.get("/stats", response_model=ReadingStatsResponse)
async def get_reading_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Dashboard strip: books finished this year, pages into current books, streak, pace."""
    with time_operation("insights.stats.queries"):
        current_progress = (
            db.query(ReadingProgress)
            .join(
                UserBook,
                (UserBook.user_id == ReadingProgress.user_id) & (UserBook.book_id == ReadingProgress.book_id),
            )
            .filter(
                ReadingProgress.user_id == user.id,
                UserBook.status == ReadingStatus.CURRENTLY_READING,
            )
            .all()
        )
        finished_dates = [
            finished_at
            for (finished_at,) in db.query(UserBook.date_finished).filter(
                UserBook.user_id == user.id,
                UserBook.status == ReadingStatus.FINISHED,
            )
        ]
        sessions = db.query(ReadingSession).filter(ReadingSession.user_id == user.id).all()

    stats = calculate_reading_stats(current_progress, finished_dates, sessions, datetime.now())
    return presenters.present_reading_stats(stats)


@router.get("/dna", response_model=ReadingDNAResponse)
async def get_reading_dna(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with time_operation("insights.dna.queries"):
        finished = _finished_with_attributes(db, user)
    with time_operation("insights.dna.calculation"):
        dna = build_reading_dna([rated_book_from_user_book(ub) for ub in finished])
    return presenters.present_reading_dna(dna)


@router.get("/winning-combo", response_model=WinningComboEnvelope)
async def get_winning_combo(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Same pool as /dna, so both endpoints agree on the sweet spot."""
    finished = _finished_with_attributes(db, user)
    combo = calculate_winning_combo([rated_book_from_user_book(ub) for ub in finished])
    return WinningComboEnvelope(combo=presenters.present_winning_combo(combo))


@router.get("/mood-summary", response_model=MoodSummaryResponse)
async def get_mood_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Pool: the last ten finished books rated 4+, plus everything currently being read."""
    with time_operation("insights.mood_summary.queries"):
        recent_finished = (
            db.query(UserBook)
            .filter(
                UserBook.user_id == user.id,
                UserBook.status == ReadingStatus.FINISHED,
                UserBook.rating >= MOOD_SUMMARY_MIN_RATING,
                UserBook.review_attributes.isnot(None),
            )
            .order_by(UserBook.date_finished.desc())
            .limit(MOOD_SUMMARY_RECENT_FINISHED)
            .all()
        )
        reading = (
            db.query(UserBook)
            .filter(
                UserBook.user_id == user.id,
                UserBook.status == ReadingStatus.CURRENTLY_READING,
                UserBook.review_attributes.isnot(None),
            )
            .all()
        )
    summary = summarize_moods([rated_book_from_user_book(ub) for ub in recent_finished + reading])
    return presenters.present_mood_summary(summary)


@router.get("/goals", response_model=GoalInsightsResponse)
async def get_goal_insights(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    today = date.today()
    t0 = now_ms()
    try:
        goals = db.query(ReadingGoal).filter(ReadingGoal.user_id == user.id).all()
        refresh_goal_progress(db, goals, today)
    except Exception as e:
        db.rollback()
        logger.error("Failed to refresh goals: user_id=%s, error=%s", user.id, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load goals",
        )
    t1 = log_elapsed(t0, "insights.goals.refresh")

    response = presenters.present_goal_insights(
        goal_insights(goals, today),
        success_rate=goal_success_rate(goals),
        total_goals=len(goals),
    )
    log_elapsed(t1, "insights.goals.calculation")
    return response
