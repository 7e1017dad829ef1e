"""
Reading goals: creation rules and pace insights.
"""
import calendar
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from readtrack.models import Book, GoalStatus, GoalType, GoalVisibility, ReadingGoal, ReadingStatus, UserBook

logger = logging.getLogger(__name__)

CRITICAL_GAP_PERCENT = 20.0

GOAL_UNITS = {
    GoalType.BOOKS: "books",
    GoalType.PAGES: "pages",
    GoalType.GENRES: "genres",
    GoalType.CONSISTENCY: "reading days",
}


class GoalConflictError(ValueError):
    """Raised when the user already has an active goal of that type for the year."""
    pass


class GoalNotFoundError(LookupError):
    pass


class InvalidGoalUpdateError(ValueError):
    pass


@dataclass
class PaceAlert:
    goal_id: str
    goal_type: str
    severity: str  # "warning" | "critical"
    message: str
    required_daily_pace: float
    current_progress: int
    target: int


@dataclass
class GoalInsight:
    goal_id: str
    goal_type: str
    target: int
    current: int
    required_daily_pace: float
    time_elapsed_percent: float
    progress_percent: float
    is_on_track: bool
    start_date: date
    end_date: date
    alert: Optional[PaceAlert] = None


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def goal_window(goal: ReadingGoal, today: date) -> Tuple[date, date]:
    """
    Resolve the goal's date range: explicit dates first, then a start date
    plus ``period_months``, then the goal's calendar year.
    """
    year = goal.year or today.year
    year_start, year_end = date(year, 1, 1), date(year, 12, 31)

    if goal.end_date:
        return goal.start_date or year_start, goal.end_date
    if goal.start_date:
        if goal.period_months:
            return goal.start_date, add_months(goal.start_date, goal.period_months)
        return goal.start_date, year_end
    if goal.period_months:
        start = goal.created_at.date() if goal.created_at else today
        return start, add_months(start, goal.period_months)
    return year_start, year_end


def _round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def calculate_goal_insight(goal: ReadingGoal, today: date) -> GoalInsight:
    start, end = goal_window(goal, today)
    target = goal.target or 0
    current = goal.current or 0
    goal_type = GoalType(goal.type)

    total_days = (end - start).days + 1
    elapsed_days = min(max((today - start).days + 1, 0), max(total_days, 0))
    time_elapsed = elapsed_days / total_days * 100 if total_days > 0 else 0.0
    progress = min(100.0, current / target * 100) if target > 0 else 0.0

    days_remaining = max(0, (end - today).days + 1)
    remaining = max(0, target - current)
    required_pace = remaining / days_remaining if days_remaining > 0 else 0.0
    on_track = progress >= time_elapsed

    insight = GoalInsight(
        goal_id=str(goal.id),
        goal_type=goal_type.value,
        target=target,
        current=current,
        required_daily_pace=_round2(required_pace),
        time_elapsed_percent=_round2(time_elapsed),
        progress_percent=_round2(progress),
        is_on_track=on_track,
        start_date=start,
        end_date=end,
    )

    if not on_track and days_remaining > 0:
        unit = GOAL_UNITS[goal_type]
        gap = time_elapsed - progress
        pace = insight.required_daily_pace
        if gap > CRITICAL_GAP_PERCENT:
            severity = "critical"
            message = (
                f"You're significantly behind on your {goal_type.value} goal. "
                f"You need to maintain a pace of {pace} {unit} per day to catch up."
            )
        else:
            severity = "warning"
            message = (
                f"You're slightly behind on your {goal_type.value} goal. "
                f"Aim for {pace} {unit} per day to stay on track."
            )
        insight.alert = PaceAlert(
            goal_id=insight.goal_id,
            goal_type=goal_type.value,
            severity=severity,
            message=message,
            required_daily_pace=pace,
            current_progress=current,
            target=target,
        )
    return insight


def goal_success_rate(goals: Iterable[ReadingGoal]) -> int:
    goals = list(goals)
    if not goals:
        return 0
    completed = sum(1 for g in goals if GoalStatus(g.status) == GoalStatus.COMPLETED)
    return math.floor(completed / len(goals) * 100 + 0.5)


def goal_insights(goals: Iterable[ReadingGoal], today: date) -> List[GoalInsight]:
    return [
        calculate_goal_insight(goal, today)
        for goal in goals
        if GoalStatus(goal.status) == GoalStatus.ACTIVE
    ]


def create_goal(
    db: Session,
    user_id: UUID,
    goal_type: GoalType,
    target: int,
    year: int,
    visibility: GoalVisibility = GoalVisibility.PRIVATE,
    period_months: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ReadingGoal:
    """One active goal per type per user per year."""
    existing = db.query(ReadingGoal).filter(
        ReadingGoal.user_id == user_id,
        ReadingGoal.type == goal_type,
        ReadingGoal.year == year,
        ReadingGoal.status == GoalStatus.ACTIVE,
    ).first()
    if existing:
        raise GoalConflictError(f"An active {goal_type.value} goal already exists for {year}")

    goal = ReadingGoal(
        user_id=user_id,
        type=goal_type,
        target=target,
        current=0,
        year=year,
        visibility=visibility,
        status=GoalStatus.ACTIVE,
        period_months=period_months,
        start_date=start_date,
        end_date=end_date,
    )
    db.add(goal)
    db.commit()
    db.refresh(goal)
    logger.info("Goal created: user_id=%s type=%s target=%s year=%s", user_id, goal_type.value, target, year)
    return goal



EDITABLE_GOAL_FIELDS = ("target", "visibility", "period_months", "start_date", "end_date")


def _owned_goal(db: Session, user_id: UUID, goal_id: UUID) -> ReadingGoal:
    goal = db.query(ReadingGoal).filter(
        ReadingGoal.id == goal_id,
        ReadingGoal.user_id == user_id,
    ).first()
    if goal is None:
        raise GoalNotFoundError(f"Goal {goal_id} not found")
    return goal


def update_goal(db: Session, user_id: UUID, goal_id: UUID, changes: dict) -> ReadingGoal:
    """
    Merge ``changes`` into the goal's configuration. Keys outside
    EDITABLE_GOAL_FIELDS are ignored; the type and year of a goal are fixed.
    The merged window is validated, not just the fields that changed.
    """
    goal = _owned_goal(db, user_id, goal_id)
    updates = {key: value for key, value in changes.items() if key in EDITABLE_GOAL_FIELDS}

    start_date = updates.get("start_date", goal.start_date)
    end_date = updates.get("end_date", goal.end_date)
    if start_date and end_date and end_date < start_date:
        raise InvalidGoalUpdateError("end_date must not be before start_date")
    for required in ("target", "visibility"):
        if required in updates and updates[required] is None:
            raise InvalidGoalUpdateError(f"{required} cannot be cleared")
    if "target" in updates and updates["target"] <= 0:
        raise InvalidGoalUpdateError("target must be positive")

    for key, value in updates.items():
        setattr(goal, key, value)
    db.commit()
    db.refresh(goal)
    logger.info("Goal updated: goal_id=%s fields=%s", goal.id, sorted(updates))
    return goal


def increase_goal_target(db: Session, user_id: UUID, goal_id: UUID, amount: int = 10) -> ReadingGoal:
    """Raise the target; a completed goal that is now short of it becomes active again."""
    goal = _owned_goal(db, user_id, goal_id)
    goal.target = (goal.target or 0) + amount
    if GoalStatus(goal.status) == GoalStatus.COMPLETED and goal.current < goal.target:
        rival = db.query(ReadingGoal).filter(
            ReadingGoal.user_id == user_id,
            ReadingGoal.type == goal.type,
            ReadingGoal.year == goal.year,
            ReadingGoal.status == GoalStatus.ACTIVE,
            ReadingGoal.id != goal.id,
        ).first()
        if rival is not None:
            db.rollback()
            raise GoalConflictError(f"An active {GoalType(goal.type).value} goal already exists for {goal.year}")
        goal.status = GoalStatus.ACTIVE
    db.commit()
    db.refresh(goal)
    logger.info("Goal target increased: goal_id=%s target=%s", goal.id, goal.target)
    return goal


@dataclass
class FinishedBook:
    date_finished: date
    page_count: Optional[int] = None
    subjects: List[str] = field(default_factory=list)


def calculate_goal_progress(
    goal_type: GoalType,
    finished_books: Iterable[FinishedBook],
    start: date,
    end: date,
) -> int:
    """
    Progress toward a goal from the books finished inside [start, end].

    books: finished count; pages: sum of page counts; genres: distinct
    subjects; consistency: distinct days on which a book was finished.
    """
    in_window = [b for b in finished_books if b.date_finished and start <= b.date_finished <= end]
    goal_type = GoalType(goal_type)
    if goal_type == GoalType.BOOKS:
        return len(in_window)
    if goal_type == GoalType.PAGES:
        return sum(b.page_count or 0 for b in in_window)
    if goal_type == GoalType.GENRES:
        return len({s for b in in_window for s in b.subjects if isinstance(s, str) and s.strip()})
    return len({b.date_finished for b in in_window})


def _finished_books(db: Session, user_id: UUID) -> List[FinishedBook]:
    rows = (
        db.query(UserBook.date_finished, Book.page_count, Book.subjects)
        .join(Book, Book.id == UserBook.book_id)
        .filter(
            UserBook.user_id == user_id,
            UserBook.status == ReadingStatus.FINISHED,
            UserBook.date_finished.isnot(None),
        )
        .all()
    )
    return [
        FinishedBook(date_finished=finished.date(), page_count=pages, subjects=list(subjects or []))
        for finished, pages, subjects in rows
    ]


def refresh_goal_progress(db: Session, goals: List[ReadingGoal], today: date) -> List[ReadingGoal]:
    """
    Recompute ``current`` for each active goal and mark reached goals
    completed. Commits only when something changed.
    """
    active = [g for g in goals if GoalStatus(g.status) == GoalStatus.ACTIVE]
    if not active:
        return goals

    finished = _finished_books(db, active[0].user_id)
    changed = False
    for goal in active:
        start, end = goal_window(goal, today)
        current = calculate_goal_progress(goal.type, finished, start, end)
        if current != goal.current:
            goal.current = current
            changed = True
        if goal.target and current >= goal.target:
            goal.status = GoalStatus.COMPLETED
            changed = True
            logger.info("Goal completed: goal_id=%s type=%s", goal.id, GoalType(goal.type).value)

    if changed:
        db.commit()
    return goals
