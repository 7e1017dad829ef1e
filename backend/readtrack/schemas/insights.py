from pydantic import BaseModel
from typing import Optional, List, Dict
import datetime as dt


class HeatmapPointResponse(BaseModel):
    date: dt.date
    count: int


class ForecastResponse(BaseModel):
    book_id: str
    title: str
    author: str
    current_page: int
    total_pages: int
    pages_remaining: int
    pages_per_day: float
    status: str  # not_started | on_pace | complete
    days_to_finish: Optional[int] = None
    estimated_finish: Optional[dt.date] = None


class VelocityResponse(BaseModel):
    range: str
    range_label: str
    pages_per_day: float
    weekly_total: int
    current_streak: int
    best_streak: int
    total_pages: int
    active_days: int
    elapsed_days: int
    active_days_last_30: int
    total_pages_last_30_days: int
    books_finished: int = 0
    heatmap: List[HeatmapPointResponse] = []
    forecasts: List[ForecastResponse] = []
    next_finish: Optional[ForecastResponse] = None


class ReadingStatsResponse(BaseModel):
    books_read: int
    pages_read: int
    reading_streak: int
    avg_pages_per_day: int


class WinningComboResponse(BaseModel):
    pacing: Optional[str] = None
    reading_format: Optional[str] = None
    moods: List[str] = []
    subject: Optional[str] = None
    summary: str
    book_count: int
    average_rating: float


class WinningComboEnvelope(BaseModel):
    """``combo`` is null until the user has a finished book rated 4.5+."""
    combo: Optional[WinningComboResponse] = None


class MoodCount(BaseModel):
    mood: str
    count: int


class PacingStatResponse(BaseModel):
    label: str
    avg_rating: float
    count: int


class ComplexityCount(BaseModel):
    level: str
    count: int


class SubjectStatResponse(BaseModel):
    name: str
    count: int
    avg_rating: float


class StructuralFlagResponse(BaseModel):
    key: str
    percentage: float


class ReadingDNAResponse(BaseModel):
    book_count: int
    moods: List[MoodCount] = []
    pacing: List[PacingStatResponse] = []
    complexity: List[ComplexityCount] = []
    subjects: List[SubjectStatResponse] = []
    structural_flags: List[StructuralFlagResponse] = []
    formats: Dict[str, int] = {}
    diverse_cast_percent: int = 0
    winning_combo: Optional[WinningComboResponse] = None


class MoodBadge(BaseModel):
    mood: str
    color: str


class MoodSummaryResponse(BaseModel):
    has_enough_data: bool
    moods: List[MoodBadge] = []
    pacing: Optional[str] = None


class CommunityMood(BaseModel):
    mood: str
    percentage: int


class CommunityInsightResponse(BaseModel):
    summary: str
    has_data: bool
    moods: List[CommunityMood] = []
    average_pacing: Optional[str] = None
    total_reviews: int = 0


class PaceAlertResponse(BaseModel):
    goal_id: str
    goal_type: str
    severity: str  # warning | critical
    message: str
    required_daily_pace: float
    current_progress: int
    target: int


class GoalInsightResponse(BaseModel):
    goal_id: str
    goal_type: str
    target: int
    current: int
    required_daily_pace: float
    time_elapsed_percent: float
    progress_percent: float
    is_on_track: bool
    start_date: dt.date
    end_date: dt.date


class GoalInsightsResponse(BaseModel):
    insights: List[GoalInsightResponse] = []
    alerts: List[PaceAlertResponse] = []
    success_rate: int = 0
    total_goals: int = 0
