"""Aggregate other readers' review attributes for a single book."""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
import math

from readtrack.services.reading_dna import capitalize

PACING_SCALE = {"slow": 1, "medium": 2, "fast": 3}
PACING_LABELS = {1: "Slow", 2: "Medium", 3: "Fast"}
SUMMARY_TOP_MOODS = 2

NO_REVIEWS_SUMMARY = "No community reviews yet"
NO_INSIGHTS_SUMMARY = "No community insights available"


@dataclass
class CommunityInsight:
    summary: str
    moods: List[Tuple[str, int]] = field(default_factory=list)  # (mood, percentage)
    average_pacing: Optional[str] = None
    total_reviews: int = 0

    @classmethod
    def no_data(cls) -> "CommunityInsight":
        return cls(summary=NO_REVIEWS_SUMMARY)

    @property
    def has_data(self) -> bool:
        return self.total_reviews > 0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def majority_pacing(labels: Iterable[Any]) -> Optional[str]:
    """Mean of the Slow/Medium/Fast ordinal scale, rounded and mapped back."""
    scores = [
        PACING_SCALE[label.strip().lower()]
        for label in labels
        if isinstance(label, str) and label.strip().lower() in PACING_SCALE
    ]
    if not scores:
        return None
    return PACING_LABELS[_round_half_up(sum(scores) / len(scores))]


def aggregate_community_insights(review_attributes: Iterable[Optional[Dict[str, Any]]]) -> CommunityInsight:
    """
    Mood percentages are relative to the number of respondents, so they do
    not add up to 100 when reviewers pick several moods.
    """
    respondents = 0
    mood_counts: Counter = Counter()
    pacing_labels: List[str] = []

    for attributes in review_attributes:
        if not isinstance(attributes, dict):
            continue
        respondents += 1

        moods = attributes.get("moods")
        if isinstance(moods, list):
            mood_counts.update({capitalize(m) for m in moods if isinstance(m, str) and m.strip()})

        pacing = attributes.get("pacing")
        if isinstance(pacing, str) and pacing:
            pacing_labels.append(pacing)

    if respondents == 0:
        return CommunityInsight.no_data()

    moods = sorted(
        ((mood, _round_half_up(count / respondents * 100)) for mood, count in mood_counts.items()),
        key=lambda item: (-item[1], item[0].casefold()),
    )
    average_pacing = majority_pacing(pacing_labels)

    parts = []
    if moods:
        parts.append(", ".join(f"{pct}% {mood}" for mood, pct in moods[:SUMMARY_TOP_MOODS]))
    if average_pacing:
        parts.append(f"{average_pacing}-paced")

    return CommunityInsight(
        summary=f"Community says: {', '.join(parts)}" if parts else NO_INSIGHTS_SUMMARY,
        moods=moods,
        average_pacing=average_pacing,
        total_reviews=respondents,
    )
