"""
Reading DNA: what a user's best-loved books have in common.

Frequency ties are broken alphabetically (case-insensitive) so that the same
library always produces the same profile, whatever order the rows came back in.
"""
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import math
import re

logger = logging.getLogger(__name__)

TOP_TIER_RATING = 4.5
MIN_SUBJECT_SUPPORT = 2
TOP_MOODS = 2
MIN_MOOD_OCCURRENCES = 2
DNA_TOP_SUBJECTS = 10
MOOD_SUMMARY_MIN_BOOKS = 3
MOOD_SUMMARY_TOP_MOODS = 4
UNCATEGORIZED = "Uncategorized"

STRUCTURAL_FLAG_KEYS = [
    "plot_driven",
    "diverse_cast",
    "multiple_pov",
    "character_development",
    "world_building",
    "twist_ending",
    "strong_prose",
]

MOOD_COLORS = {
    "Dark": "purple",
    "Lighthearted": "yellow",
    "Emotional": "pink",
    "Tense": "red",
    "Reflective": "blue",
    "Hopeful": "green",
    "Melancholic": "indigo",
    "Humorous": "orange",
    "Suspenseful": "red",
    "Romantic": "pink",
    "Mysterious": "purple",
    "Inspiring": "green",
    "Thought-provoking": "blue",
    "Adventurous": "orange",
    "Nostalgic": "amber",
}
DEFAULT_MOOD_COLOR = "gray"


@dataclass
class RatedBook:
    """The slice of a UserBook (plus its Book's subjects) the DNA logic reads."""
    rating: Any = None
    review_attributes: Optional[Dict[str, Any]] = None
    reading_format: Optional[str] = None
    subjects: List[Any] = field(default_factory=list)
    status: Optional[str] = None


@dataclass
class WinningCombo:
    pacing: Optional[str]
    reading_format: Optional[str]
    moods: List[str]
    subject: Optional[str]
    summary: str
    book_count: int
    average_rating: float


@dataclass
class PacingStat:
    label: str
    avg_rating: float
    count: int


@dataclass
class SubjectStat:
    name: str
    count: int
    avg_rating: float


@dataclass
class ReadingDNA:
    moods: List[Tuple[str, int]] = field(default_factory=list)
    pacing_stats: List[PacingStat] = field(default_factory=list)
    complexity: List[Tuple[str, int]] = field(default_factory=list)
    subjects: List[SubjectStat] = field(default_factory=list)
    structural_flags: List[Tuple[str, float]] = field(default_factory=list)
    formats: Dict[str, int] = field(default_factory=lambda: {"physical": 0, "digital": 0, "audiobook": 0})
    diverse_cast_percent: int = 0
    winning_combo: Optional[WinningCombo] = None
    book_count: int = 0


@dataclass
class MoodSummary:
    has_enough_data: bool
    moods: List[Tuple[str, str]] = field(default_factory=list)  # (mood, colour)
    pacing: Optional[str] = None


def rated_book_from_user_book(user_book) -> RatedBook:
    """Adapt a UserBook ORM row (with its ``book`` relationship loaded)."""
    book = getattr(user_book, "book", None)
    status = getattr(user_book, "status", None)
    reading_format = getattr(user_book, "reading_format", None)
    return RatedBook(
        rating=user_book.rating,
        review_attributes=user_book.review_attributes,
        reading_format=getattr(reading_format, "value", reading_format),
        subjects=list(getattr(book, "subjects", None) or []),
        status=getattr(status, "value", status),
    )


def valid_rating(value) -> Optional[float]:
    """Return the rating as a float, or None when it is missing or out of range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or value < 0 or value > 5:
        return None
    return float(value)


def format_label(value: str) -> str:
    """Title-case each word and join with hyphens: fast-paced -> Fast-Paced."""
    words = [w for w in re.split(r"[-_\s]+", value.strip()) if w]
    return "-".join(w[:1].upper() + w[1:].lower() for w in words)


def capitalize(value: str) -> str:
    value = value.strip()
    return value[:1].upper() + value[1:].lower()


def _attrs(book: RatedBook) -> Dict[str, Any]:
    attrs = book.review_attributes
    return attrs if isinstance(attrs, dict) else {}


def _pacing_of(book: RatedBook) -> Optional[str]:
    pacing = _attrs(book).get("pacing")
    if isinstance(pacing, str) and pacing.strip():
        return format_label(pacing)
    return None


def _moods_of(book: RatedBook) -> List[str]:
    moods = _attrs(book).get("moods")
    if not isinstance(moods, list):
        return []
    return [capitalize(m) for m in moods if isinstance(m, str) and m.strip()]


def _subjects_of(book: RatedBook) -> List[str]:
    subjects = book.subjects if isinstance(book.subjects, list) else []
    # Normalized first, then de-duplicated: "Thriller" and "thriller" are one subject per book
    seen: Dict[str, None] = {}
    for subject in subjects:
        if isinstance(subject, str) and subject.strip():
            seen.setdefault(capitalize(subject), None)
    return list(seen)


def _is_true(value) -> bool:
    return value is True or value == "true"


def rank_counts(counter: Counter) -> List[Tuple[str, int]]:
    """Most frequent first; equal counts in case-insensitive alphabetical order."""
    return sorted(counter.items(), key=lambda item: (-item[1], item[0].casefold(), item[0]))


def _most_frequent(counter: Counter) -> Optional[str]:
    ranked = rank_counts(counter)
    return ranked[0][0] if ranked else None


def _sweet_spot_summary(
    pacing: Optional[str],
    moods: List[str],
    subject: Optional[str],
    reading_format: Optional[str],
) -> str:
    descriptors = []
    if pacing:
        descriptors.append(pacing)
    descriptors.extend(moods)
    if subject:
        descriptors.append(capitalize(subject))

    if not descriptors and not reading_format:
        return "Not enough data to determine your sweet spot."

    sentence = f"{', '.join(descriptors)} books" if descriptors else "Books"
    if reading_format:
        sentence += f" read in {capitalize(reading_format)} format"
    return f"Your Sweet Spot: {sentence}."


def calculate_winning_combo(finished_books: Iterable[RatedBook]) -> Optional[WinningCombo]:
    """
    Profile of the books rated 4.5 or higher.

    Returns None when no finished book qualifies; that is an ordinary outcome
    for new users, not an error.
    """
    top_tier = []
    for book in finished_books:
        if book.status is not None and book.status != "finished":
            continue
        rating = valid_rating(book.rating)
        if rating is not None and rating >= TOP_TIER_RATING:
            top_tier.append((book, rating))

    if not top_tier:
        return None

    pacing_counts: Counter = Counter()
    format_counts: Counter = Counter()
    mood_counts: Counter = Counter()
    subject_ratings: Dict[str, List[float]] = defaultdict(list)

    for book, rating in top_tier:
        pacing = _pacing_of(book)
        if pacing:
            pacing_counts[pacing] += 1
        if isinstance(book.reading_format, str) and book.reading_format:
            format_counts[book.reading_format] += 1
        mood_counts.update(set(_moods_of(book)))
        for subject in _subjects_of(book):
            subject_ratings[subject].append(rating)

    pacing = _most_frequent(pacing_counts)
    reading_format = _most_frequent(format_counts)
    moods = [mood for mood, _ in rank_counts(mood_counts)[:TOP_MOODS]]

    eligible = [
        (subject, sum(ratings) / len(ratings))
        for subject, ratings in subject_ratings.items()
        if len(ratings) >= MIN_SUBJECT_SUPPORT
    ]
    eligible.sort(key=lambda item: (-item[1], item[0].casefold(), item[0]))
    subject = eligible[0][0] if eligible else None

    ratings = [rating for _, rating in top_tier]
    combo = WinningCombo(
        pacing=pacing,
        reading_format=reading_format,
        moods=moods,
        subject=subject,
        summary=_sweet_spot_summary(pacing, moods, subject, reading_format),
        book_count=len(top_tier),
        average_rating=round(sum(ratings) / len(ratings), 2),
    )
    logger.debug("winning combo from %s books: %s", combo.book_count, combo.summary)
    return combo


def build_reading_dna(finished_books: Iterable[RatedBook]) -> ReadingDNA:
    """Full DNA breakdown over finished books that carry review attributes."""
    books = [b for b in finished_books if isinstance(b.review_attributes, dict)]
    dna = ReadingDNA(book_count=len(books))
    if not books:
        return dna

    mood_counts: Counter = Counter()
    pacing_ratings: Dict[str, List[float]] = defaultdict(list)
    difficulty_counts: Counter = Counter()
    subject_counts: Counter = Counter()
    subject_ratings: Dict[str, List[float]] = defaultdict(list)
    flag_true: Counter = Counter()
    format_counts: Counter = Counter()

    for book in books:
        attrs = _attrs(book)
        rating = valid_rating(book.rating)

        mood_counts.update(set(_moods_of(book)))

        pacing = _pacing_of(book)
        if pacing and rating is not None:
            pacing_ratings[pacing].append(rating)

        difficulty = attrs.get("difficulty")
        if isinstance(difficulty, str) and difficulty.strip():
            difficulty_counts[capitalize(difficulty)] += 1

        for key in STRUCTURAL_FLAG_KEYS:
            if _is_true(attrs.get(key)):
                flag_true[key] += 1

        reading_format = book.reading_format or "physical"
        format_counts["digital" if reading_format == "ebook" else reading_format] += 1

        subjects = _subjects_of(book)
        if not subjects:
            if rating is not None:
                subject_counts[UNCATEGORIZED] += 1
                subject_ratings[UNCATEGORIZED].append(rating)
            continue
        for subject in subjects:
            subject_counts[subject] += 1
            if rating is not None:
                subject_ratings[subject].append(rating)

    total = len(books)

    dna.moods = [(mood, count) for mood, count in rank_counts(mood_counts) if count >= MIN_MOOD_OCCURRENCES]

    dna.pacing_stats = sorted(
        (
            PacingStat(label=label, avg_rating=round(sum(r) / len(r), 2), count=len(r))
            for label, r in pacing_ratings.items()
        ),
        key=lambda stat: (-stat.avg_rating, stat.label.casefold()),
    )

    dna.complexity = rank_counts(difficulty_counts)

    dna.subjects = [
        SubjectStat(
            name=name,
            count=count,
            avg_rating=round(sum(subject_ratings[name]) / len(subject_ratings[name]), 2)
            if subject_ratings[name]
            else 0.0,
        )
        for name, count in rank_counts(subject_counts)[:DNA_TOP_SUBJECTS]
    ]

    dna.structural_flags = sorted(
        ((key, flag_true[key] / total * 100) for key in STRUCTURAL_FLAG_KEYS),
        key=lambda item: (-item[1], item[0]),
    )

    dna.formats = {
        "physical": format_counts.get("physical", 0),
        "digital": format_counts.get("digital", 0),
        "audiobook": format_counts.get("audiobook", 0),
    }
    dna.diverse_cast_percent = math.floor(flag_true["diverse_cast"] / total * 100 + 0.5)
    dna.winning_combo = calculate_winning_combo(books)
    return dna


def summarize_moods(books: Iterable[RatedBook]) -> MoodSummary:
    """
    Mood badge for the dashboard: top moods and typical pacing across the
    given pool. Needs at least three books with mood tags.
    """
    books_with_moods = 0
    mood_counts: Counter = Counter()
    pacing_counts: Counter = Counter()

    for book in books:
        if not isinstance(book.review_attributes, dict):
            continue
        moods = book.review_attributes.get("moods")
        if isinstance(moods, list) and moods:
            books_with_moods += 1
            mood_counts.update(set(_moods_of(book)))
        pacing = _pacing_of(book)
        if pacing:
            pacing_counts[pacing] += 1

    if books_with_moods < MOOD_SUMMARY_MIN_BOOKS:
        return MoodSummary(has_enough_data=False)

    return MoodSummary(
        has_enough_data=True,
        moods=[
            (mood, MOOD_COLORS.get(mood, DEFAULT_MOOD_COLOR))
            for mood, _ in rank_counts(mood_counts)[:MOOD_SUMMARY_TOP_MOODS]
        ],
        pacing=_most_frequent(pacing_counts),
    )
