from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    Date,
    DateTime,
    ForeignKey,
    Enum as SQLEnum,
    JSON,
    Float,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
import sqlalchemy as sa
from readtrack.database import Base


class ReadingStatus(str, enum.Enum):
    WANT_TO_READ = "want_to_read"
    CURRENTLY_READING = "currently_reading"
    FINISHED = "finished"
    PAUSED = "paused"
    DNF = "dnf"


class ReadingFormat(str, enum.Enum):
    PHYSICAL = "physical"
    EBOOK = "ebook"
    AUDIOBOOK = "audiobook"


class GoalType(str, enum.Enum):
    BOOKS = "books"
    PAGES = "pages"
    GENRES = "genres"
    CONSISTENCY = "consistency"


class GoalVisibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


def _enum_column(enum_cls, name: str, **kwargs) -> Column:
    return Column(
        SQLEnum(
            enum_cls,
            name=name,
            values_callable=lambda members: [e.value for e in members],
        ),
        **kwargs,
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    auth_user_id = Column(String, unique=True, index=True, nullable=True)  # Supabase user UUID
    email = Column(String, unique=True, index=True, nullable=True)
    daily_reading_goal = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user_books = relationship("UserBook", back_populates="user")
    goals = relationship("ReadingGoal", back_populates="user")


class Book(Base):
    """Reference data cached from Google Books on first lookup."""
    __tablename__ = "books"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    google_books_id = Column(String, unique=True, index=True, nullable=True)
    title = Column(String, nullable=False)
    subtitle = Column(String, nullable=True)
    authors = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=True)
    subjects = Column(JSON, nullable=False, default=list)
    publishers = Column(JSON, nullable=False, default=list)
    publish_date = Column(String, nullable=True)  # raw upstream value ("2019", "2019-04-02")
    isbn_10 = Column(String, nullable=True)
    isbn_13 = Column(String, nullable=True)
    page_count = Column(Integer, nullable=True)
    cover_url_small = Column(String, nullable=True)
    cover_url_medium = Column(String, nullable=True)
    cover_url_large = Column(String, nullable=True)
    language = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user_books = relationship("UserBook", back_populates="book")


class UserBook(Base):
    """
    A user's copy of a book: shelf status, rating and review attributes.
    One row per (user, book) pair.
    """
    __tablename__ = "user_books"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(Uuid, ForeignKey("books.id"), nullable=False, index=True)
    status = _enum_column(ReadingStatus, "readingstatus", nullable=False, default=ReadingStatus.WANT_TO_READ)
    rating = Column(Float, nullable=True)
    review_attributes = Column(JSON(none_as_null=True), nullable=True)  # moods, pacing, difficulty, structural flags
    reading_format = _enum_column(ReadingFormat, "readingformat", nullable=True)
    notes = Column(Text, nullable=True)
    date_added = Column(DateTime, default=datetime.utcnow, nullable=False)
    date_started = Column(DateTime, nullable=True)
    date_finished = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_user_books_user_book"),
    )

    # Relationships
    user = relationship("User", back_populates="user_books")
    book = relationship("Book", back_populates="user_books")


class ReadingSession(Base):
    """Append-only log of pages read on a given day."""
    __tablename__ = "reading_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(Uuid, ForeignKey("books.id"), nullable=False, index=True)
    session_date = Column(Date, nullable=False, index=True)
    pages_read = Column(Integer, nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    __table_args__ = (
        sa.Index("idx_reading_sessions_user_date", "user_id", "session_date"),
    )


class ReadingProgress(Base):
    """Current page per (user, book); replaced on every progress update."""
    __tablename__ = "reading_progress"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(Uuid, ForeignKey("books.id"), nullable=False, index=True)
    pages_read = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_reading_progress_user_book"),
    )


class ReadingGoal(Base):
    __tablename__ = "reading_goals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    type = _enum_column(GoalType, "goaltype", nullable=False)
    target = Column(Integer, nullable=False)
    current = Column(Integer, nullable=False, default=0)
    year = Column(Integer, nullable=False)
    visibility = _enum_column(GoalVisibility, "goalvisibility", nullable=False, default=GoalVisibility.PRIVATE)
    status = _enum_column(GoalStatus, "goalstatus", nullable=False, default=GoalStatus.ACTIVE)
    period_months = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="goals")
