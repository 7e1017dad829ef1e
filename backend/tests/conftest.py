"""Pytest configuration for backend tests."""
import sys
import os
from datetime import datetime
from pathlib import Path
from uuid import uuid4
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Import database components
from readtrack.database import Base, get_db

# Import the entire models module to ensure all models are registered with Base.metadata
# This must happen before create_all() so that all table definitions are available
import readtrack.models  # noqa: F401
from readtrack.models import Book, User


# Never the production DATABASE_URL; defaults to a private in-memory SQLite database
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="function")
def engine():
    """
    Create a test database engine with all tables.

    Function-scoped so every test starts from an empty schema; services
    commit, so isolation comes from the fresh database rather than from an
    outer transaction.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        test_engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        test_engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True, echo=False)

    if not Base.metadata.tables:
        raise RuntimeError(
            "No tables registered in Base.metadata. "
            "Did you import readtrack.models? All model classes must be imported before create_all()."
        )

    Base.metadata.create_all(bind=test_engine)

    yield test_engine

    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """Create a database session for each test."""
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
    )
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def test_user(db: Session) -> User:
    """A local user as get_current_user would resolve it."""
    user = User(auth_user_id=str(uuid4()), email="reader@example.com", daily_reading_goal=30)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_book(db: Session):
    """Factory for cached Book rows."""
    def _make_book(title: str = "Test Book", page_count=300, subjects=None, authors=None) -> Book:
        book = Book(
            title=title,
            authors=authors or ["Test Author"],
            subjects=subjects or [],
            publishers=[],
            page_count=page_count,
            created_at=datetime.utcnow(),
        )
        db.add(book)
        db.commit()
        db.refresh(book)
        return book
    return _make_book


@pytest.fixture
def client(db: Session, test_user: User):
    """TestClient with the test session and an authenticated test user."""
    from fastapi.testclient import TestClient
    from readtrack.main import app
    from readtrack.core.auth import get_current_user

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: test_user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
