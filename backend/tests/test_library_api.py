"""Integration tests for library, reading, goal and book endpoints."""
from datetime import date, datetime
from uuid import uuid4

from sqlalchemy.orm import Session

from readtrack.core.auth import get_optional_user
from readtrack.core.config import settings
from readtrack.main import app
from readtrack.models import Book, ReadingProgress, ReadingStatus, User, UserBook
from readtrack.routers.books import get_google_books_client
from readtrack.services.book_cache import BookMetadataError, NormalizedBook


def test_status_flow(client, make_book):
    book = make_book()

    response = client.put(f"/api/user-books/{book.id}/status", json={"status": "currently_reading"})
    assert response.status_code == 200
    assert response.json()["status"] == "currently_reading"
    assert response.json()["date_started"] is not None

    response = client.put(f"/api/user-books/{book.id}/status", json={"status": "finished"})
    assert response.status_code == 200
    assert response.json()["date_finished"] is not None

    response = client.put(f"/api/user-books/{book.id}/status", json={"status": "paused"})
    assert response.status_code == 400

    library = client.get("/api/user-books", params={"status": "finished"}).json()
    assert [ub["book"]["title"] for ub in library] == ["Test Book"]


def test_status_for_unknown_book(client):
    response = client.put(f"/api/user-books/{uuid4()}/status", json={"status": "finished"})
    assert response.status_code == 404


def test_review_normalizes_rating(client, make_book):
    book = make_book()
    response = client.put(
        f"/api/user-books/{book.id}/review",
        json={"rating": 4.62, "attributes": {"moods": ["dark"], "pacing": "fast"}},
    )
    assert response.status_code == 200
    assert response.json()["rating"] == 4.5
    assert response.json()["review_attributes"]["pacing"] == "fast"


def test_review_rejects_out_of_range_rating(client, make_book):
    book = make_book()
    response = client.put(f"/api/user-books/{book.id}/review", json={"rating": 5.3})
    assert response.status_code == 400
    assert "between 0 and 5" in response.json()["detail"]


def test_redeem(client, db: Session, test_user, make_book):
    book = make_book()
    db.add(UserBook(
        user_id=test_user.id,
        book_id=book.id,
        status=ReadingStatus.DNF,
        notes="Too slow",
        date_added=datetime(2026, 1, 1),
    ))
    db.add(ReadingProgress(user_id=test_user.id, book_id=book.id, pages_read=80))
    db.commit()

    response = client.post(f"/api/user-books/{book.id}/redeem")
    assert response.status_code == 200
    assert response.json()["status"] == "want_to_read"
    assert response.json()["notes"] == "Previous Attempt: Too slow"

    assert client.post(f"/api/user-books/{uuid4()}/redeem").status_code == 404


def test_progress_and_analytics(client, make_book):
    book = make_book(page_count=200)

    response = client.post("/api/reading/progress", json={"book_id": str(book.id), "current_page": 30, "duration_minutes": 40})
    assert response.status_code == 200
    assert response.json()["pages_logged"] == 30

    response = client.post("/api/reading/progress", json={"book_id": str(book.id), "current_page": 500})
    assert response.json()["pages_read"] == 200
    assert response.json()["pages_logged"] == 170

    analytics = client.get(f"/api/reading/{book.id}/analytics").json()
    assert analytics["pages_read_today"] == 200
    assert analytics["daily_goal"] == 30
    assert analytics["total_reading_time"] == "0h 40m"
    assert len(analytics["weekly_data"]) == 7


def test_progress_rejects_negative_page(client, make_book):
    book = make_book()
    response = client.post("/api/reading/progress", json={"book_id": str(book.id), "current_page": -5})
    assert response.status_code == 422


def test_goals_create_and_conflict(client):
    year = date.today().year
    response = client.post("/api/goals", json={"type": "books", "target": 12})
    assert response.status_code == 201
    assert response.json()["year"] == year
    assert response.json()["status"] == "active"

    response = client.post("/api/goals", json={"type": "books", "target": 20, "year": year})
    assert response.status_code == 409

    goals = client.get("/api/goals").json()
    assert len(goals) == 1


def test_goal_dates_must_be_ordered(client):
    response = client.post(
        "/api/goals",
        json={"type": "pages", "target": 100, "start_date": "2026-05-01", "end_date": "2026-04-01"},
    )
    assert response.status_code == 400


class StubClient:
    def __init__(self, books=None, error=None):
        self.books = books or []
        self.error = error

    def search(self, query, limit=20, offset=0):
        if self.error:
            raise self.error
        return self.books, len(self.books)


def test_book_search_and_lookup(client):
    stub = StubClient(books=[NormalizedBook(google_books_id="g1", title="Circe", authors=["Madeline Miller"])])
    app.dependency_overrides[get_google_books_client] = lambda: stub

    response = client.get("/api/books/search", params={"q": "circe"})
    assert response.status_code == 200
    body = response.json()
    assert body["from_google_books"] == 1
    assert body["books"][0]["title"] == "Circe"

    book_id = body["books"][0]["id"]
    response = client.get(f"/api/books/{book_id}")
    assert response.status_code == 200
    assert response.json()["authors"] == ["Madeline Miller"]

    assert client.get(f"/api/books/{uuid4()}").status_code == 404


def test_book_search_upstream_failure(client):
    app.dependency_overrides[get_google_books_client] = lambda: StubClient(error=BookMetadataError("down"))
    response = client.get("/api/books/search", params={"q": "circe"})
    assert response.status_code == 502


def test_community_insights(client, db: Session, test_user, make_book):
    book = make_book()
    assert client.get(f"/api/books/{book.id}/community-insights").json()["summary"] == "No community reviews yet"

    db.add(UserBook(
        user_id=test_user.id,
        book_id=book.id,
        status=ReadingStatus.FINISHED,
        review_attributes={"moods": ["dark"], "pacing": "slow"},
        date_added=datetime(2026, 1, 1),
    ))
    db.commit()

    body = client.get(f"/api/books/{book.id}/community-insights").json()
    assert body["has_data"] is True
    assert body["summary"] == "Community says: 100% Dark, Slow-paced"


def test_community_insights_excludes_the_requesting_reader(client, db: Session, test_user, make_book):
    book = make_book()
    other = User(auth_user_id=str(uuid4()), email="other@example.com")
    db.add(other)
    db.commit()
    for user, moods in ((test_user, ["cozy"]), (other, ["dark"])):
        db.add(UserBook(
            user_id=user.id,
            book_id=book.id,
            status=ReadingStatus.FINISHED,
            review_attributes={"moods": moods},
            date_added=datetime(2026, 1, 1),
        ))
    db.commit()

    anonymous = client.get(f"/api/books/{book.id}/community-insights").json()
    assert anonymous["total_reviews"] == 2

    app.dependency_overrides[get_optional_user] = lambda: test_user
    body = client.get(f"/api/books/{book.id}/community-insights").json()
    assert body["total_reviews"] == 1
    assert body["summary"] == "Community says: 100% Dark"


def test_daily_goal_round_trip(client, test_user):
    assert client.get("/api/me/daily-goal").json() == {"daily_goal": 30}

    response = client.put("/api/me/daily-goal", json={"daily_goal": 55})
    assert response.status_code == 200
    assert response.json() == {"daily_goal": 55}
    assert test_user.daily_reading_goal == 55
    assert client.get("/api/me").json()["daily_reading_goal"] == 55


def test_daily_goal_bounds(client):
    assert client.put("/api/me/daily-goal", json={"daily_goal": 0}).status_code == 422
    assert client.put("/api/me/daily-goal", json={"daily_goal": 1001}).status_code == 422


def test_daily_goal_falls_back_to_default(client, db: Session, test_user):
    test_user.daily_reading_goal = None
    db.commit()
    assert client.get("/api/me/daily-goal").json() == {"daily_goal": settings.DEFAULT_DAILY_GOAL}


def test_goal_edit_and_target_increase(client):
    goal_id = client.post("/api/goals", json={"type": "pages", "target": 100}).json()["id"]

    response = client.patch(f"/api/goals/{goal_id}", json={"target": 250, "visibility": "public"})
    assert response.status_code == 200
    assert response.json()["target"] == 250
    assert response.json()["visibility"] == "public"

    response = client.patch(f"/api/goals/{goal_id}", json={"start_date": "2026-05-01", "end_date": "2026-04-01"})
    assert response.status_code == 400

    response = client.post(f"/api/goals/{goal_id}/increase-target")
    assert response.json()["target"] == 260

    response = client.post(f"/api/goals/{goal_id}/increase-target", json={"amount": 40})
    assert response.json()["target"] == 300

    assert client.patch(f"/api/goals/{uuid4()}", json={"target": 5}).status_code == 404
    assert client.post(f"/api/goals/{uuid4()}/increase-target").status_code == 404


class VolumeStubClient:
    def __init__(self):
        self.lookups = []

    def get_volume(self, volume_id):
        self.lookups.append(volume_id)
        if volume_id == "missing":
            return None
        return NormalizedBook(google_books_id=volume_id, title="Piranesi", authors=["Susanna Clarke"])


def test_book_lookup_by_google_id(client, db: Session):
    stub = VolumeStubClient()
    app.dependency_overrides[get_google_books_client] = lambda: stub

    first = client.get("/api/books/google/pira1")
    assert first.status_code == 200
    assert first.json()["title"] == "Piranesi"

    second = client.get("/api/books/google/pira1")
    assert second.json()["id"] == first.json()["id"]
    assert stub.lookups == ["pira1"]
    assert db.query(Book).filter(Book.google_books_id == "pira1").count() == 1

    assert client.get("/api/books/google/missing").status_code == 404
