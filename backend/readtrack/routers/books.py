from fastapi import APIRouter, Depends, Query, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import logging

from readtrack.core.auth import get_optional_user
from readtrack.database import get_db
from readtrack.models import Book, User, UserBook
from readtrack.schemas.book import BookResponse, BookSearchResponse
from readtrack.schemas.insights import CommunityInsightResponse
from readtrack.services import presenters
from readtrack.services.book_cache import (
    BookMetadataError,
    GoogleBooksClient,
    get_or_fetch_book,
    lazy_fetch_books,
)
from readtrack.services.community import aggregate_community_insights

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])


def get_google_books_client() -> GoogleBooksClient:
    return GoogleBooksClient()


@router.get("/search", response_model=BookSearchResponse)
def search_books(
    q: str = Query(..., min_length=1, description="Google Books query"),
    limit: int = Query(20, ge=1, le=40),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    client: GoogleBooksClient = Depends(get_google_books_client),
):
    """Search Google Books; every hit is cached locally and returned as a Book row."""
    try:
        result = lazy_fetch_books(db, client, q.strip(), limit=limit, offset=offset)
    except BookMetadataError as e:
        logger.warning("Book search failed: q=%r, error=%s", q, str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Book search is temporarily unavailable",
        )
    except Exception as e:
        db.rollback()
        logger.error("Failed to cache search results: q=%r, error=%s", q, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search books",
        )

    return BookSearchResponse(
        books=[BookResponse.model_validate(b) for b in result.books],
        total=result.total,
        from_cache=result.from_cache,
        from_google_books=result.from_google_books,
    )


@router.get("/google/{google_books_id}", response_model=BookResponse)
def get_book_by_google_id(
    google_books_id: str,
    db: Session = Depends(get_db),
    client: GoogleBooksClient = Depends(get_google_books_client),
):
    """Cached Book for a Google Books volume id, fetched and stored on first lookup."""
    try:
        book = get_or_fetch_book(db, client, google_books_id)
    except BookMetadataError as e:
        logger.warning("Volume lookup failed: google_books_id=%s, error=%s", google_books_id, str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Book lookup is temporarily unavailable",
        )
    except Exception as e:
        db.rollback()
        logger.error("Failed to cache volume: google_books_id=%s, error=%s", google_books_id, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load book",
        )

    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )
    return book


@router.get("/{book_id}/community-insights", response_model=CommunityInsightResponse)
def get_community_insights(
    book_id: UUID,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Moods and pacing aggregated across the other readers who reviewed this book."""
    query = db.query(UserBook.review_attributes).filter(
        UserBook.book_id == book_id,
        UserBook.review_attributes.isnot(None),
    )
    if current_user is not None:
        query = query.filter(UserBook.user_id != current_user.id)
    rows = query.all()
    insight = aggregate_community_insights(attrs for (attrs,) in rows)
    return presenters.present_community_insight(insight)


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: UUID, db: Session = Depends(get_db)):
    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )
    return book
