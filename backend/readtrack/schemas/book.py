from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class BookResponse(BaseModel):
    id: UUID
    google_books_id: Optional[str]
    title: str
    subtitle: Optional[str]
    authors: List[str] = []
    description: Optional[str]
    subjects: List[str] = []
    publishers: List[str] = []
    publish_date: Optional[str]
    isbn_10: Optional[str]
    isbn_13: Optional[str]
    page_count: Optional[int]
    cover_url_small: Optional[str]
    cover_url_medium: Optional[str]
    cover_url_large: Optional[str]
    language: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookSearchResponse(BaseModel):
    books: List[BookResponse]
    total: int
    from_cache: int
    from_google_books: int
