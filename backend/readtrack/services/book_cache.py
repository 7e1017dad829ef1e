"""
Google Books lookups cached in the local ``books`` table.

Search results are normalized, upserted by ``google_books_id`` and returned
as Book rows in the order Google ranked them.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests
from sqlalchemy.orm import Session

from readtrack.core.config import settings
from readtrack.models import Book

logger = logging.getLogger(__name__)

MAX_RESULTS_PER_REQUEST = 40
SEARCH_FIELDS = (
    "kind,totalItems,items(id,volumeInfo(title,subtitle,authors,publisher,publishedDate,"
    "description,industryIdentifiers,pageCount,categories,language,imageLinks))"
)
USER_AGENT = "readtrack/1.0"


class BookMetadataError(RuntimeError):
    """Google Books was unreachable or answered with an error."""
    pass


@dataclass
class NormalizedBook:
    google_books_id: str
    title: str
    subtitle: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    description: Optional[str] = None
    subjects: List[str] = field(default_factory=list)
    publish_date: Optional[str] = None
    publishers: List[str] = field(default_factory=list)
    isbn_10: List[str] = field(default_factory=list)
    isbn_13: List[str] = field(default_factory=list)
    page_count: Optional[int] = None
    cover_url_small: Optional[str] = None
    cover_url_medium: Optional[str] = None
    cover_url_large: Optional[str] = None
    language: Optional[str] = None


@dataclass
class LazyFetchResult:
    books: List[Book]
    total: int
    from_cache: int
    from_google_books: int


def _split_isbns(identifiers: Optional[List[Dict[str, Any]]]) -> Tuple[List[str], List[str]]:
    isbn_10: List[str] = []
    isbn_13: List[str] = []
    for ident in identifiers or []:
        value = (ident.get("identifier") or "").replace("-", "").replace(" ", "")
        if not value:
            continue
        kind = ident.get("type")
        if kind == "ISBN_10" or (kind != "ISBN_13" and len(value) == 10):
            isbn_10.append(value)
        elif kind == "ISBN_13" or len(value) == 13:
            isbn_13.append(value)
    return isbn_10, isbn_13


def _https(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return "https://" + url[len("http://"):] if url.startswith("http://") else url


def _cover_urls(image_links: Optional[Dict[str, str]]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    links = image_links or {}
    small = links.get("smallThumbnail") or links.get("thumbnail")
    medium = links.get("medium") or links.get("thumbnail")
    large = links.get("large") or links.get("extraLarge") or links.get("medium")
    return _https(small), _https(medium), _https(large)


def normalize_volume(volume: Dict[str, Any]) -> NormalizedBook:
    info = volume.get("volumeInfo") or {}
    isbn_10, isbn_13 = _split_isbns(info.get("industryIdentifiers"))
    small, medium, large = _cover_urls(info.get("imageLinks"))
    publisher = info.get("publisher")

    return NormalizedBook(
        google_books_id=volume["id"],
        title=info.get("title") or "Untitled",
        subtitle=info.get("subtitle"),
        authors=list(info.get("authors") or []),
        description=info.get("description"),
        subjects=list(info.get("categories") or []),
        publish_date=info.get("publishedDate"),
        publishers=[publisher] if publisher else [],
        isbn_10=isbn_10,
        isbn_13=isbn_13,
        page_count=info.get("pageCount"),
        cover_url_small=small,
        cover_url_medium=medium,
        cover_url_large=large,
        language=info.get("language"),
    )


class GoogleBooksClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_BOOKS_API_KEY
        self.base_url = (base_url or settings.GOOGLE_BOOKS_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GOOGLE_BOOKS_TIMEOUT_SECONDS

    def _get(self, path: str, params: Dict[str, Any]) -> requests.Response:
        if self.api_key:
            params["key"] = self.api_key
        url = f"{self.base_url}{path}"
        try:
            return requests.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Google Books request failed: %s %s", path, e)
            raise BookMetadataError(f"Google Books request failed: {e}") from e

    @staticmethod
    def _json(resp: requests.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("Google Books returned a non-JSON body: status=%s", resp.status_code)
            raise BookMetadataError("Google Books returned an unreadable response") from e
        if not isinstance(data, dict):
            raise BookMetadataError("Google Books returned an unexpected payload")
        return data

    def search(self, query: str, limit: int = 20, offset: int = 0) -> Tuple[List[NormalizedBook], int]:
        """Return one page of normalized results and Google's ``totalItems``."""
        params = {
            "q": query,
            "maxResults": max(1, min(limit, MAX_RESULTS_PER_REQUEST)),
            "startIndex": max(0, offset),
            "fields": SEARCH_FIELDS,
        }
        if not self.api_key:
            logger.debug("No GOOGLE_BOOKS_API_KEY set; using the public quota")

        resp = self._get("/volumes", params)
        if not resp.ok:
            raise BookMetadataError(f"Google Books search failed: {resp.status_code}")

        data = self._json(resp)
        items = data.get("items") or []
        return [normalize_volume(item) for item in items], int(data.get("totalItems") or 0)

    def get_volume(self, volume_id: str) -> Optional[NormalizedBook]:
        resp = self._get(f"/volumes/{volume_id}", {})
        if resp.status_code == 404:
            return None
        if not resp.ok:
            raise BookMetadataError(f"Failed to fetch volume {volume_id}: {resp.status_code}")
        return normalize_volume(self._json(resp))


def _apply_normalized(book: Book, normalized: NormalizedBook) -> Book:
    book.google_books_id = normalized.google_books_id
    book.title = normalized.title
    book.subtitle = normalized.subtitle
    book.authors = normalized.authors
    book.description = normalized.description
    book.subjects = normalized.subjects
    book.publish_date = normalized.publish_date
    book.publishers = normalized.publishers
    book.isbn_10 = normalized.isbn_10[0] if normalized.isbn_10 else None
    book.isbn_13 = normalized.isbn_13[0] if normalized.isbn_13 else None
    book.page_count = normalized.page_count
    book.cover_url_small = normalized.cover_url_small
    book.cover_url_medium = normalized.cover_url_medium
    book.cover_url_large = normalized.cover_url_large
    book.language = normalized.language
    return book


def lazy_fetch_books(
    db: Session,
    client: GoogleBooksClient,
    query: str,
    limit: int = 20,
    offset: int = 0,
) -> LazyFetchResult:
    """
    Search Google Books and make sure every hit exists locally.

    Only the requested page is fetched. Books already cached are returned
    as-is; the rest are inserted in one commit.
    """
    normalized, total = client.search(query, limit=limit, offset=offset)
    if not normalized:
        return LazyFetchResult(books=[], total=0, from_cache=0, from_google_books=0)

    ids = [b.google_books_id for b in normalized]
    cached = {
        book.google_books_id: book
        for book in db.query(Book).filter(Book.google_books_id.in_(ids)).all()
    }

    new_books = []
    for item in normalized:
        if item.google_books_id in cached:
            continue
        book = _apply_normalized(Book(), item)
        db.add(book)
        cached[item.google_books_id] = book
        new_books.append(book)

    if new_books:
        db.commit()
        for book in new_books:
            db.refresh(book)

    # Duplicate volume ids within one page collapse to a single row
    ordered = []
    seen = set()
    for item in normalized:
        if item.google_books_id in seen:
            continue
        seen.add(item.google_books_id)
        ordered.append(cached[item.google_books_id])

    logger.info(
        "Book search q=%r: %s results (%s cached, %s new)",
        query,
        len(ordered),
        len(ordered) - len(new_books),
        len(new_books),
    )
    return LazyFetchResult(
        books=ordered,
        total=total,
        from_cache=len(ordered) - len(new_books),
        from_google_books=len(new_books),
    )


def get_or_fetch_book(db: Session, client: GoogleBooksClient, google_books_id: str) -> Optional[Book]:
    book = db.query(Book).filter(Book.google_books_id == google_books_id).one_or_none()
    if book is not None:
        return book
    normalized = client.get_volume(google_books_id)
    if normalized is None:
        return None
    book = _apply_normalized(Book(), normalized)
    db.add(book)
    db.commit()
    db.refresh(book)
    return book
