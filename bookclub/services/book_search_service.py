"""Book lookup against the Google Books volumes API, used to prefill the catalog form."""

from __future__ import annotations

import logging

import httpx

from bookclub.core.config import settings
from bookclub.schemas.book import BookSearchResult
from bookclub.services.http_service import request_with_retries

logger = logging.getLogger(__name__)

MAX_RESULTS = 5
# ISBN-13 is preferred over ISBN-10 when a volume lists both
ISBN_TYPES = ("ISBN_13", "ISBN_10")


class BookSearchError(Exception):
    """The lookup service failed or answered with an error."""

    pass


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.BOOK_SEARCH_TIMEOUT_SECONDS)


def _secure(url: str | None) -> str | None:
    if url and url.startswith("http:"):
        return "https:" + url[len("http:"):]
    return url


def _pick_isbn(identifiers: list[dict]) -> str | None:
    by_type = {i.get("type"): i.get("identifier") for i in identifiers}
    for isbn_type in ISBN_TYPES:
        if by_type.get(isbn_type):
            return by_type[isbn_type]
    return None


def parse_volume(volume: dict) -> BookSearchResult | None:
    """Map one Google Books volume to a search result; None without a title."""
    info = volume.get("volumeInfo") or {}
    title = (info.get("title") or "").strip()
    if not title:
        return None

    categories = info.get("categories") or []
    return BookSearchResult(
        title=title,
        author=", ".join(info.get("authors") or []),
        description=info.get("description"),
        cover_url=_secure((info.get("imageLinks") or {}).get("thumbnail")),
        isbn=_pick_isbn(info.get("industryIdentifiers") or []),
        category=categories[0] if categories else None,
    )


async def search_books(query: str, limit: int = MAX_RESULTS) -> list[BookSearchResult]:
    """
    Search volumes by free text.

    Blank queries return an empty list without calling out.

    Raises:
        BookSearchError: Transport failure or a non-200 answer
    """
    query = query.strip()
    if not query:
        return []

    params = {
        "q": query,
        "maxResults": limit,
        "langRestrict": settings.BOOK_SEARCH_LANG,
    }
    if settings.GOOGLE_BOOKS_API_KEY:
        params["key"] = settings.GOOGLE_BOOKS_API_KEY

    async with _client() as client:
        try:
            response = await request_with_retries(
                lambda: client.get(settings.GOOGLE_BOOKS_API_URL, params=params)
            )
        except httpx.RequestError as exc:
            logger.warning("Book lookup unreachable", exc_info=exc)
            raise BookSearchError("Book search is unavailable") from exc

    if response.status_code != 200:
        logger.warning("Book lookup returned %s", response.status_code)
        raise BookSearchError("Book search is unavailable")

    results = []
    for volume in response.json().get("items") or []:
        result = parse_volume(volume)
        if result:
            results.append(result)
    return results[:limit]
