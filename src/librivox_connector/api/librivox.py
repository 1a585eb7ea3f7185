"""LibriVox feed API endpoint builders.

The feed exposes three read-only listings under ``/api/feed``:
audiobooks, authors and audiotracks. All take ``format=json``; the
audiobooks listing also takes ``extended=1`` so each book carries its
authors and sections inline.
"""

import httpx

from ..models import API_BASE_URL


def _url(base: str, endpoint: str, params: dict) -> str:
    query = {k: v for k, v in params.items() if v is not None and v != ""}
    query["format"] = "json"
    return str(httpx.URL(f"{base.rstrip('/')}/{endpoint}", params=query))


def audiobooks_url(
    base: str = API_BASE_URL,
    *,
    title: str | None = None,
    author: str | None = None,
    genre: str | None = None,
    language: str | None = None,
    book_id: str | None = None,
    offset: int | None = None,
    limit: int | None = None,
) -> str:
    """Build an audiobooks listing URL. Unset filters are left out."""
    return _url(
        base,
        "audiobooks",
        {
            "id": book_id,
            "title": title,
            "author": author,
            "genre": genre,
            "language": language,
            "extended": 1,
            "offset": offset,
            "limit": limit,
        },
    )


def authors_url(
    base: str = API_BASE_URL,
    *,
    author_id: str | None = None,
    last_name: str | None = None,
) -> str:
    return _url(base, "authors", {"id": author_id, "last_name": last_name})


def tracks_url(project_id: str, base: str = API_BASE_URL) -> str:
    return _url(base, "audiotracks", {"project_id": project_id})


def records(body, key: str) -> list[dict]:
    """Pull the wrapped record list (``books``, ``authors``, ``sections``).

    Tolerates a missing key, a null value, or a non-dict body; entries that
    are not objects are skipped.
    """
    if not isinstance(body, dict):
        return []
    items = body.get(key) or []
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def raw_count(body, key: str) -> int:
    """Length of the wrapped list as sent, malformed entries included."""
    if not isinstance(body, dict):
        return 0
    items = body.get(key) or []
    return len(items) if isinstance(items, list) else 0
