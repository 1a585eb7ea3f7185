"""Offset pagination over the audiobooks listing.

The feed has no cursor or total count, so "more pages" is inferred: a
page that comes back exactly full probably has a successor, a short or
empty one ends the listing. Sessions are immutable; ``advance`` returns
the next session alongside the page it fetched. Callers must not advance
the same session concurrently.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable

from loguru import logger

from .api.http import Fetcher, FetchPolicy
from .api.librivox import audiobooks_url, raw_count, records
from .models import API_BASE_URL, HOME_PAGE_SIZE, CatalogEntry, Page
from .normalize import to_content_item

log = logger.bind(stage="paging")

# Maps one raw record to a canonical item (None drops it)
Mapper = Callable[[dict], Any]

DEGRADE = FetchPolicy(throw_on_failure=False)


def entry_mapper(plugin_id: str = "", now: int | None = None) -> Mapper:
    """Raw audiobook dict -> ContentItem | None."""

    def _map(raw: dict):
        return to_content_item(CatalogEntry.from_api(raw), plugin_id=plugin_id, now=now)

    return _map


@dataclass(frozen=True)
class PagerSession:
    offset: int = 0
    page_size: int = HOME_PAGE_SIZE
    exhausted: bool = False
    language: str | None = None
    base_url: str = API_BASE_URL
    policy: FetchPolicy = field(default=DEGRADE)

    def listing_url(self) -> str:
        return audiobooks_url(
            self.base_url,
            language=self.language,
            offset=self.offset,
            limit=self.page_size,
        )


def _map_all(raw_items: list[dict], mapper: Mapper) -> list[Any]:
    items = []
    for raw in raw_items:
        item = mapper(raw)
        if item is not None:
            items.append(item)
    return items


def advance(
    session: PagerSession,
    fetcher: Fetcher,
    mapper: Mapper | None = None,
) -> tuple[PagerSession, Page]:
    """Fetch the page at ``session.offset`` and return (next_session, page)."""
    if session.exhausted:
        return session, Page([], has_more=False)

    url = session.listing_url()
    log.debug(f"advance: offset={session.offset} url={url}")

    body = fetcher(url, session.policy)
    if body is None:
        log.warning(f"Listing fetch failed at offset {session.offset}; ending pagination")
        return replace(session, exhausted=True), Page([], has_more=False)

    # Continuation counts what was sent, not what survives mapping
    sent = raw_count(body, "books")
    items = _map_all(records(body, "books"), mapper or entry_mapper())
    full = sent == session.page_size

    next_session = replace(
        session,
        offset=session.offset + session.page_size,
        exhausted=not full,
    )
    log.debug(
        f"advance: {sent} raw, {len(items)} mapped, has_more={full}"
    )
    return next_session, Page(items, has_more=full)


def single_page(
    url: str,
    fetcher: Fetcher,
    mapper: Mapper,
    key: str = "books",
    policy: FetchPolicy = DEGRADE,
) -> Page:
    """One fetch, never continuing. Used for all search-style listings."""
    body = fetcher(url, policy)
    if body is None:
        log.warning(f"Search fetch failed, returning empty page: {url}")
        return Page([], has_more=False)
    return Page(_map_all(records(body, key), mapper), has_more=False)
