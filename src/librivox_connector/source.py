"""Host-facing operations for the LibriVox source.

Every operation takes the frozen ConnectorConfig and an optional fetcher
(``fetch_json`` by default). Listing and search operations never raise on
upstream trouble; they log and return an empty Page. Resolving a single
author or audiobook raises instead: InvalidUrlError before any request,
FetchError when the catalog is unreachable, NotFoundError when it answers
with no matching record.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from .api.http import Fetcher, FetchPolicy, fetch_json
from .api.librivox import audiobooks_url, authors_url, records, tracks_url
from .api.search import pick_best_match
from .config import ConnectorConfig
from .errors import InvalidUrlError, NotFoundError
from .models import (
    SEARCH_PAGE_SIZE,
    AuthorRecord,
    AuthorRef,
    CatalogEntry,
    Channel,
    Page,
    PlatformId,
    PlaylistDetails,
    ResourceKind,
    TrackRecord,
)
from .normalize import (
    author_display_name,
    canonical_url,
    describe_author,
    describe_entry,
    resolve_author,
    resolve_thumbnail,
    to_author_ref,
    to_track_items,
)
from .paging import PagerSession, advance, entry_mapper, single_page
from .state import restore_state
from .urls import (
    classify_url,
    extract_audiobook_id,
    extract_author_id,
    extract_slug,
    is_audiobook_url,
    is_author_url,
    slug_to_title,
)

log = logger.bind(stage="source")


def _policy(config: ConnectorConfig, throw_on_failure: bool) -> FetchPolicy:
    return FetchPolicy(
        throw_on_failure=throw_on_failure,
        max_retries=config.max_retries,
        timeout=config.http_timeout,
    )


def _degrade(config: ConnectorConfig) -> FetchPolicy:
    return _policy(config, throw_on_failure=False)


def _strict(config: ConnectorConfig) -> FetchPolicy:
    return _policy(config, throw_on_failure=True)


# -- Lifecycle --


def enable(
    conf: dict | None = None,
    settings: dict | None = None,
    saved_state: str | None = None,
) -> tuple[ConnectorConfig, dict[str, Any]]:
    """Build the config and restore state when the host enables the source."""
    config = ConnectorConfig.from_host_settings(conf, settings)
    state = restore_state(saved_state)
    log.info(
        f"LibriVox source enabled: language={config.language or 'all'} "
        f"allow_explicit={config.allow_explicit}"
    )
    return config, state


def get_user_playlists() -> list:
    return []


def get_user_subscriptions() -> list:
    return []


# -- Home and search --


def new_home_session(config: ConnectorConfig) -> PagerSession:
    return PagerSession(
        language=config.language,
        base_url=config.api_base,
        policy=_degrade(config),
    )


def get_home(
    config: ConnectorConfig,
    session: PagerSession | None = None,
    fetcher: Fetcher | None = None,
) -> tuple[PagerSession, Page]:
    """Fetch the next home page. Pass the returned session back for more."""
    session = session or new_home_session(config)
    return advance(
        session,
        fetcher or fetch_json,
        entry_mapper(plugin_id=config.plugin_id),
    )


def _book_search(config: ConnectorConfig, url: str, fetcher: Fetcher | None) -> Page:
    return single_page(
        url,
        fetcher or fetch_json,
        entry_mapper(plugin_id=config.plugin_id),
        key="books",
        policy=_degrade(config),
    )


def search(config: ConnectorConfig, query: str, fetcher: Fetcher | None = None) -> Page:
    """Title search, filtered to the preferred language."""
    if not query or not query.strip():
        return Page([], has_more=False)
    url = audiobooks_url(
        config.api_base,
        title=query.strip(),
        language=config.language,
        limit=SEARCH_PAGE_SIZE,
    )
    log.debug(f"search({query!r}) -> {url}")
    return _book_search(config, url, fetcher)


def search_by_author(
    config: ConnectorConfig, author_name: str, fetcher: Fetcher | None = None
) -> Page:
    """Audiobooks whose author's last name matches ``author_name``."""
    if not author_name or not author_name.strip():
        return Page([], has_more=False)
    url = audiobooks_url(config.api_base, author=author_name.strip(), limit=SEARCH_PAGE_SIZE)
    return _book_search(config, url, fetcher)


def search_by_genre(config: ConnectorConfig, genre: str, fetcher: Fetcher | None = None) -> Page:
    if not genre or not genre.strip():
        return Page([], has_more=False)
    url = audiobooks_url(config.api_base, genre=genre.strip(), limit=SEARCH_PAGE_SIZE)
    return _book_search(config, url, fetcher)


def search_channels(config: ConnectorConfig, query: str, fetcher: Fetcher | None = None) -> Page:
    """Authors (as channels) whose last name matches ``query``."""
    if not query or not query.strip():
        return Page([], has_more=False)

    def _map(raw: dict) -> AuthorRef | None:
        author = AuthorRecord.from_api(raw)
        if not author.id:
            return None
        return to_author_ref(author, plugin_id=config.plugin_id)

    url = authors_url(config.api_base, last_name=query.strip())
    return single_page(url, fetcher or fetch_json, _map, key="authors", policy=_degrade(config))


def search_suggestions(query: str) -> list[str]:
    if not query or len(query) < 2:
        return []
    return [f"{query} audiobook", f"{query} book", f"author {query}"]


# -- URL classification --


def is_channel_url(url: str) -> bool:
    return is_author_url(url)


def is_content_details_url(url: str) -> bool:
    return is_audiobook_url(url)


def is_playlist_url(url: str) -> bool:
    return classify_url(url) is not None


# -- Channels --


def _fetch_author(
    config: ConnectorConfig, author_id: str, fetcher: Fetcher, policy: FetchPolicy
) -> AuthorRecord | None:
    body = fetcher(authors_url(config.api_base, author_id=author_id), policy)
    found = records(body, "authors")
    return AuthorRecord.from_api(found[0]) if found else None


def _require_author(config: ConnectorConfig, url: str, fetcher: Fetcher) -> AuthorRecord:
    if not is_author_url(url):
        log.error(f"Not an author URL: {url}")
        raise InvalidUrlError(url, "author")

    author_id = extract_author_id(url)
    author = _fetch_author(config, author_id, fetcher, _strict(config))
    if author is None:
        log.error(f"No author with id {author_id}")
        raise NotFoundError("Author", author_id)

    return author


def _channel(config: ConnectorConfig, url: str, author: AuthorRecord) -> Channel:
    return Channel(
        id=PlatformId(author.id or extract_author_id(url), plugin_id=config.plugin_id),
        name=author_display_name(author),
        url=url,
        description=describe_author(author),
    )


def get_channel(config: ConnectorConfig, url: str, fetcher: Fetcher | None = None) -> Channel:
    """Resolve an author page URL to a channel."""
    return _channel(config, url, _require_author(config, url, fetcher or fetch_json))


def get_channel_contents(
    config: ConnectorConfig, url: str, fetcher: Fetcher | None = None
) -> Page:
    """An author's audiobooks as a single page; empty on any failure."""
    if not is_author_url(url):
        log.warning(f"Not an author URL, returning empty contents: {url}")
        return Page([], has_more=False)

    fetcher = fetcher or fetch_json
    author_id = extract_author_id(url)
    author = _fetch_author(config, author_id, fetcher, _degrade(config))
    if author is None or not author.last_name:
        log.warning(f"Could not look up author {author_id}, returning empty contents")
        return Page([], has_more=False)

    return search_by_author(config, author.last_name, fetcher)


# -- Audiobooks --


def _entries(body) -> list[CatalogEntry]:
    entries = [CatalogEntry.from_api(raw) for raw in records(body, "books")]
    return [e for e in entries if e.title and e.id]


def _details(
    config: ConnectorConfig,
    entry: CatalogEntry,
    url: str,
    fetcher: Fetcher,
) -> PlaylistDetails:
    """Build the chapter playlist for one catalog entry."""
    body = fetcher(tracks_url(entry.id, config.api_base), _degrade(config))
    if body is None:
        log.warning(f"Track listing failed for {entry.id}; using embedded sections")
        tracks = list(entry.sections)
    else:
        tracks = [TrackRecord.from_api(raw) for raw in records(body, "sections")]

    items = to_track_items(entry, tracks, plugin_id=config.plugin_id)
    log.debug(f"Audiobook {entry.id}: {len(tracks)} tracks -> {len(items)} items")

    return PlaylistDetails(
        url=url,
        id=PlatformId(entry.id, plugin_id=config.plugin_id),
        author=resolve_author(entry, plugin_id=config.plugin_id),
        name=entry.title,
        thumbnail=resolve_thumbnail(entry),
        contents=Page(items, has_more=False),
        description=describe_entry(entry, len(tracks)),
    )


def get_audiobook(
    config: ConnectorConfig, book_id: str, fetcher: Fetcher | None = None
) -> PlaylistDetails:
    """Resolve an audiobook by its numeric LibriVox project id."""
    fetcher = fetcher or fetch_json
    body = fetcher(audiobooks_url(config.api_base, book_id=str(book_id)), _strict(config))
    entries = _entries(body)
    if not entries:
        log.error(f"No audiobook with id {book_id}")
        raise NotFoundError("Audiobook", str(book_id))
    return _details(config, entries[0], canonical_url(entries[0]), fetcher)


def get_content_details(
    config: ConnectorConfig, url: str, fetcher: Fetcher | None = None
) -> PlaylistDetails:
    """Resolve an audiobook page URL (or an ``id=`` API URL) to its chapters.

    Page URLs only carry a title slug, so this searches by title and picks
    the best-matching hit (see ``api.search.pick_best_match``).
    """
    fetcher = fetcher or fetch_json

    if not is_audiobook_url(url):
        book_id = extract_audiobook_id(url)
        if book_id is None:
            log.error(f"Not an audiobook URL: {url}")
            raise InvalidUrlError(url, "audiobook")
        return get_audiobook(config, book_id, fetcher)

    slug = extract_slug(url)
    title = slug_to_title(slug)
    body = fetcher(audiobooks_url(config.api_base, title=title), _strict(config))
    entry = pick_best_match(_entries(body), slug)
    if entry is None:
        log.error(f"No audiobook matches title {title!r}")
        raise NotFoundError("Audiobook", title)

    return _details(config, entry, url, fetcher)


def get_playlist(
    config: ConnectorConfig, url: str, fetcher: Fetcher | None = None
) -> PlaylistDetails:
    """Author URLs become an author's audiobook list; audiobook URLs its chapters."""
    kind = classify_url(url)

    if kind is ResourceKind.AUTHOR:
        fetcher = fetcher or fetch_json
        author = _require_author(config, url, fetcher)
        channel = _channel(config, url, author)
        if author.last_name:
            contents = search_by_author(config, author.last_name, fetcher)
        else:
            log.warning(f"Author {author.id} has no last name, returning empty contents")
            contents = Page([], has_more=False)
        return PlaylistDetails(
            url=url,
            id=channel.id,
            author=AuthorRef(channel.id, channel.name, channel.url, channel.thumbnail),
            name=f"{channel.name} - Audiobooks",
            thumbnail=channel.thumbnail,
            contents=contents,
            description=channel.description,
        )

    if kind is ResourceKind.AUDIOBOOK:
        return get_content_details(config, url, fetcher)

    log.error(f"Invalid playlist URL: {url}")
    raise InvalidUrlError(url, "playlist")
