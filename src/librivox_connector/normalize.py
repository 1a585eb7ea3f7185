"""Map LibriVox feed records onto canonical content items.

Every field degrades to a fixed default rather than failing; the only
records rejected outright are catalog entries with no usable title or
no project id (an id is never synthesized from the title).

Fallback rules:
    author     -- first listed author; else "Unknown" / "unknown" / "".
    thumbnail  -- coverart_jpg, coverart_thumbnail, archive.org image
                  derived from url_iarchive, then DEFAULT_THUMBNAIL.
    duration   -- "H:M:S" or "M:S" positional arithmetic; anything else 0.
    url        -- url_librivox; else a slug built from the title.
    audio      -- one source per track; with no tracks, one zip source
                  spanning the whole work.
"""

from __future__ import annotations

import re
import time
from typing import Iterable

from loguru import logger

from .models import (
    ARCHIVE_IMAGE_URL,
    BUNDLE_CONTAINER,
    DEFAULT_THUMBNAIL,
    PLATFORM_BASE_URL,
    TRACK_CONTAINER,
    UNKNOWN_AUTHOR_ID,
    UNKNOWN_AUTHOR_NAME,
    AudioSource,
    AuthorRecord,
    AuthorRef,
    CatalogEntry,
    ContentItem,
    PlatformId,
    Thumbnail,
    TrackRecord,
)
from .urls import slugify

log = logger.bind(stage="normalize")

ARCHIVE_DETAILS_RE = re.compile(r"archive\.org/details/([^/?#]+)", re.IGNORECASE)
CHAPTER_ID_SEPARATOR = "_"


def parse_duration(text: str | None) -> int:
    """Convert "HH:MM:SS" or "MM:SS" to seconds. Anything else is 0.

    Segments are not range-checked ("90:00" is 5400 seconds).
    """
    if not text:
        return 0
    parts = text.strip().split(":")
    try:
        values = [int(p) for p in parts]
    except ValueError:
        return 0

    if len(values) == 3:
        seconds = values[0] * 3600 + values[1] * 60 + values[2]
    elif len(values) == 2:
        seconds = values[0] * 60 + values[1]
    else:
        return 0
    return max(seconds, 0)


def parse_playtime(text: str | None) -> int:
    """Track playtime is plain seconds; non-numeric values are 0."""
    try:
        return max(int(text or 0), 0)
    except ValueError:
        return 0


def author_display_name(author: AuthorRecord | None) -> str:
    if author is None:
        return UNKNOWN_AUTHOR_NAME
    name = f"{author.first_name} {author.last_name}".strip()
    return name or UNKNOWN_AUTHOR_NAME


def author_url(author_id: str) -> str:
    return f"{PLATFORM_BASE_URL}/author/{author_id}"


def to_author_ref(author: AuthorRecord, *, plugin_id: str = "") -> AuthorRef:
    author_id = author.id or UNKNOWN_AUTHOR_ID
    return AuthorRef(
        id=PlatformId(author_id, plugin_id=plugin_id),
        name=author_display_name(author),
        url=author_url(author.id) if author.id else "",
    )


def resolve_author(entry: CatalogEntry, *, plugin_id: str = "") -> AuthorRef:
    """First listed author only; joint authorship is not modelled."""
    if not entry.authors:
        return AuthorRef(
            id=PlatformId(UNKNOWN_AUTHOR_ID, plugin_id=plugin_id),
            name=UNKNOWN_AUTHOR_NAME,
            url="",
        )
    return to_author_ref(entry.authors[0], plugin_id=plugin_id)


def archive_thumbnail(mirror_url: str) -> str:
    """archive.org cover image for an ``archive.org/details/<id>`` link, or ''."""
    match = ARCHIVE_DETAILS_RE.search(mirror_url or "")
    if not match:
        return ""
    return ARCHIVE_IMAGE_URL.format(identifier=match.group(1))


def resolve_thumbnail(entry: CatalogEntry) -> str:
    """Best available cover URL; never empty."""
    for candidate in (
        entry.coverart_jpg,
        entry.coverart_thumbnail,
        archive_thumbnail(entry.url_iarchive),
    ):
        if candidate:
            return candidate
    return DEFAULT_THUMBNAIL


def canonical_url(entry: CatalogEntry) -> str:
    """Upstream permalink, or a lossy slug of the title when there is none."""
    if entry.url_librivox:
        return entry.url_librivox
    return f"{PLATFORM_BASE_URL}/{slugify(entry.title)}"


def chapter_label(track: TrackRecord, position: int) -> str:
    return track.title or f"Chapter {track.section_number or position}"


def chapter_id(entry: CatalogEntry, track: TrackRecord, position: int) -> str:
    return f"{entry.id}{CHAPTER_ID_SEPARATOR}{track.section_number or position}"


def resolve_audio_sources(
    entry: CatalogEntry,
    tracks: Iterable[TrackRecord] | None = None,
) -> tuple[AudioSource, ...]:
    """One source per track, or a single zip-bundle source when there are none."""
    tracks = list(entry.sections if tracks is None else tracks)
    if tracks:
        return tuple(
            AudioSource(
                name=chapter_label(track, i),
                url=track.listen_url,
                duration=parse_playtime(track.playtime),
                container=TRACK_CONTAINER,
            )
            for i, track in enumerate(tracks, start=1)
        )
    return (
        AudioSource(
            name=entry.title,
            url=entry.url_zip_file,
            duration=parse_duration(entry.totaltime),
            container=BUNDLE_CONTAINER,
        ),
    )


def _now(now: int | None) -> int:
    return int(time.time()) if now is None else now


def to_content_item(
    entry: CatalogEntry,
    *,
    plugin_id: str = "",
    now: int | None = None,
) -> ContentItem | None:
    """Map a catalog entry to a listing-level item, or None if unusable."""
    if not entry.title:
        log.debug(f"Skipping catalog entry without title (id={entry.id or '?'})")
        return None
    if not entry.id:
        log.debug(f"Skipping catalog entry without id: {entry.title!r}")
        return None

    return ContentItem(
        id=PlatformId(entry.id, plugin_id=plugin_id),
        name=entry.title,
        thumbnails=(Thumbnail(resolve_thumbnail(entry)),),
        author=resolve_author(entry, plugin_id=plugin_id),
        upload_date=_now(now),
        duration=parse_duration(entry.totaltime),
        url=canonical_url(entry),
        audio_sources=resolve_audio_sources(entry),
    )


def to_track_items(
    entry: CatalogEntry,
    tracks: Iterable[TrackRecord],
    *,
    plugin_id: str = "",
    now: int | None = None,
) -> list[ContentItem]:
    """Chapter-level items for an audiobook's detail view.

    A work with no listed tracks becomes a single item pointing at the
    zip download, so there is always something playable.
    """
    tracks = list(tracks)
    author = resolve_author(entry, plugin_id=plugin_id)
    thumbnails = (Thumbnail(resolve_thumbnail(entry)),)
    uploaded = _now(now)

    if not tracks:
        (bundle,) = resolve_audio_sources(entry, [])
        return [
            ContentItem(
                id=PlatformId(entry.id, plugin_id=plugin_id),
                name=entry.title,
                thumbnails=thumbnails,
                author=author,
                upload_date=uploaded,
                duration=bundle.duration,
                url=bundle.url,
                audio_sources=(bundle,),
            )
        ]

    items = []
    for i, (track, source) in enumerate(
        zip(tracks, resolve_audio_sources(entry, tracks)), start=1
    ):
        items.append(
            ContentItem(
                id=PlatformId(chapter_id(entry, track, i), plugin_id=plugin_id),
                name=source.name,
                thumbnails=thumbnails,
                author=author,
                upload_date=uploaded,
                duration=source.duration,
                url=source.url,
                audio_sources=(source,),
            )
        )
    return items


def describe_entry(entry: CatalogEntry, track_count: int) -> str:
    """HTML description shown on an audiobook's detail page."""
    authors = ", ".join(author_display_name(a) for a in entry.authors) or UNKNOWN_AUTHOR_NAME
    lines = [
        entry.description,
        "",
        f"<strong>Title:</strong> {entry.title}",
        f"<strong>Author:</strong> {authors}",
        f"<strong>Language:</strong> {entry.language or 'English'}",
        f"<strong>Total Time:</strong> {entry.totaltime or 'Unknown'}",
        f"<strong>Chapters:</strong> {entry.num_sections or track_count}",
    ]
    return "<br>".join(lines)


def describe_author(author: AuthorRecord) -> str:
    description = f"Audiobooks by {author_display_name(author)}"
    if author.dob or author.dod:
        description += f"<br>Life: {author.dob or '?'} - {author.dod or '?'}"
    return description
