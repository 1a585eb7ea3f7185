"""Core enums, constants, and record types for the LibriVox connector.

Upstream records (CatalogEntry, AuthorRecord, TrackRecord) mirror the
LibriVox feed API loosely: every field is optional and ``from_api`` never
raises on a missing or oddly-typed key. Canonical types (ContentItem,
AuthorRef, Channel, PlaylistDetails, Page) are the shapes handed to the
aggregation host.

Enums:
    ResourceKind -- What an input URL points at (author or audiobook).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

PLATFORM = "Librivox"
PLATFORM_BASE_URL = "https://librivox.org"
API_BASE_URL = "https://librivox.org/api/feed"
ARCHIVE_IMAGE_URL = "https://archive.org/services/img/{identifier}"
DEFAULT_THUMBNAIL = "https://librivox.org/images/librivox-logo.png"

UNKNOWN_AUTHOR_NAME = "Unknown"
UNKNOWN_AUTHOR_ID = "unknown"

VIEW_COUNT_UNSUPPORTED = -1
SUBSCRIBERS_UNSUPPORTED = -1

HOME_PAGE_SIZE = 25
SEARCH_PAGE_SIZE = 50

TRACK_CONTAINER = "audio/mpeg"
BUNDLE_CONTAINER = "application/zip"

ALL_LANGUAGES = "All Languages"

# Index is the host's preferredLanguage setting; None disables filtering
LANGUAGES: dict[int, str | None] = {
    0: "English",
    1: "French",
    2: "German",
    3: "Spanish",
    4: "Italian",
    5: "Portuguese",
    6: "Dutch",
    7: None,
}


class ResourceKind(StrEnum):
    AUTHOR = "author"
    AUDIOBOOK = "audiobook"


def _text(value: Any) -> str:
    """Coerce a loosely-typed JSON scalar to a stripped string ('' for None)."""
    if value is None:
        return ""
    return str(value).strip()


# -- Upstream records --


@dataclass(frozen=True)
class AuthorRecord:
    id: str = ""
    first_name: str = ""
    last_name: str = ""
    dob: str = ""
    dod: str = ""

    @classmethod
    def from_api(cls, raw: dict) -> AuthorRecord:
        return cls(
            id=_text(raw.get("id")),
            first_name=_text(raw.get("first_name")),
            last_name=_text(raw.get("last_name")),
            dob=_text(raw.get("dob")),
            dod=_text(raw.get("dod")),
        )


@dataclass(frozen=True)
class TrackRecord:
    section_number: str = ""
    title: str = ""
    playtime: str = ""
    listen_url: str = ""

    @classmethod
    def from_api(cls, raw: dict) -> TrackRecord:
        return cls(
            section_number=_text(raw.get("section_number")),
            title=_text(raw.get("title")),
            playtime=_text(raw.get("playtime")),
            listen_url=_text(raw.get("listen_url")),
        )


@dataclass(frozen=True)
class CatalogEntry:
    """One LibriVox audiobook project as returned by the audiobooks feed."""

    id: str = ""
    title: str = ""
    description: str = ""
    language: str = ""
    totaltime: str = ""
    num_sections: str = ""
    coverart_jpg: str = ""
    coverart_thumbnail: str = ""
    url_iarchive: str = ""
    url_zip_file: str = ""
    url_librivox: str = ""
    authors: tuple[AuthorRecord, ...] = ()
    sections: tuple[TrackRecord, ...] = ()

    @classmethod
    def from_api(cls, raw: dict) -> CatalogEntry:
        authors = raw.get("authors") or []
        sections = raw.get("sections") or []
        return cls(
            id=_text(raw.get("id")),
            title=_text(raw.get("title")),
            description=_text(raw.get("description")),
            language=_text(raw.get("language")),
            totaltime=_text(raw.get("totaltime")),
            num_sections=_text(raw.get("num_sections")),
            coverart_jpg=_text(raw.get("coverart_jpg")),
            coverart_thumbnail=_text(raw.get("coverart_thumbnail")),
            url_iarchive=_text(raw.get("url_iarchive")),
            url_zip_file=_text(raw.get("url_zip_file")),
            url_librivox=_text(raw.get("url_librivox")),
            authors=tuple(
                AuthorRecord.from_api(a) for a in authors if isinstance(a, dict)
            ),
            sections=tuple(
                TrackRecord.from_api(s) for s in sections if isinstance(s, dict)
            ),
        )


# -- Canonical types --


@dataclass(frozen=True)
class PlatformId:
    value: str
    platform: str = PLATFORM
    plugin_id: str = ""


@dataclass(frozen=True)
class Thumbnail:
    url: str
    quality: int = 0


@dataclass(frozen=True)
class AudioSource:
    """One playable stream: a chapter MP3 or the whole-work zip bundle."""

    name: str
    url: str
    duration: int
    container: str = TRACK_CONTAINER


@dataclass(frozen=True)
class AuthorRef:
    id: PlatformId
    name: str
    url: str
    avatar: str = ""


@dataclass(frozen=True)
class ContentItem:
    id: PlatformId
    name: str
    thumbnails: tuple[Thumbnail, ...]
    author: AuthorRef
    upload_date: int
    duration: int
    url: str
    audio_sources: tuple[AudioSource, ...] = ()
    view_count: int = VIEW_COUNT_UNSUPPORTED
    is_live: bool = False

    @property
    def thumbnail(self) -> str:
        return self.thumbnails[0].url


@dataclass
class Page:
    """An ordered batch of items plus whether another page is worth fetching."""

    items: list[Any] = field(default_factory=list)
    has_more: bool = False


@dataclass(frozen=True)
class Channel:
    id: PlatformId
    name: str
    url: str
    description: str = ""
    thumbnail: str = ""
    banner: str = ""
    subscribers: int = SUBSCRIBERS_UNSUPPORTED
    links: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PlaylistDetails:
    url: str
    id: PlatformId
    author: AuthorRef
    name: str
    thumbnail: str
    contents: Page
    description: str = ""

    @property
    def video_count(self) -> int:
        return len(self.contents.items)
