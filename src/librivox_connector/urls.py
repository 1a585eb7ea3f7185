"""URL classification for LibriVox author and audiobook pages.

Predicates and extractors come in pairs. Extractors do no validation of
their own: call the matching predicate (or ``classify_url``) first.
"""

import re

from loguru import logger

from .models import ResourceKind

log = logger.bind(stage="urls")

# Matched with fullmatch so a trailing newline cannot slip past the anchor
AUTHOR_URL_RE = re.compile(r"https://librivox\.org/author/([a-z0-9-]+)/?", re.IGNORECASE)
# A bare author index (/author/) is not a slug
AUDIOBOOK_URL_RE = re.compile(
    r"https://librivox\.org/(?!author/?\Z)([a-z0-9-]+?)-?/?", re.IGNORECASE
)
AUDIOBOOK_ID_RE = re.compile(r"[?&]id=(\d+)")


def is_author_url(url: str) -> bool:
    return AUTHOR_URL_RE.fullmatch(url) is not None


def is_audiobook_url(url: str) -> bool:
    return AUDIOBOOK_URL_RE.fullmatch(url) is not None


def extract_author_id(url: str) -> str:
    return AUTHOR_URL_RE.fullmatch(url).group(1)


def extract_slug(url: str) -> str:
    """Return the audiobook slug, without any trailing hyphen or slash."""
    return AUDIOBOOK_URL_RE.fullmatch(url).group(1)


def extract_audiobook_id(url: str) -> str | None:
    """Return the numeric ``id=`` query value of an API-style URL, if any."""
    match = AUDIOBOOK_ID_RE.search(url)
    return match.group(1) if match else None


def slug_to_title(slug: str) -> str:
    return slug.replace("-", " ")


def slugify(title: str) -> str:
    """Lower-case ``title`` and replace whitespace runs with hyphens."""
    return re.sub(r"\s+", "-", title.strip().lower())


def classify_url(url: str) -> ResourceKind | None:
    """Decide what ``url`` points at. Author pages are tested first."""
    if is_author_url(url):
        kind = ResourceKind.AUTHOR
    elif is_audiobook_url(url):
        kind = ResourceKind.AUDIOBOOK
    else:
        kind = None
    log.debug(f"classify_url({url!r}) -> {kind}")
    return kind
