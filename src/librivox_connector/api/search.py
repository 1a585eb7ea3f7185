"""Title matching for slug-based audiobook resolution.

LibriVox is keyed by numeric project id, but audiobook page URLs only
carry a title slug. Resolving one means a title search followed by
picking a hit: an exact slug match wins outright, otherwise hits are
ranked by rapidfuzz similarity against the slug text. Ties keep the
upstream order, so a lone hit (or a field of equal scores) resolves to
the first result, the same as taking the top search hit.
"""

from loguru import logger
from rapidfuzz import fuzz

from ..models import CatalogEntry
from ..urls import slugify

log = logger.bind(stage="search")


def score_entries(entries: list[CatalogEntry], slug_title: str) -> list[tuple[float, CatalogEntry]]:
    """Score each entry's title against ``slug_title``, best first (stable)."""
    log.debug(f"Scoring {len(entries)} entries against {slug_title!r}")

    scored = [
        (
            round(fuzz.token_sort_ratio(slug_title.lower(), e.title.lower()), 1),
            e,
        )
        for e in entries
    ]
    # sorted() is stable, equal scores keep search order
    return sorted(scored, key=lambda pair: pair[0], reverse=True)


def pick_best_match(entries: list[CatalogEntry], slug: str) -> CatalogEntry | None:
    """Choose the catalog entry a page slug most likely refers to."""
    if not entries:
        return None

    slug = slug.lower().rstrip("-")
    for entry in entries:
        if slugify(entry.title) == slug:
            log.debug(f"Exact slug match: {entry.title!r} (id={entry.id})")
            return entry

    scored = score_entries(entries, slug.replace("-", " "))
    best_score, best = scored[0]
    if len(entries) > 1:
        log.debug(
            f"No exact slug match for {slug!r}; picked {best.title!r} "
            f"score={best_score:.0f} from {[e.title for e in entries]}"
        )
    return best
