"""LibriVox connector -- expose the LibriVox audiobook catalog to a media-aggregation host.

Core modules:
    config    -- Frozen connector configuration via pydantic-settings (LIBRIVOX_* env vars),
                 built once from the host's settings dict. Also configures loguru.
    source    -- Host-facing operations: home feed, searches, channel/audiobook/playlist
                 resolution. Listing paths degrade to empty pages; single-resource paths raise.
    urls      -- Author/audiobook URL classification and path extraction
    paging    -- Immutable offset-pagination sessions over the audiobooks listing
    normalize -- Feed records -> canonical content items (thumbnail, duration, author fallbacks)
    state     -- Opaque save/restore blob for the host

Subpackages:
    api        -- Resilient JSON fetch, feed endpoint builders, slug title matching
"""
