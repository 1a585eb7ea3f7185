"""LibriVox feed API access.

Submodules:
    http     -- Retrying JSON fetch with raise-or-None failure policy
    librivox -- Endpoint URL builders for audiobooks, authors, audiotracks
    search   -- Slug-to-catalog-entry title matching
"""
