"""Shared fixtures: canned LibriVox feed records and a routing fake fetcher."""

import pytest

from librivox_connector.config import ConnectorConfig


class FakeFetcher:
    """Stand-in for fetch_json that answers by URL substring.

    Routes are checked in insertion order; the first substring contained in
    the requested URL wins. A route value of None simulates a degraded
    failure; an exception instance is raised. Unrouted URLs return None.
    """

    def __init__(self, routes: dict | None = None) -> None:
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, object]] = []

    def __call__(self, url, policy):
        self.calls.append((url, policy))
        for fragment, response in self.routes.items():
            if fragment in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return None

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def config(monkeypatch):
    for var in (
        "LIBRIVOX_PREFERRED_LANGUAGE_INDEX",
        "LIBRIVOX_ALLOW_EXPLICIT",
        "LIBRIVOX_PLUGIN_ID",
        "LIBRIVOX_API_BASE",
        "LIBRIVOX_MAX_RETRIES",
    ):
        monkeypatch.delenv(var, raising=False)
    return ConnectorConfig(_env_file=None, plugin_id="plugin-1")


@pytest.fixture
def author_raw():
    return {
        "id": "123",
        "first_name": "Jane",
        "last_name": "Austen",
        "dob": "1775",
        "dod": "1817",
    }


@pytest.fixture
def book_raw(author_raw):
    return {
        "id": "52",
        "title": "Pride and Prejudice",
        "description": "A novel of manners.",
        "language": "English",
        "totaltime": "11:35:06",
        "num_sections": "61",
        "coverart_jpg": "https://archive.org/download/pp/cover.jpg",
        "coverart_thumbnail": "https://archive.org/download/pp/thumb.jpg",
        "url_iarchive": "http://www.archive.org/details/pride_prejudice_librivox",
        "url_zip_file": "https://archive.org/compress/pride_prejudice_librivox/formats=64KBPS MP3",
        "url_librivox": "https://librivox.org/pride-and-prejudice-by-jane-austen/",
        "authors": [author_raw],
    }


@pytest.fixture
def tracks_raw():
    return [
        {
            "section_number": "1",
            "title": "Chapter 01",
            "playtime": "600",
            "listen_url": "https://archive.org/download/pp/pp_01.mp3",
        },
        {
            "section_number": "2",
            "title": "",
            "playtime": "720",
            "listen_url": "https://archive.org/download/pp/pp_02.mp3",
        },
        {
            "section_number": "3",
            "title": "Chapter 03",
            "playtime": "845",
            "listen_url": "https://archive.org/download/pp/pp_03.mp3",
        },
    ]
