"""Tests for source.py -- host operations with an injected fake fetcher."""

import httpx
import pytest

from librivox_connector import source
from librivox_connector.config import ConnectorConfig
from librivox_connector.errors import FetchError, InvalidUrlError, NotFoundError
from librivox_connector.models import BUNDLE_CONTAINER, AuthorRef, ContentItem
from librivox_connector.paging import PagerSession

BOOK_URL = "https://librivox.org/pride-and-prejudice-by-jane-austen/"
AUTHOR_URL = "https://librivox.org/author/123"


def _params(url: str) -> dict:
    return dict(httpx.URL(url).params)


def _books(n: int) -> dict:
    return {"books": [{"id": str(i), "title": f"Book {i}"} for i in range(n)]}


class TestEnable:
    def test_defaults_and_empty_state(self, monkeypatch):
        monkeypatch.delenv("LIBRIVOX_PREFERRED_LANGUAGE_INDEX", raising=False)
        config, state = source.enable({"id": "abc"}, None, None)
        assert config.plugin_id == "abc"
        assert config.preferred_language_index == 0
        assert state == {}

    def test_restores_state(self):
        _, state = source.enable({}, {}, '{"seen": [1, 2]}')
        assert state == {"seen": [1, 2]}

    def test_no_user_collections(self):
        assert source.get_user_playlists() == []
        assert source.get_user_subscriptions() == []


class TestHome:
    def test_first_page(self, config, fake_fetcher):
        fetcher = fake_fetcher({"audiobooks": _books(25)})
        session, page = source.get_home(config, fetcher=fetcher)

        assert len(page.items) == 25
        assert all(isinstance(i, ContentItem) for i in page.items)
        assert all(i.id.plugin_id == "plugin-1" for i in page.items)
        assert page.has_more is True
        assert session.offset == 25

        params = _params(fetcher.urls[0])
        assert params["language"] == "English"
        assert params["offset"] == "0"
        assert fetcher.calls[0][1].throw_on_failure is False

    def test_continues_from_session(self, config, fake_fetcher):
        fetcher = fake_fetcher({"audiobooks": _books(3)})
        session, page = source.get_home(config, session=PagerSession(offset=75), fetcher=fetcher)

        assert _params(fetcher.urls[0])["offset"] == "75"
        assert page.has_more is False
        assert session.exhausted is True

    def test_all_languages_sentinel_drops_filter(self, fake_fetcher):
        config = ConnectorConfig(_env_file=None, preferred_language_index=7)
        fetcher = fake_fetcher({"audiobooks": _books(0)})
        source.get_home(config, fetcher=fetcher)
        assert "language" not in _params(fetcher.urls[0])

    def test_failure_degrades(self, config, fake_fetcher):
        session, page = source.get_home(config, fetcher=fake_fetcher())
        assert page.items == []
        assert page.has_more is False
        assert session.exhausted is True

    def test_policy_follows_config(self, fake_fetcher):
        config = ConnectorConfig(_env_file=None, max_retries=1, http_timeout=5.0)
        fetcher = fake_fetcher({"audiobooks": _books(0)})
        source.get_home(config, fetcher=fetcher)
        policy = fetcher.calls[0][1]
        assert policy.max_retries == 1
        assert policy.timeout == 5.0


class TestSearch:
    def test_keyword_search(self, config, fake_fetcher):
        fetcher = fake_fetcher({"audiobooks": _books(50)})
        page = source.search(config, " pride ", fetcher=fetcher)

        assert len(page.items) == 50
        assert page.has_more is False
        params = _params(fetcher.urls[0])
        assert params["title"] == "pride"
        assert params["limit"] == "50"
        assert params["language"] == "English"

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_skips_fetch(self, config, fake_fetcher, query):
        fetcher = fake_fetcher()
        page = source.search(config, query, fetcher=fetcher)
        assert page.items == []
        assert fetcher.calls == []

    def test_search_failure_degrades(self, config, fake_fetcher):
        page = source.search(config, "emma", fetcher=fake_fetcher({"audiobooks": None}))
        assert page.items == []
        assert page.has_more is False

    def test_author_search(self, config, fake_fetcher):
        fetcher = fake_fetcher({"audiobooks": _books(2)})
        page = source.search_by_author(config, "Austen", fetcher=fetcher)
        assert len(page.items) == 2
        params = _params(fetcher.urls[0])
        assert params["author"] == "Austen"
        assert "language" not in params

    def test_genre_search(self, config, fake_fetcher):
        fetcher = fake_fetcher({"audiobooks": _books(1)})
        page = source.search_by_genre(config, "Poetry", fetcher=fetcher)
        assert len(page.items) == 1
        assert _params(fetcher.urls[0])["genre"] == "Poetry"

    def test_channel_search(self, config, fake_fetcher, author_raw):
        fetcher = fake_fetcher({"authors": {"authors": [author_raw, {"first_name": "No Id"}]}})
        page = source.search_channels(config, "Austen", fetcher=fetcher)

        assert page.has_more is False
        assert len(page.items) == 1
        ref = page.items[0]
        assert isinstance(ref, AuthorRef)
        assert ref.name == "Jane Austen"
        assert ref.url == "https://librivox.org/author/123"
        assert _params(fetcher.urls[0])["last_name"] == "Austen"

    def test_suggestions(self):
        assert source.search_suggestions("e") == []
        assert source.search_suggestions("") == []
        assert source.search_suggestions("emma") == ["emma audiobook", "emma book", "author emma"]


class TestUrlPredicates:
    def test_predicates(self):
        assert source.is_channel_url(AUTHOR_URL)
        assert not source.is_channel_url(BOOK_URL)
        assert source.is_content_details_url(BOOK_URL)
        assert not source.is_content_details_url(AUTHOR_URL)
        assert source.is_playlist_url(AUTHOR_URL)
        assert source.is_playlist_url(BOOK_URL)
        assert not source.is_playlist_url("https://example.com/x")


class TestGetChannel:
    def test_resolves_author(self, config, fake_fetcher, author_raw):
        fetcher = fake_fetcher({"authors": {"authors": [author_raw]}})
        channel = source.get_channel(config, AUTHOR_URL, fetcher=fetcher)

        assert channel.id.value == "123"
        assert channel.name == "Jane Austen"
        assert channel.url == AUTHOR_URL
        assert channel.subscribers == -1
        assert channel.description == "Audiobooks by Jane Austen<br>Life: 1775 - 1817"
        assert _params(fetcher.urls[0])["id"] == "123"
        assert fetcher.calls[0][1].throw_on_failure is True

    def test_invalid_url_before_network(self, config, fake_fetcher):
        fetcher = fake_fetcher()
        with pytest.raises(InvalidUrlError):
            source.get_channel(config, BOOK_URL, fetcher=fetcher)
        assert fetcher.calls == []

    def test_not_found(self, config, fake_fetcher):
        with pytest.raises(NotFoundError):
            source.get_channel(config, AUTHOR_URL, fetcher=fake_fetcher({"authors": {"authors": []}}))

    def test_transport_failure_propagates(self, config, fake_fetcher):
        fetcher = fake_fetcher({"authors": FetchError("u", 4, "status 500")})
        with pytest.raises(FetchError):
            source.get_channel(config, AUTHOR_URL, fetcher=fetcher)


class TestGetChannelContents:
    def test_books_by_last_name(self, config, fake_fetcher, author_raw):
        fetcher = fake_fetcher({"authors": {"authors": [author_raw]}, "audiobooks": _books(4)})
        page = source.get_channel_contents(config, AUTHOR_URL, fetcher=fetcher)

        assert len(page.items) == 4
        assert page.has_more is False
        assert _params(fetcher.urls[1])["author"] == "Austen"

    def test_invalid_url_is_empty(self, config, fake_fetcher):
        fetcher = fake_fetcher()
        assert source.get_channel_contents(config, BOOK_URL, fetcher=fetcher).items == []
        assert fetcher.calls == []

    def test_author_lookup_failure_is_empty(self, config, fake_fetcher):
        page = source.get_channel_contents(config, AUTHOR_URL, fetcher=fake_fetcher())
        assert page.items == []


class TestGetContentDetails:
    def test_chapters(self, config, fake_fetcher, book_raw, tracks_raw):
        fetcher = fake_fetcher(
            {"audiobooks": {"books": [book_raw]}, "audiotracks": {"sections": tracks_raw}}
        )
        details = source.get_content_details(config, BOOK_URL, fetcher=fetcher)

        assert details.url == BOOK_URL
        assert details.id.value == "52"
        assert details.name == "Pride and Prejudice"
        assert details.author.name == "Jane Austen"
        assert details.thumbnail == "https://archive.org/download/pp/cover.jpg"
        assert details.video_count == 3
        assert [i.id.value for i in details.contents.items] == ["52_1", "52_2", "52_3"]
        assert [i.duration for i in details.contents.items] == [600, 720, 845]
        assert details.contents.has_more is False

        search_url, search_policy = fetcher.calls[0]
        assert _params(search_url)["title"] == "pride and prejudice by jane austen"
        assert search_policy.throw_on_failure is True
        tracks_call_url, tracks_policy = fetcher.calls[1]
        assert _params(tracks_call_url)["project_id"] == "52"
        assert tracks_policy.throw_on_failure is False

    def test_bundle_when_no_tracks(self, config, fake_fetcher, book_raw):
        fetcher = fake_fetcher({"audiobooks": {"books": [book_raw]}, "audiotracks": {"sections": []}})
        details = source.get_content_details(config, BOOK_URL, fetcher=fetcher)

        assert details.video_count == 1
        (item,) = details.contents.items
        assert item.id.value == "52"
        assert item.duration == 41706
        assert item.audio_sources[0].container == BUNDLE_CONTAINER

    def test_track_failure_uses_embedded_sections(self, config, fake_fetcher, book_raw, tracks_raw):
        book_raw["sections"] = tracks_raw[:2]
        fetcher = fake_fetcher({"audiobooks": {"books": [book_raw]}, "audiotracks": None})
        details = source.get_content_details(config, BOOK_URL, fetcher=fetcher)
        assert details.video_count == 2

    def test_prefers_exact_title(self, config, fake_fetcher, book_raw):
        decoy = {"id": "99", "title": "Emma Part Two"}
        exact = dict(book_raw, id="53", title="Emma")
        fetcher = fake_fetcher({"audiobooks": {"books": [decoy, exact]}, "audiotracks": {"sections": []}})
        details = source.get_content_details(config, "https://librivox.org/emma", fetcher=fetcher)
        assert details.id.value == "53"

    def test_not_found(self, config, fake_fetcher):
        fetcher = fake_fetcher({"audiobooks": {"books": []}})
        with pytest.raises(NotFoundError):
            source.get_content_details(config, BOOK_URL, fetcher=fetcher)

    def test_unreachable_propagates(self, config, fake_fetcher):
        fetcher = fake_fetcher({"audiobooks": FetchError("u", 4, "status 503")})
        with pytest.raises(FetchError):
            source.get_content_details(config, BOOK_URL, fetcher=fetcher)

    def test_invalid_url(self, config, fake_fetcher):
        fetcher = fake_fetcher()
        with pytest.raises(InvalidUrlError):
            source.get_content_details(config, "https://example.com/emma", fetcher=fetcher)
        assert fetcher.calls == []

    def test_id_url(self, config, fake_fetcher, book_raw):
        fetcher = fake_fetcher({"audiobooks": {"books": [book_raw]}, "audiotracks": {"sections": []}})
        details = source.get_content_details(
            config, "https://librivox.org/api/feed/audiobooks?id=52", fetcher=fetcher
        )
        assert details.id.value == "52"
        assert _params(fetcher.urls[0])["id"] == "52"

    def test_identifiers_stable_across_calls(self, config, fake_fetcher, book_raw, tracks_raw):
        routes = {"audiobooks": {"books": [book_raw]}, "audiotracks": {"sections": tracks_raw}}
        first = source.get_content_details(config, BOOK_URL, fetcher=fake_fetcher(routes))
        second = source.get_audiobook(config, "52", fetcher=fake_fetcher(routes))

        assert first.id == second.id
        assert [i.id for i in first.contents.items] == [i.id for i in second.contents.items]


class TestGetAudiobook:
    def test_not_found(self, config, fake_fetcher):
        with pytest.raises(NotFoundError):
            source.get_audiobook(config, "999", fetcher=fake_fetcher({"audiobooks": {"books": []}}))

    def test_url_is_permalink(self, config, fake_fetcher, book_raw):
        fetcher = fake_fetcher({"audiobooks": {"books": [book_raw]}, "audiotracks": {"sections": []}})
        details = source.get_audiobook(config, 52, fetcher=fetcher)
        assert details.url == book_raw["url_librivox"]


class TestGetPlaylist:
    def test_author_playlist(self, config, fake_fetcher, author_raw):
        fetcher = fake_fetcher({"authors": {"authors": [author_raw]}, "audiobooks": _books(2)})
        playlist = source.get_playlist(config, AUTHOR_URL, fetcher=fetcher)

        assert playlist.name == "Jane Austen - Audiobooks"
        assert playlist.id.value == "123"
        assert playlist.author.name == "Jane Austen"
        assert playlist.video_count == 2

    def test_author_fetched_once(self, config, fake_fetcher, author_raw):
        fetcher = fake_fetcher({"authors": {"authors": [author_raw]}, "audiobooks": _books(2)})
        source.get_playlist(config, AUTHOR_URL, fetcher=fetcher)

        author_lookups = [url for url in fetcher.urls if "/api/feed/authors" in url]
        assert len(author_lookups) == 1
        assert fetcher.calls[0][1].throw_on_failure is True

    def test_author_without_last_name_has_empty_contents(self, config, fake_fetcher, author_raw):
        author_raw["last_name"] = ""
        fetcher = fake_fetcher({"authors": {"authors": [author_raw]}, "audiobooks": _books(2)})
        playlist = source.get_playlist(config, AUTHOR_URL, fetcher=fetcher)

        assert playlist.video_count == 0
        assert len(fetcher.calls) == 1

    def test_audiobook_playlist(self, config, fake_fetcher, book_raw, tracks_raw):
        fetcher = fake_fetcher(
            {"audiobooks": {"books": [book_raw]}, "audiotracks": {"sections": tracks_raw}}
        )
        playlist = source.get_playlist(config, BOOK_URL, fetcher=fetcher)
        assert playlist.video_count == 3

    def test_invalid(self, config, fake_fetcher):
        fetcher = fake_fetcher()
        with pytest.raises(InvalidUrlError):
            source.get_playlist(config, "https://example.com/", fetcher=fetcher)
        assert fetcher.calls == []
