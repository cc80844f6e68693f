"""Integration tests for FastAPI API endpoints using TestClient.

The real search aggregator, catalog service, cache and middleware stack run
end to end; only the upstream providers are mocked.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.models.catalog import (
    Album,
    ArtistMatch,
    ReleasePage,
    ReleaseSummary,
    Track,
)
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.music_db.musicbrainz_provider import MusicBrainzProvider
from src.services.catalog_service import CatalogService
from src.services.search_aggregator import SearchAggregator
from src.utils.errors import NotFoundError, UpstreamUnavailableError
from tests.conftest import make_candidate, make_mock_catalog

RELEASE_ID = "b84ee12a-09ef-421b-82de-0441a926375b"
ARTIST_ID = "6faa7ca7-0d99-4a5e-bfa6-1fd5037520c6"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_album() -> Album:
    return Album(
        identifier="gd-wd",
        title="Workingman's Dead",
        creator="Grateful Dead",
        year="1970",
        cover_url="https://archive.org/services/img/gd-wd",
        tracks=[
            Track(
                identifier="gd-wd/01.mp3",
                title="Uncle John's Band",
                stream_url="https://archive.org/download/gd-wd/01.mp3",
                duration=281.4,
                track=1,
            ),
            Track(
                identifier="gd-wd/02.mp3",
                title="High Time",
                stream_url="https://archive.org/download/gd-wd/02.mp3",
                track=2,
            ),
        ],
    )


def _make_musicbrainz() -> MagicMock:
    mock = MagicMock(spec=MusicBrainzProvider)
    mock.get_provider_name.return_value = "musicbrainz"
    mock.search = AsyncMock(side_effect=UpstreamUnavailableError(
        "HTTP 503", provider_name="musicbrainz", upstream_status=503
    ))
    mock.get_album = AsyncMock(side_effect=NotFoundError("No such release"))
    mock.search_artists = AsyncMock(
        return_value=[ArtistMatch(id=ARTIST_ID, name="Nick Drake", score=100, type="Person")]
    )
    mock.get_artist_releases = AsyncMock(
        return_value=ReleasePage(
            docs=[ReleaseSummary(id=RELEASE_ID, title="Pink Moon", date="1972-02-25",
                                 track_count=11)],
            num_found=1,
            rows=25,
            artist="Nick Drake",
        )
    )
    return mock


def _create_test_app(archive: MagicMock | None = None) -> tuple[FastAPI, dict]:
    """Create a FastAPI app with mocked upstream providers for testing."""
    if archive is None:
        archive = make_mock_catalog(
            "archive",
            [
                make_candidate("gd-wd", "Workingman's Dead", creator="Grateful Dead",
                               downloads=50),
                make_candidate("gd-wd-rm", "Workingman's Dead (Remastered)",
                               creator="Grateful Dead", downloads=200),
                make_candidate("gd-ab", "American Beauty", creator="Grateful Dead",
                               downloads=10),
            ],
        )
        archive.get_album.return_value = _make_album()
    musicbrainz = _make_musicbrainz()
    cache = MemoryCacheProvider(max_size=100)

    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    configure_cors(app)
    app.include_router(api_router)

    app.state.cache = cache
    app.state.search_aggregator = SearchAggregator(
        primary=archive, cache=cache, secondary=musicbrainz
    )
    app.state.catalog_service = CatalogService(
        archive=archive, cache=cache, musicbrainz=musicbrainz
    )
    app.state.provider_registry = {"archive": True, "musicbrainz": True}
    app.state.app_version = "1.0.0"
    app.state.backend_url = "http://localhost:8000"

    mocks = {"archive": archive, "musicbrainz": musicbrainz, "cache": cache}
    return app, mocks


@pytest.fixture
def client_and_mocks() -> tuple[TestClient, dict]:
    app, mocks = _create_test_app()
    return TestClient(app), mocks


# ======================================================================
# GET /search
# ======================================================================


class TestSearchEndpoint:
    def test_ranked_deduplicated_page(self, client_and_mocks) -> None:
        client, _ = client_and_mocks

        resp = client.get("/search", params={"q": "grateful dead", "rows": 10})

        assert resp.status_code == 200
        body = resp.json()["response"]
        assert body["numFound"] == 3
        assert body["start"] == 0
        assert body["rows"] == 10
        assert [d["identifier"] for d in body["docs"]] == ["gd-wd-rm", "gd-ab"]
        assert [d["score"] for d in body["docs"]] == [24, 18]

    def test_second_request_served_from_cache(self, client_and_mocks) -> None:
        client, mocks = client_and_mocks

        first = client.get("/search", params={"q": "grateful dead"})
        second = client.get("/search", params={"q": "Grateful  Dead"})

        assert first.json() == second.json()
        assert mocks["archive"].search.await_count == 1

    @pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}, {"q": "a"}])
    def test_missing_or_blank_query_is_400(self, client_and_mocks, params) -> None:
        client, mocks = client_and_mocks

        resp = client.get("/search", params=params)

        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "ValidationError"
        assert body["detail"]
        assert mocks["archive"].search.await_count == 0

    @pytest.mark.parametrize("params", [{"start": -1}, {"rows": 0}, {"rows": 500}])
    def test_bad_window_is_400(self, client_and_mocks, params) -> None:
        client, _ = client_and_mocks
        resp = client.get("/search", params={"q": "grateful dead", **params})
        assert resp.status_code == 400

    def test_upstream_failure_is_500_with_status(self) -> None:
        archive = make_mock_catalog("archive")
        archive.search = AsyncMock(side_effect=UpstreamUnavailableError(
            "Archive answered HTTP 502", provider_name="archive", upstream_status=502
        ))
        app, _ = _create_test_app(archive)
        client = TestClient(app)

        resp = client.get("/search", params={"q": "grateful dead"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "UpstreamUnavailableError"
        assert body["source"] == "archive"
        assert body["status_code"] == 502

    def test_all_sources_failing_lists_failures(self) -> None:
        archive = make_mock_catalog("archive")
        archive.search = AsyncMock(side_effect=UpstreamUnavailableError(
            "timeout", provider_name="archive"
        ))
        app, _ = _create_test_app(archive)
        client = TestClient(app)

        resp = client.get("/search", params={"q": "grateful dead", "secondary": "true"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "AggregationFailureError"
        assert [f["source"] for f in body["failures"]] == ["archive", "musicbrainz"]
        assert body["failures"][1]["status_code"] == 503

    def test_failing_secondary_is_ignored(self, client_and_mocks) -> None:
        client, _ = client_and_mocks

        resp = client.get("/search", params={"q": "grateful dead", "secondary": "true"})

        assert resp.status_code == 200
        assert len(resp.json()["response"]["docs"]) == 2

    def test_cors_headers(self, client_and_mocks) -> None:
        client, _ = client_and_mocks
        resp = client.get(
            "/search",
            params={"q": "grateful dead"},
            headers={"Origin": "https://player.example"},
        )
        assert resp.headers["access-control-allow-origin"] == "*"


# ======================================================================
# Album and release detail
# ======================================================================


class TestDetailEndpoints:
    def test_track_detail(self, client_and_mocks) -> None:
        client, mocks = client_and_mocks

        resp = client.get("/track/gd-wd")

        assert resp.status_code == 200
        body = resp.json()
        assert body["title"] == "Workingman's Dead"
        assert body["coverUrl"].endswith("/gd-wd")
        assert [t["streamUrl"] for t in body["tracks"]] == [
            "https://archive.org/download/gd-wd/01.mp3",
            "https://archive.org/download/gd-wd/02.mp3",
        ]
        mocks["archive"].get_album.assert_awaited_once_with("gd-wd")

    def test_unknown_track_is_404(self, client_and_mocks) -> None:
        client, mocks = client_and_mocks
        mocks["archive"].get_album.side_effect = NotFoundError(
            "No archive item 'nope'", provider_name="archive"
        )

        resp = client.get("/track/nope")

        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFoundError"

    def test_invalid_release_id_is_400(self, client_and_mocks) -> None:
        client, mocks = client_and_mocks
        resp = client.get("/release/not-an-mbid")
        assert resp.status_code == 400
        assert mocks["musicbrainz"].get_album.await_count == 0

    def test_unknown_release_is_404(self, client_and_mocks) -> None:
        client, _ = client_and_mocks
        resp = client.get(f"/release/{RELEASE_ID}")
        assert resp.status_code == 404


# ======================================================================
# Artist browsing
# ======================================================================


class TestArtistEndpoints:
    def test_search_artists(self, client_and_mocks) -> None:
        client, _ = client_and_mocks

        resp = client.get("/artists/search", params={"q": "nick drake"})

        assert resp.status_code == 200
        assert resp.json()["artists"][0]["name"] == "Nick Drake"

    def test_search_artists_limit_bounds(self, client_and_mocks) -> None:
        client, _ = client_and_mocks
        resp = client.get("/artists/search", params={"q": "nick drake", "limit": 0})
        assert resp.status_code == 422

    def test_artist_releases(self, client_and_mocks) -> None:
        client, mocks = client_and_mocks

        resp = client.get(f"/artist/{ARTIST_ID}/releases")

        assert resp.status_code == 200
        body = resp.json()["response"]
        assert body["artist"] == "Nick Drake"
        assert body["docs"][0]["trackCount"] == 11
        mocks["musicbrainz"].get_artist_releases.assert_awaited_once_with(
            ARTIST_ID, start=0, rows=25
        )


# ======================================================================
# GET /health
# ======================================================================


class TestHealthEndpoint:
    def test_health(self, client_and_mocks) -> None:
        client, _ = client_and_mocks
        client.get("/search", params={"q": "grateful dead"})

        resp = client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["version"] == "1.0.0"
        assert body["providers"] == {"archive": True, "musicbrainz": True}
        assert body["cache_entries"] == 1
        assert body["backend_url"] == "http://localhost:8000"

    def test_unhealthy_without_archive(self) -> None:
        app, _ = _create_test_app()
        app.state.provider_registry = {"archive": False}
        resp = TestClient(app).get("/health")
        assert resp.json()["status"] == "unhealthy"

    def test_backend_url_absent_when_unset(self) -> None:
        app, _ = _create_test_app()
        del app.state.backend_url
        resp = TestClient(app).get("/health")
        assert resp.status_code == 200
        assert resp.json()["backend_url"] is None
