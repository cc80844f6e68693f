"""Unit tests for ArchiveProvider with a mocked httpx client."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.providers.music_db.archive_provider import (
    ArchiveProvider,
    _parse_duration,
    _parse_track_number,
)
from src.utils.errors import NotFoundError, UpstreamUnavailableError

BASE_URL = "https://archive.example"


def _response(status: int = 200, json: Any = None, text: str | None = None) -> httpx.Response:
    request = httpx.Request("GET", f"{BASE_URL}/anything")
    if text is not None:
        return httpx.Response(status, text=text, request=request)
    return httpx.Response(status, json=json, request=request)


def _provider(response: httpx.Response | None = None, error: Exception | None = None):
    http = MagicMock(spec=httpx.AsyncClient)
    http.get = AsyncMock(return_value=response, side_effect=error)
    provider = ArchiveProvider(http_client=http, base_url=BASE_URL, user_agent="Test/0.1")
    return provider, http


SEARCH_PAYLOAD = {
    "responseHeader": {"status": 0},
    "response": {
        "numFound": 1234,
        "start": 0,
        "docs": [
            {
                "identifier": "gd1970-05-02",
                "title": ["Workingman's Dead", "alt title"],
                "creator": "Grateful Dead",
                "year": 1970,
                "downloads": "5120",
                "format": ["VBR MP3", "Flac"],
            },
            {"title": "No identifier, skipped"},
            {"identifier": "bare-item"},
        ],
    },
}


METADATA_PAYLOAD = {
    "metadata": {
        "identifier": "gd-wd",
        "title": "Workingman's Dead",
        "creator": ["Grateful Dead", "Jerry Garcia"],
        "date": "1970-06-14",
    },
    "files": [
        {"name": "02 Dire Wolf.mp3", "format": "VBR MP3", "track": "2/8", "length": "3:14"},
        {"name": "01 Uncle Johns Band.mp3", "format": "VBR MP3", "track": "1",
         "title": "Uncle John's Band", "length": "281.4"},
        {"name": "bonus.mp3", "format": "VBR MP3"},
        {"name": "01 Uncle Johns Band.flac", "format": "FLAC", "track": "1"},
        {"name": "cover.jpg", "format": "JPEG"},
        {"name": "gd-wd_meta.xml", "format": "Metadata"},
    ],
}


# ======================================================================
# Search
# ======================================================================


class TestArchiveSearch:
    @pytest.mark.asyncio
    async def test_maps_docs_to_candidates(self) -> None:
        provider, _ = _provider(_response(json=SEARCH_PAYLOAD))

        result = await provider.search("grateful dead", start=0, rows=30)

        assert result.provider == "archive"
        assert result.num_found == 1234
        assert [c.identifier for c in result.candidates] == ["gd1970-05-02", "bare-item"]

        first = result.candidates[0]
        assert first.title == "Workingman's Dead"
        assert first.creator == "Grateful Dead"
        assert first.year == "1970"
        assert first.downloads == 5120
        assert first.format == ["VBR MP3", "Flac"]
        assert first.source == "archive"

        bare = result.candidates[1]
        assert bare.title == ""
        assert bare.creator is None
        assert bare.downloads is None

    @pytest.mark.asyncio
    async def test_sends_query_window_and_fields(self) -> None:
        provider, http = _provider(_response(json=SEARCH_PAYLOAD))

        await provider.search("grateful dead", start=20, rows=30)

        args, kwargs = http.get.call_args
        assert args[0] == f"{BASE_URL}/advancedsearch.php"
        params = kwargs["params"]
        assert ("rows", 30) in params
        assert ("start", 20) in params
        assert ("output", "json") in params
        assert ("sort[]", "downloads desc") in params
        assert [v for k, v in params if k == "fl[]"] == [
            "identifier", "title", "creator", "year", "downloads", "format",
        ]
        query = dict(params)["q"]
        assert 'creator:"grateful dead"^10' in query
        assert "mediatype:(audio)" in query
        assert kwargs["headers"]["User-Agent"] == "Test/0.1"

    @pytest.mark.asyncio
    async def test_empty_answer_is_not_an_error(self) -> None:
        provider, _ = _provider(_response(json={"response": {"numFound": 0, "docs": []}}))
        result = await provider.search("zzzz qqqq")
        assert result.candidates == []
        assert result.num_found == 0

    @pytest.mark.asyncio
    async def test_missing_response_section(self) -> None:
        provider, _ = _provider(_response(json={"error": "nope"}))
        result = await provider.search("grateful dead")
        assert result.candidates == []
        assert result.num_found == 0


# ======================================================================
# Transport and HTTP failures
# ======================================================================


class TestArchiveErrors:
    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        provider, _ = _provider(_response(status=503, json={}))

        with pytest.raises(UpstreamUnavailableError) as excinfo:
            await provider.search("grateful dead")

        assert excinfo.value.upstream_status == 503
        assert excinfo.value.provider_name == "archive"

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        provider, _ = _provider(error=httpx.ConnectTimeout("timed out"))

        with pytest.raises(UpstreamUnavailableError) as excinfo:
            await provider.get_album("gd-wd")

        assert excinfo.value.upstream_status is None

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        provider, _ = _provider(_response(text="<html>maintenance</html>"))

        with pytest.raises(UpstreamUnavailableError):
            await provider.search("grateful dead")


# ======================================================================
# Album detail
# ======================================================================


class TestArchiveAlbum:
    @pytest.mark.asyncio
    async def test_builds_album_with_ordered_tracks(self) -> None:
        provider, http = _provider(_response(json=METADATA_PAYLOAD))

        album = await provider.get_album("gd-wd")

        assert http.get.call_args.args[0] == f"{BASE_URL}/metadata/gd-wd"
        assert album.identifier == "gd-wd"
        assert album.title == "Workingman's Dead"
        assert album.creator == "Grateful Dead"
        assert album.year == "1970"
        assert album.cover_url == f"{BASE_URL}/services/img/gd-wd"
        assert album.source == "archive"

        # Only the preferred encoding survives; unnumbered tracks go last.
        assert [t.title for t in album.tracks] == ["Uncle John's Band", "02 Dire Wolf", "bonus"]
        assert [t.track for t in album.tracks] == [1, 2, None]
        assert {t.format for t in album.tracks} == {"VBR MP3"}

        first = album.tracks[0]
        assert first.identifier == "gd-wd/01 Uncle Johns Band.mp3"
        assert first.stream_url == f"{BASE_URL}/download/gd-wd/01%20Uncle%20Johns%20Band.mp3"
        assert first.duration == pytest.approx(281.4)
        assert first.creator == "Grateful Dead"
        assert album.tracks[1].duration == pytest.approx(194.0)

    @pytest.mark.asyncio
    async def test_falls_back_to_lossless_only_item(self) -> None:
        payload = {
            "metadata": {"identifier": "flac-only", "title": "Live"},
            "files": [
                {"name": "t1.flac", "format": "FLAC", "track": "1"},
                {"name": "t1.ogg", "format": "Ogg Vorbis", "track": "1"},
            ],
        }
        provider, _ = _provider(_response(json=payload))

        album = await provider.get_album("flac-only")

        assert [t.format for t in album.tracks] == ["Ogg Vorbis"]
        assert album.year is None

    @pytest.mark.asyncio
    async def test_unknown_identifier_is_not_found(self) -> None:
        provider, _ = _provider(_response(json={}))

        with pytest.raises(NotFoundError):
            await provider.get_album("does-not-exist")

    @pytest.mark.asyncio
    async def test_item_without_playable_files_is_not_found(self) -> None:
        payload = {
            "metadata": {"identifier": "scans", "title": "Liner notes"},
            "files": [{"name": "page1.jpg", "format": "JPEG"}],
        }
        provider, _ = _provider(_response(json=payload))

        with pytest.raises(NotFoundError, match="no playable files"):
            await provider.get_album("scans")


# ======================================================================
# Field parsing helpers
# ======================================================================


class TestFieldParsing:
    @pytest.mark.parametrize(
        "raw,expected",
        [("245.3", 245.3), ("4:05", 245.0), ("1:02:03", 3723.0), ("", None), (None, None),
         ("n/a", None)],
    )
    def test_parse_duration(self, raw, expected) -> None:
        assert _parse_duration(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [("3", 3), ("03", 3), ("3/12", 3), (7, 7), ("side A", None), (None, None)],
    )
    def test_parse_track_number(self, raw, expected) -> None:
        assert _parse_track_number(raw) == expected

    def test_provider_identity(self) -> None:
        provider, _ = _provider(_response(json={}))
        assert provider.get_provider_name() == "archive"
        assert provider.is_available() is True
