"""Unit tests for the search CLI -- src.cli.search."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import src.main as app_module
from src.cli.search import _build_parser, format_json, format_text, main
from src.models.catalog import ScoredCandidate, SearchResultPage
from src.utils.errors import (
    AggregationFailureError,
    UpstreamUnavailableError,
    ValidationError,
)


# ======================================================================
# Shared helpers
# ======================================================================


def _page(start: int = 0) -> SearchResultPage:
    return SearchResultPage(
        docs=[
            ScoredCandidate(
                identifier="gd-wd-rm",
                title="Workingman's Dead (Remastered)",
                creator="Grateful Dead",
                score=24,
            ),
            ScoredCandidate(identifier="gd-ab", title="American Beauty", year="1970", score=18),
        ],
        num_found=3,
        start=start,
        rows=10,
    )


def _components(search_result=None, search_error=None) -> dict:
    aggregator = MagicMock()
    aggregator.search = AsyncMock(return_value=search_result, side_effect=search_error)
    http_client = MagicMock()
    http_client.aclose = AsyncMock()
    return {"search_aggregator": aggregator, "http_client": http_client}


@pytest.fixture(autouse=True)
def _quiet_logging():
    # The CLI reconfigures logging onto stderr; keep the test session's setup.
    with patch("src.cli.search.configure_logging"):
        yield


# ======================================================================
# Formatting
# ======================================================================


class TestFormatting:
    def test_format_text(self) -> None:
        text = format_text("grateful dead", _page())
        lines = text.splitlines()

        assert lines[0] == 'Results 1-2 of 3 for "grateful dead"'
        assert lines[2] == (
            "  1. [ 24] Workingman's Dead (Remastered) - Grateful Dead  <archive:gd-wd-rm>"
        )
        assert lines[3] == "  2. [ 18] American Beauty (1970)  <archive:gd-ab>"

    def test_format_text_positions_follow_start(self) -> None:
        text = format_text("grateful dead", _page(start=10))
        assert text.splitlines()[0].startswith("Results 11-12 of 3")
        assert "\n 11. [ 24]" in text

    def test_format_text_empty(self) -> None:
        assert format_text("zzz", SearchResultPage()) == 'No results for "zzz".'

    def test_format_json_uses_api_envelope(self) -> None:
        payload = json.loads(format_json(_page()))
        assert payload["response"]["numFound"] == 3
        assert payload["response"]["docs"][0]["identifier"] == "gd-wd-rm"


class TestParser:
    def test_defaults(self) -> None:
        args = _build_parser().parse_args(["grateful dead"])
        assert args.query == "grateful dead"
        assert args.start == 0
        assert args.rows is None
        assert args.secondary is False
        assert args.json_output is False
        assert args.log_level == "WARNING"

    def test_all_flags(self) -> None:
        args = _build_parser().parse_args(
            ["nick drake", "--start", "20", "--rows", "5", "--secondary", "--json"]
        )
        assert (args.start, args.rows, args.secondary, args.json_output) == (20, 5, True, True)


# ======================================================================
# main() exit codes
# ======================================================================


class TestMain:
    def test_success_prints_results(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components(search_result=_page())
        with patch.object(app_module, "build_services", return_value=components):
            code = main(["grateful dead", "--rows", "10"])

        assert code == 0
        assert "Workingman's Dead (Remastered)" in capsys.readouterr().out
        components["search_aggregator"].search.assert_awaited_once_with(
            "grateful dead", start=0, rows=10, include_secondary=False
        )
        components["http_client"].aclose.assert_awaited_once()

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components(search_result=_page())
        with patch.object(app_module, "build_services", return_value=components):
            code = main(["grateful dead", "--json", "--secondary"])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert [d["identifier"] for d in payload["response"]["docs"]] == ["gd-wd-rm", "gd-ab"]

    def test_invalid_query_exits_2(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components(search_error=ValidationError("Query parameter is required"))
        with patch.object(app_module, "build_services", return_value=components):
            code = main(["  "])

        assert code == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Query parameter is required" in captured.err
        components["http_client"].aclose.assert_awaited_once()

    @pytest.mark.parametrize(
        "error",
        [
            UpstreamUnavailableError("HTTP 503", provider_name="archive", upstream_status=503),
            AggregationFailureError("All search sources failed"),
        ],
    )
    def test_upstream_failure_exits_1(self, error, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components(search_error=error)
        with patch.object(app_module, "build_services", return_value=components):
            code = main(["grateful dead"])

        assert code == 1
        assert "Error:" in capsys.readouterr().err
