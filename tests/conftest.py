"""Shared pytest fixtures for the OpenStream test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.music_db_provider import IMusicCatalogProvider
from src.models.catalog import CandidateRecord, ProviderSearchResult
from src.providers.cache.memory_cache import MemoryCacheProvider

# ---------------------------------------------------------------------------
# Virtual time
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when a test advances it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(fake_clock: FakeClock) -> MemoryCacheProvider:
    """Cache store on virtual time with the production namespace TTLs."""
    return MemoryCacheProvider(
        max_size=100,
        ttl=3600.0,
        namespace_ttls={"search": 3600.0, "album": 86400.0, "artist": 43200.0},
        clock=fake_clock,
    )


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Return a minimal configuration dict as produced by load_config()."""
    return {
        "app": {"name": "OpenStream", "version": "1.0.0"},
        "search": {
            "scoring": {"exact_match_bonus": 10, "token_match_bonus": 3},
            "query_weights": {"phrase": 10, "creator_tokens": 5, "title_tokens": 2},
        },
        "cache": {"max_size": 100},
    }


# ---------------------------------------------------------------------------
# Candidate builders
# ---------------------------------------------------------------------------


def make_candidate(identifier: str, title: str, **fields: Any) -> CandidateRecord:
    """Build a CandidateRecord with archive defaults."""
    return CandidateRecord(identifier=identifier, title=title, **fields)


@pytest.fixture
def grateful_dead_candidates() -> list[CandidateRecord]:
    """Archive answer for "grateful dead": two editions of one album plus another."""
    return [
        make_candidate("gd-wd", "Workingman's Dead", creator="Grateful Dead", downloads=50),
        make_candidate(
            "gd-wd-rm",
            "Workingman's Dead (Remastered)",
            creator="Grateful Dead",
            downloads=200,
        ),
        make_candidate("gd-ab", "American Beauty", creator="Grateful Dead", downloads=10),
    ]


# ---------------------------------------------------------------------------
# Mock provider fixtures
# ---------------------------------------------------------------------------


def make_mock_catalog(
    name: str,
    candidates: list[CandidateRecord] | None = None,
    num_found: int | None = None,
) -> MagicMock:
    """Mock IMusicCatalogProvider whose search() returns *candidates*."""
    candidates = candidates or []
    mock = MagicMock(spec=IMusicCatalogProvider)
    mock.get_provider_name.return_value = name
    mock.is_available.return_value = True
    mock.search = AsyncMock(
        return_value=ProviderSearchResult(
            provider=name,
            candidates=candidates,
            num_found=len(candidates) if num_found is None else num_found,
        )
    )
    mock.get_album = AsyncMock()
    return mock


@pytest.fixture
def mock_archive_provider(grateful_dead_candidates: list[CandidateRecord]) -> MagicMock:
    return make_mock_catalog("archive", grateful_dead_candidates)
