"""Search aggregation: the orchestration layer of the ranking pipeline.

For one request the aggregator:

1. validates the query and the page window (before any I/O);
2. answers from the ``search`` cache namespace when it can;
3. otherwise asks the selected providers, concurrently, for the leading
   ``max_candidates`` raw candidates of the query (split evenly between
   them);
4. merges the answers in provider order, scores, collapses duplicates and
   sorts, giving one ranked list that every page of the query is sliced
   from, so consecutive pages never overlap;
5. caches that page under the key of *this* request and returns it.

Failure policy: a failing secondary source is logged and ignored; if every
requested source fails the request fails, and failures always raise -- an
empty page only ever means "no matches".
"""

from __future__ import annotations

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.music_db_provider import IMusicCatalogProvider
from src.models.catalog import CandidateRecord, ProviderSearchResult, SearchResultPage
from src.services.deduplicator import deduplicate
from src.services.query_builder import tokenize_query
from src.services.relevance_scorer import RelevanceScorer
from src.utils.concurrency import throttled_gather
from src.utils.errors import (
    AggregationFailureError,
    OpenStreamError,
    SourceFailure,
    UpstreamUnavailableError,
    ValidationError,
)
from src.utils.logging import get_logger
from src.utils.text_normalizer import normalize_query

SEARCH_NAMESPACE = "search"


class SearchAggregator:
    """Composes paginated, deduplicated, score-ranked search pages.

    Parameters
    ----------
    primary:
        The provider always consulted (the Internet Archive).
    cache:
        Injected cache store; pages are kept in the ``search`` namespace.
    scorer:
        Relevance scorer; defaults to the canonical scoring policy.
    secondary:
        Optional extra provider, consulted only when a request asks for it.
    default_rows, max_rows:
        Page size used when ``rows`` is omitted, and the largest accepted.
    max_candidates:
        Size of the ranking window: the raw candidates fetched from offset 0
        and fed to duplicate grouping.  Results past it are not reachable.
    ttl:
        TTL for cached pages; ``None`` uses the cache's namespace default.
    """

    def __init__(
        self,
        primary: IMusicCatalogProvider,
        cache: ICacheProvider,
        scorer: RelevanceScorer | None = None,
        secondary: IMusicCatalogProvider | None = None,
        default_rows: int = 10,
        max_rows: int = 50,
        max_candidates: int = 150,
        ttl: float | None = None,
    ) -> None:
        self._primary = primary
        self._secondary = secondary
        self._cache = cache
        self._scorer = scorer or RelevanceScorer()
        self._default_rows = default_rows
        self._max_rows = max_rows
        self._max_candidates = max_candidates
        self._ttl = ttl
        self._logger = get_logger(__name__)

    @property
    def has_secondary(self) -> bool:
        return self._secondary is not None

    def provider_names(self) -> list[str]:
        names = [self._primary.get_provider_name()]
        if self._secondary is not None:
            names.append(self._secondary.get_provider_name())
        return names

    async def search(
        self,
        query: str | None,
        start: int = 0,
        rows: int | None = None,
        include_secondary: bool = False,
    ) -> SearchResultPage:
        """Return one page of ranked results for *query*.

        Raises
        ------
        ValidationError
            Blank query, no usable token, ``start < 0`` or ``rows`` outside
            ``1..max_rows``.  Raised before any upstream call.
        UpstreamUnavailableError
            The only requested source failed.
        AggregationFailureError
            Several sources were requested and all of them failed.
        """
        tokenize_query(query)
        rows = self._default_rows if rows is None else rows
        if start < 0:
            raise ValidationError(f"start must be >= 0, got {start}")
        if not 1 <= rows <= self._max_rows:
            raise ValidationError(f"rows must be between 1 and {self._max_rows}, got {rows}")

        providers = self._select_providers(include_secondary)
        cache_key = self._cache_key(providers, query, start, rows)

        cached = await self._cache.get(SEARCH_NAMESPACE, cache_key)
        if cached is not None:
            self._logger.debug("search_cache_hit", query=query, start=start, rows=rows)
            return SearchResultPage.model_validate(cached)

        results = await self._fetch(providers, query)
        page = self._compose(query, results, start, rows)

        await self._cache.set(SEARCH_NAMESPACE, cache_key, page.model_dump(), ttl=self._ttl)
        self._logger.info(
            "search_complete",
            query=query,
            start=start,
            rows=rows,
            sources=[p.get_provider_name() for p in providers],
            returned=len(page.docs),
            num_found=page.num_found,
        )
        return page

    # -- Private helpers --------------------------------------------------------

    def _select_providers(self, include_secondary: bool) -> list[IMusicCatalogProvider]:
        providers = [self._primary]
        if include_secondary:
            if self._secondary is not None:
                providers.append(self._secondary)
            else:
                self._logger.debug("secondary_source_disabled")
        return providers

    @staticmethod
    def _cache_key(
        providers: list[IMusicCatalogProvider], query: str, start: int, rows: int
    ) -> str:
        sources = "+".join(p.get_provider_name() for p in providers)
        return f"{sources}|{normalize_query(query)}|{start}|{rows}"

    async def _fetch(
        self,
        providers: list[IMusicCatalogProvider],
        query: str,
    ) -> list[ProviderSearchResult]:
        # Every page of a query ranks the same window, fetched from offset 0.
        window = max(1, self._max_candidates // len(providers))
        outcomes = await throttled_gather(
            [provider.search(query, start=0, rows=window) for provider in providers]
        )

        successes: list[ProviderSearchResult] = []
        failures: list[tuple[IMusicCatalogProvider, OpenStreamError]] = []
        for provider, outcome in zip(providers, outcomes):
            if isinstance(outcome, ProviderSearchResult):
                successes.append(outcome)
                continue
            if not isinstance(outcome, OpenStreamError):
                # Programming errors and cancellation are not upstream outages.
                raise outcome
            self._logger.warning(
                "search_source_failed",
                source=provider.get_provider_name(),
                error=str(outcome),
            )
            failures.append((provider, outcome))

        if successes:
            return successes

        if len(failures) == 1:
            raise failures[0][1]
        raise AggregationFailureError(
            message="All search sources failed",
            failures=[
                SourceFailure(
                    source=provider.get_provider_name(),
                    message=exc.message,
                    upstream_status=(
                        exc.upstream_status if isinstance(exc, UpstreamUnavailableError) else None
                    ),
                )
                for provider, exc in failures
            ],
        )

    def _compose(
        self,
        query: str,
        results: list[ProviderSearchResult],
        start: int,
        rows: int,
    ) -> SearchResultPage:
        merged: list[CandidateRecord] = []
        seen: set[str] = set()
        for result in results:
            for candidate in result.candidates:
                if candidate.identifier in seen:
                    continue
                seen.add(candidate.identifier)
                merged.append(candidate)
        merged = merged[: self._max_candidates]

        scored = self._scorer.score_all(query, merged)
        unique = deduplicate(scored)
        # sorted() is stable: equal scores keep merge order.
        ranked = sorted(unique, key=lambda candidate: candidate.score, reverse=True)

        return SearchResultPage(
            docs=ranked[start : start + rows],
            num_found=max((result.num_found for result in results), default=0),
            start=start,
            rows=rows,
        )
