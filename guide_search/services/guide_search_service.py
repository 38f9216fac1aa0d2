"""
Business logic service layer.

Owns the catalog snapshot and its search index, and turns a user query
into a ranked, filtered, truncated and highlighted result list.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

import structlog

from .. import metrics
from ..catalog import parse_catalog
from ..config import Settings
from ..domain.entities import GuideEntry, ScoredResult, SearchField, SearchResult
from ..domain.exceptions import (
    CatalogUnavailableException,
    GuideSearchException,
    ScoringFailureException,
    ValidationException,
)
from ..search.fuzzy_matcher import FuzzyMatcher
from ..search.highlighter import Highlighter
from ..search.relevance_scorer import RelevanceScorer, normalize_query
from ..search.search_index import SearchIndex
from ..search.thesaurus import KeywordThesaurus, Suggestion, get_thesaurus

logger = structlog.get_logger(__name__)


class SortOrder(str, Enum):
    """Result orderings offered by the search page."""

    RELEVANCE = "relevance"
    NAME = "name"
    STARS = "stars"
    CATEGORY = "category"

    @classmethod
    def parse(cls, value: Union[str, "SortOrder", None]) -> "SortOrder":
        """
        Parse a sort order name.

        Raises:
            ValidationException: If the name is unknown
        """
        if value is None or value == "":
            return cls.RELEVANCE
        try:
            return cls(value)
        except ValueError:
            raise ValidationException(
                "sort", value, f"must be one of {[order.value for order in cls]}"
            )


@dataclass(frozen=True)
class SearchFilters:
    """
    Restrictions applied before ranking.

    Empty category or language sets mean "any".
    """

    categories: FrozenSet[str] = frozenset()
    languages: FrozenSet[str] = frozenset()
    min_stars: int = 0

    def __post_init__(self):
        """Validate filter values."""
        if self.min_stars < 0:
            raise ValidationException("min_stars", self.min_stars, "must be non-negative")

    @classmethod
    def create(
        cls,
        categories: Optional[Iterable[str]] = None,
        languages: Optional[Iterable[str]] = None,
        min_stars: int = 0,
    ) -> "SearchFilters":
        return cls(
            categories=frozenset(c for c in (categories or ()) if c),
            languages=frozenset(lang for lang in (languages or ()) if lang),
            min_stars=min_stars,
        )

    @property
    def is_empty(self) -> bool:
        return not self.categories and not self.languages and self.min_stars == 0

    def accepts(self, entry: GuideEntry) -> bool:
        """Check whether a guide passes every filter."""
        if self.categories and entry.category not in self.categories:
            return False
        if self.languages and entry.language not in self.languages:
            return False
        return (entry.stars or 0) >= self.min_stars


class GuideSearchService:
    """
    Guide search over an in-memory catalog snapshot.

    Pipeline per query:
    1. Normalize; queries under the minimum length return no results
    2. Expand the query through the thesaurus
    3. Prefilter index records with every expanded term (full scan if
       nothing passes, so typo matches survive)
    4. Apply filters, score and sort
    5. Reorder by the requested sort order, truncate, highlight
    """

    DEFAULT_MAX_RESULTS = 8
    DEFAULT_MIN_QUERY_LENGTH = 2

    def __init__(
        self,
        scorer: Optional[RelevanceScorer] = None,
        index: Optional[SearchIndex] = None,
        highlighter: Optional[Highlighter] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        min_query_length: int = DEFAULT_MIN_QUERY_LENGTH,
    ):
        """
        Initialize search service.

        Args:
            scorer: Relevance scorer
            index: Search index
            highlighter: Highlight renderer
            max_results: Default number of results returned by search()
            min_query_length: Shorter queries return no results
        """
        self.scorer = scorer or RelevanceScorer()
        self.index = index or SearchIndex()
        self.highlighter = highlighter or Highlighter()
        self.max_results = max_results
        self.min_query_length = min_query_length
        self._catalog: Optional[Tuple[GuideEntry, ...]] = None

    @classmethod
    def from_settings(
        cls, settings: Settings, thesaurus: Optional[KeywordThesaurus] = None
    ) -> "GuideSearchService":
        """Create a service configured from application settings."""
        scorer = RelevanceScorer(
            matcher=FuzzyMatcher(max_distance=settings.FUZZY_MAX_DISTANCE),
            thesaurus=thesaurus or get_thesaurus(),
            threshold=settings.SEARCH_THRESHOLD,
        )
        highlighter = Highlighter(
            open_tag=settings.HIGHLIGHT_OPEN_TAG,
            close_tag=settings.HIGHLIGHT_CLOSE_TAG,
        )
        return cls(
            scorer=scorer,
            highlighter=highlighter,
            max_results=settings.MAX_RESULTS,
            min_query_length=settings.MIN_QUERY_LENGTH,
        )

    @property
    def catalog(self) -> Optional[Tuple[GuideEntry, ...]]:
        return self._catalog

    @property
    def thesaurus(self) -> KeywordThesaurus:
        return self.scorer.thesaurus

    def set_catalog(
        self, catalog: Optional[Iterable[Union[GuideEntry, Mapping[str, Any]]]]
    ) -> None:
        """
        Replace the catalog snapshot and rebuild the index.

        Args:
            catalog: Guides or raw guide mappings; None unloads the catalog
        """
        if catalog is None:
            self._catalog = None
            metrics.search_index_records.set(0)
            logger.warning("Guide catalog unloaded")
            return

        try:
            guides = tuple(parse_catalog(catalog))
        except TypeError as e:
            raise CatalogUnavailableException(f"catalog is not a guide sequence: {e}") from e
        records = self.index.build(guides)
        self._catalog = guides

        metrics.search_index_builds_total.inc()
        metrics.search_index_records.set(len(records))
        logger.info("Guide catalog loaded", guides=len(guides))

    def rank(
        self, query: str, filters: Optional[SearchFilters] = None
    ) -> List[ScoredResult]:
        """
        Rank every qualifying guide for a query.

        Args:
            query: Raw user query
            filters: Optional category, language and star filters

        Returns:
            All qualifying ScoredResults, sorted by relevance

        Raises:
            CatalogUnavailableException: If no catalog is loaded
        """
        normalized = normalize_query(query)
        if len(normalized) < self.min_query_length:
            return []

        catalog = self._catalog
        if catalog is None:
            raise CatalogUnavailableException("no catalog loaded")

        terms = self.scorer.expand(normalized)
        records = self.index.build(catalog)

        candidates = [
            record.entry
            for record in records
            if SearchIndex.prefilter_any(record, terms)
        ]
        if not candidates:
            candidates = [record.entry for record in records]

        if filters is not None and not filters.is_empty:
            candidates = [entry for entry in candidates if filters.accepts(entry)]

        return self.scorer.rank(
            candidates, normalized, terms, on_failure=self._on_scoring_failure
        )

    def search(
        self,
        query: str,
        limit: Optional[int] = None,
        filters: Optional[SearchFilters] = None,
        sort: Union[SortOrder, str, None] = SortOrder.RELEVANCE,
    ) -> List[SearchResult]:
        """
        Search the catalog.

        Args:
            query: Raw user query
            limit: Maximum results (default: max_results)
            filters: Optional category, language and star filters
            sort: Result ordering (default: relevance)

        Returns:
            Highlighted search results

        Raises:
            CatalogUnavailableException: If no catalog is loaded
            ValidationException: If limit or sort order is invalid
        """
        order = SortOrder.parse(sort)
        if limit is not None and limit < 1:
            raise ValidationException("limit", limit, "must be at least 1")

        start_time = time.perf_counter()
        try:
            ranked = self.rank(query, filters)
        except GuideSearchException:
            metrics.search_queries_total.labels(status="error").inc()
            raise

        ordered = self._order(ranked, order)
        top = ordered[: limit or self.max_results]
        normalized = normalize_query(query)
        results = [self._present(result, normalized) for result in top]

        duration = time.perf_counter() - start_time
        metrics.search_queries_total.labels(status="success").inc()
        metrics.search_query_duration_seconds.observe(duration)
        metrics.search_results_per_query.observe(len(results))

        logger.debug(
            "Search completed",
            query=query,
            matched=len(ranked),
            returned=len(results),
            latency_ms=round(duration * 1000, 2),
        )
        return results

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        """Keyword suggestions for a partial query."""
        return self.thesaurus.suggest(query, limit=limit)

    @staticmethod
    def _order(results: List[ScoredResult], order: SortOrder) -> List[ScoredResult]:
        if order is SortOrder.NAME:
            return sorted(results, key=lambda r: r.entry.display_name or "")
        if order is SortOrder.STARS:
            return sorted(results, key=lambda r: (-(r.entry.stars or 0), -r.score))
        if order is SortOrder.CATEGORY:
            return sorted(
                results,
                key=lambda r: (r.entry.category or "", r.entry.display_name or ""),
            )
        return results

    def _present(self, result: ScoredResult, query: str) -> SearchResult:
        entry = result.entry
        title_field = SearchField.DISPLAY_NAME if entry.display_name else SearchField.NAME
        return SearchResult(
            entry=entry,
            score=result.score,
            matched_field=result.matched_field,
            highlighted_name=self._highlight(entry.title, title_field, result, query),
            highlighted_description=self._highlight(
                entry.description, SearchField.DESCRIPTION, result, query
            ),
        )

    def _highlight(
        self, text: str, field: SearchField, result: ScoredResult, query: str
    ) -> str:
        """
        Highlight a display field.

        Reuses the winning spans when the match came from this field,
        otherwise matches the query, then the winning term, against the text.
        """
        if result.matched_field is field:
            return self.highlighter.highlight(text, result.spans)

        for term in dict.fromkeys((query, result.matched_term)):
            match = self.scorer.matcher.match(term, text) if term else None
            if match is not None:
                return self.highlighter.highlight(text, match.spans)
        return self.highlighter.highlight(text, ())

    def _on_scoring_failure(self, failure: ScoringFailureException) -> None:
        metrics.search_scoring_failures_total.inc()
        logger.warning("Guide skipped", **failure.details)

    def get_stats(self) -> dict:
        """
        Get service configuration and catalog status.

        Returns:
            Dictionary with service stats
        """
        return {
            "catalog_loaded": self._catalog is not None,
            "guides": len(self._catalog or ()),
            "index_builds": self.index.builds,
            "max_results": self.max_results,
            "min_query_length": self.min_query_length,
            "thesaurus_keywords": len(self.thesaurus),
            "scorer": self.scorer.get_stats(),
        }
