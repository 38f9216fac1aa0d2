"""
Search analytics.

Keeps a bounded history of recent searches for aggregate statistics:
success rate, click rate, average result count and popular terms.
"""

import logging
import time
from collections import Counter, deque
from dataclasses import dataclass, replace
from typing import Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchRecord:
    """
    One completed search.

    Attributes:
        query: Query text as typed
        result_count: Number of results presented
        selected_result: Routing key ("category/slug") of the chosen guide
        timestamp: Unix time of the search
    """

    query: str
    result_count: int
    selected_result: Optional[str] = None
    timestamp: float = 0.0


class SearchAnalytics:
    """
    Ring buffer of recent searches.

    Attributes:
        history_size: Maximum number of searches retained
    """

    DEFAULT_HISTORY_SIZE = 100
    MIN_TERM_LENGTH = 2

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        """
        Initialize analytics.

        Args:
            history_size: Maximum number of searches retained (default: 100)
        """
        if history_size < 1:
            raise ValueError("history_size must be at least 1")
        self.history_size = history_size
        self._searches: Deque[SearchRecord] = deque(maxlen=history_size)
        self._popular_terms: Counter = Counter()

    def track_search(
        self, query: str, result_count: int, selected_result: Optional[str] = None
    ) -> SearchRecord:
        """
        Record a completed search.

        Args:
            query: Query text
            result_count: Number of results presented
            selected_result: Routing key of the chosen guide, if any

        Returns:
            The stored record
        """
        record = SearchRecord(
            query=query,
            result_count=result_count,
            selected_result=selected_result,
            timestamp=time.time(),
        )
        self._searches.append(record)

        term = query.strip().lower()
        if len(term) >= self.MIN_TERM_LENGTH:
            self._popular_terms[term] += 1

        return record

    def record_selection(self, query: str, selected_result: str) -> bool:
        """
        Attach a selection to the most recent search for a query.

        Args:
            query: Query text the results were produced for
            selected_result: Routing key of the chosen guide

        Returns:
            True if a matching search was found
        """
        for position in range(len(self._searches) - 1, -1, -1):
            record = self._searches[position]
            if record.query == query:
                self._searches[position] = replace(record, selected_result=selected_result)
                return True

        logger.debug(f"No recent search for '{query}' to attach selection to")
        return False

    @property
    def searches(self) -> List[SearchRecord]:
        return list(self._searches)

    def get_popular_terms(self, limit: int = 10) -> List[Dict[str, object]]:
        """
        Most frequent query terms.

        Args:
            limit: Maximum number of terms

        Returns:
            List of {"term", "count"} dictionaries, most frequent first
        """
        return [
            {"term": term, "count": count}
            for term, count in self._popular_terms.most_common(limit)
        ]

    def get_search_stats(self) -> Dict[str, float]:
        """
        Aggregate statistics over the retained searches.

        Returns:
            Dictionary with total searches, success rate (fraction with at
            least one result), click rate (fraction with a selection) and
            average results per search
        """
        total = len(self._searches)
        if total == 0:
            return {
                "total_searches": 0,
                "success_rate": 0.0,
                "click_rate": 0.0,
                "avg_results_per_search": 0.0,
            }

        with_results = sum(1 for s in self._searches if s.result_count > 0)
        with_clicks = sum(1 for s in self._searches if s.selected_result)
        result_sum = sum(s.result_count for s in self._searches)

        return {
            "total_searches": total,
            "success_rate": with_results / total,
            "click_rate": with_clicks / total,
            "avg_results_per_search": result_sum / total,
        }

    def clear(self) -> None:
        """Forget all recorded searches."""
        self._searches.clear()
        self._popular_terms.clear()
