"""
Relevance scoring system for guide search.

Scores catalog guides against a query by combining direct field matches,
thesaurus-expanded matches, exact-name and acronym bonuses, and a small
popularity signal.
"""

import logging
import math
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..domain.entities import (
    GuideEntry,
    MatchResult,
    MatchSpan,
    MatchTier,
    ScoredResult,
    SearchField,
)
from ..domain.exceptions import MalformedEntryException, ScoringFailureException
from .fuzzy_matcher import FuzzyMatcher, fold_case, iter_word_spans
from .thesaurus import KeywordThesaurus, get_thesaurus

logger = logging.getLogger(__name__)


def normalize_query(query: Optional[str]) -> str:
    """Trim, lowercase and collapse inner whitespace."""
    if not query:
        return ""
    return " ".join(query.lower().split())


class RelevanceScorer:
    """
    Calculate relevance scores for catalog guides.

    Scoring components:
    1. Best tiered match (score x field weight) of the query itself
    2. Best tiered match of each expanded term, discounted by 0.8
    3. Exact-equality bonus when the query equals the name or display name
    4. Acronym bonus when word initials spell the query
    5. Popularity boost from stars, capped to only break near-ties

    Guides without any text evidence, or with a total under the
    threshold, are excluded.
    """

    # Field weights (name highest, description and language lowest)
    FIELD_WEIGHTS: Dict[SearchField, float] = {
        SearchField.NAME: 1.0,
        SearchField.DISPLAY_NAME: 0.95,
        SearchField.CATEGORY: 0.7,
        SearchField.TOPICS: 0.7,
        SearchField.DESCRIPTION: 0.5,
        SearchField.LANGUAGE: 0.5,
    }

    ACRONYM_FIELDS = (SearchField.NAME, SearchField.DISPLAY_NAME, SearchField.DESCRIPTION)

    EXPANSION_DISCOUNT = 0.8
    # Larger than any other attainable total
    EXACT_MATCH_BONUS = 5.0
    ACRONYM_BONUS = 0.5
    POPULARITY_WEIGHT = 0.005
    POPULARITY_CAP = 0.02

    DEFAULT_THRESHOLD = 0.3

    def __init__(
        self,
        matcher: Optional[FuzzyMatcher] = None,
        thesaurus: Optional[KeywordThesaurus] = None,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        """
        Initialize relevance scorer.

        Args:
            matcher: Fuzzy matcher (default: FuzzyMatcher())
            thesaurus: Keyword thesaurus (default: process-wide thesaurus)
            threshold: Minimum total score for a guide to be kept
        """
        self.matcher = matcher or FuzzyMatcher()
        self.thesaurus = thesaurus or get_thesaurus()
        self.threshold = threshold

    def expand(self, query: str) -> FrozenSet[str]:
        """Normalize and expand a raw query."""
        normalized = normalize_query(query)
        if not normalized:
            return frozenset()
        return self.thesaurus.expand(normalized)

    def score(
        self,
        entry: GuideEntry,
        raw_query: str,
        expanded_terms: Optional[Iterable[str]] = None,
    ) -> Optional[ScoredResult]:
        """
        Score one guide against a query.

        Args:
            entry: Catalog guide
            raw_query: Query as typed by the user
            expanded_terms: Pre-computed thesaurus expansion of the query,
                computed here when omitted

        Returns:
            ScoredResult, or None when the guide does not qualify
        """
        query = normalize_query(raw_query)
        if not query:
            return None

        terms = self.expand(query) if expanded_terms is None else expanded_terms
        fields = self._field_values(entry)

        best = self._best_match(query, fields, discount=1.0)
        for term in sorted(set(terms) - {query}):
            candidate = self._best_match(term, fields, discount=self.EXPANSION_DISCOUNT)
            if candidate is not None and (best is None or candidate[0] > best[0]):
                best = candidate

        exact_bonus = self._exact_bonus(query, fields)
        acronym = self._acronym_match(query, fields)

        if best is None and acronym is None:
            return None

        total = best[0] if best is not None else 0.0
        total += exact_bonus
        if acronym is not None:
            total += self.ACRONYM_BONUS
        total += self._popularity_boost(entry.stars)

        if total < self.threshold:
            return None

        if best is not None:
            _, field, result, term = best
            spans = result.spans
            if term != query:
                spans = tuple(
                    MatchSpan(span.start, span.end, MatchTier.EXPANDED_TERM)
                    for span in spans
                )
            return ScoredResult(
                entry=entry,
                score=total,
                matched_field=field,
                spans=spans,
                match_tier=result.tier,
                matched_term=term,
            )

        field, spans = acronym
        return ScoredResult(
            entry=entry,
            score=total,
            matched_field=field,
            spans=spans,
            match_tier=MatchTier.WORD_BOUNDARY,
            matched_term=query,
        )

    def rank(
        self,
        entries: Iterable[GuideEntry],
        raw_query: str,
        expanded_terms: Optional[Iterable[str]] = None,
        on_failure: Optional[Callable[[ScoringFailureException], None]] = None,
    ) -> List[ScoredResult]:
        """
        Score many guides and return them sorted by relevance.

        A guide whose scoring fails is reported and skipped; the rest of
        the batch is still scored.

        Args:
            entries: Catalog guides to score
            raw_query: Query as typed by the user
            expanded_terms: Pre-computed expansion of the query
            on_failure: Called with the failure of each skipped guide

        Returns:
            ScoredResults sorted by score, stars, then display name
        """
        terms = self.expand(raw_query) if expanded_terms is None else expanded_terms
        results = []
        for entry in entries:
            try:
                result = self.score(entry, raw_query, terms)
            except Exception as e:
                failure = ScoringFailureException(getattr(entry, "name", "?"), str(e))
                logger.warning(failure.message)
                if on_failure is not None:
                    on_failure(failure)
                continue
            if result is not None:
                results.append(result)

        results.sort(key=ScoredResult.sort_key)
        return results

    def _field_values(self, entry: GuideEntry) -> Dict[SearchField, str]:
        """
        Read searchable field values, substituting "" for missing ones.

        A missing required field is logged as a malformed entry and the
        guide is still scored on the fields it has.
        """
        values: Dict[SearchField, str] = {}
        name = getattr(entry, "name", None) or ""
        for field in SearchField:
            if field is SearchField.TOPICS:
                topics = getattr(entry, "topics", None) or ()
                values[field] = " ".join(str(topic) for topic in topics)
                continue

            value = getattr(entry, field.value, None)
            if value is None and field is not SearchField.LANGUAGE:
                logger.warning(MalformedEntryException(name, field.value).message)
            values[field] = str(value) if value is not None else ""
        return values

    def _best_match(
        self, term: str, fields: Dict[SearchField, str], discount: float
    ) -> Optional[Tuple[float, SearchField, MatchResult, str]]:
        best = None
        for field, weight in self.FIELD_WEIGHTS.items():
            result = self.matcher.match(term, fields[field])
            if result is None:
                continue
            contribution = result.score * weight * discount
            if best is None or contribution > best[0]:
                best = (contribution, field, result, term)
        return best

    def _exact_bonus(self, query: str, fields: Dict[SearchField, str]) -> float:
        for field in (SearchField.NAME, SearchField.DISPLAY_NAME):
            if normalize_query(fields[field]) == query:
                return self.EXACT_MATCH_BONUS
        return 0.0

    def _acronym_match(
        self, query: str, fields: Dict[SearchField, str]
    ) -> Optional[Tuple[SearchField, Tuple[MatchSpan, ...]]]:
        """
        Check whether word initials of a field spell the query.

        "ngx" matches "Next Generation eXchange"; spans cover the initials.
        """
        if len(query) < 2 or not query.isalnum():
            return None

        for field in self.ACRONYM_FIELDS:
            words = list(iter_word_spans(fold_case(fields[field])))
            if len(words) < len(query):
                continue
            initials = "".join(
                fold_case(fields[field][start]) for start, _ in words[: len(query)]
            )
            if initials == query:
                spans = tuple(
                    MatchSpan(start, start + 1, MatchTier.WORD_BOUNDARY)
                    for start, _ in words[: len(query)]
                )
                return field, spans
        return None

    def _popularity_boost(self, stars: int) -> float:
        if not stars or stars <= 0:
            return 0.0
        return min(self.POPULARITY_CAP, self.POPULARITY_WEIGHT * math.log10(1 + stars))

    def get_stats(self) -> dict:
        """
        Get scorer configuration.

        Returns:
            Dictionary with scorer settings
        """
        return {
            "field_weights": {field.value: w for field, w in self.FIELD_WEIGHTS.items()},
            "expansion_discount": self.EXPANSION_DISCOUNT,
            "exact_match_bonus": self.EXACT_MATCH_BONUS,
            "acronym_bonus": self.ACRONYM_BONUS,
            "popularity_cap": self.POPULARITY_CAP,
            "threshold": self.threshold,
            "matcher": self.matcher.get_stats(),
        }
