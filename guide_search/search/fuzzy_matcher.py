"""
Fuzzy matching engine for guide search.

Provides typo-tolerant matching of a query term against a text field
using a cascade of strategies: exact substring, word-boundary prefix,
character subsequence and Levenshtein edit distance.
"""

import logging
import re
from typing import Iterator, List, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from ..domain.entities import MatchResult, MatchSpan, MatchTier

logger = logging.getLogger(__name__)

WORD_SEPARATORS = re.compile(r"[\s\-_.]+")
WORD_PATTERN = re.compile(r"[^\s\-_.]+")


def fold_case(text: str) -> str:
    """
    Lowercase text without changing its length.

    Characters whose lowercase form has a different length are kept
    as-is so that offsets found in the folded text remain valid in
    the original.
    """
    folded = text.lower()
    if len(folded) == len(text):
        return folded
    return "".join(c.lower() if len(c.lower()) == 1 else c for c in text)


def is_word_boundary(char: str) -> bool:
    """Whitespace, hyphen, underscore and period delimit words."""
    return char.isspace() or char in "-_."


def split_words(text: str) -> List[str]:
    """Split text on word separators, dropping empty pieces."""
    return [word for word in WORD_SEPARATORS.split(text) if word]


def iter_word_spans(text: str) -> Iterator[Tuple[int, int]]:
    """Yield (start, end) offsets of every word in text."""
    for word in WORD_PATTERN.finditer(text):
        yield word.start(), word.end()


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost for insertion, deletion and substitution."""
    return Levenshtein.distance(a, b)


def edit_distance_limit(query: str, word: str) -> int:
    """Edits tolerated between a query and a word: floor(30%) of the longer."""
    return (3 * max(len(query), len(word))) // 10


def within_edit_distance(query: str, word: str) -> Optional[int]:
    """
    Edit distance of query and word if it is within the tolerated limit.

    Returns:
        The distance, or None when the word is too far from the query
    """
    limit = edit_distance_limit(query, word)
    if abs(len(query) - len(word)) > limit:
        return None

    distance = Levenshtein.distance(query, word, score_cutoff=limit)
    return distance if distance <= limit else None


class FuzzyMatcher:
    """
    Multi-tier matcher for query terms against guide fields.

    Tiers, strongest first (the first that succeeds wins):
    1. Exact substring (score 1.0)
    2. Word-boundary prefix: query words start consecutive field words (0.9)
    3. Character subsequence with run, boundary, spread and length terms
    4. Edit distance against single words, tolerating ~30% typos

    Matching is case-insensitive; spans point into the original text.
    All methods are pure and safe to call concurrently.
    """

    EXACT_SCORE = 1.0
    WORD_BOUNDARY_SCORE = 0.9
    EDIT_DISTANCE_WEIGHT = 0.8

    # Character subsequence scoring
    CHARACTER_WEIGHT = 0.8
    RUN_BONUS_BASE = 0.1
    RUN_BONUS_STEP = 0.05
    BOUNDARY_BONUS = 0.1
    SPREAD_FLOOR = 0.1
    LENGTH_BONUS_PIVOT = 50

    MIN_SUBSEQUENCE_LENGTH = 3
    MIN_EDIT_QUERY_LENGTH = 4
    MIN_EDIT_WORD_LENGTH = 3

    DEFAULT_MAX_DISTANCE = 100

    def __init__(self, max_distance: int = DEFAULT_MAX_DISTANCE):
        """
        Initialize fuzzy matcher.

        Args:
            max_distance: Upper bound of the spread window used to penalise
                scattered subsequence matches
        """
        if max_distance < 1:
            raise ValueError("max_distance must be at least 1")
        self.max_distance = max_distance

    def match(self, query: str, text: str) -> Optional[MatchResult]:
        """
        Match a query term against a field value.

        Args:
            query: Query term (normalized by the caller)
            text: Original field value

        Returns:
            MatchResult of the first successful tier, or None
        """
        if not query or not text:
            return None

        query_norm = fold_case(query)
        text_norm = fold_case(text)

        # A longer query can never be a substring or subsequence
        if len(query_norm) <= len(text_norm):
            result = (
                self._match_exact(query_norm, text_norm)
                or self._match_word_boundary(query_norm, text_norm)
                or self._match_subsequence(query_norm, text_norm)
            )
            if result is not None:
                return result

        return self._match_edit_distance(query_norm, text_norm)

    def _match_exact(self, query: str, text: str) -> Optional[MatchResult]:
        index = text.find(query)
        if index == -1:
            return None
        span = MatchSpan(index, index + len(query), MatchTier.EXACT)
        return MatchResult(MatchTier.EXACT, self.EXACT_SCORE, (span,))

    def _match_word_boundary(self, query: str, text: str) -> Optional[MatchResult]:
        """
        Match query words against the starts of consecutive field words.

        "web server" matches "web-server" and "Web Servers"; for a single
        word query this only repeats the exact tier and never fires.
        """
        query_words = split_words(query)
        if not query_words:
            return None

        words = list(iter_word_spans(text))
        count = len(query_words)
        for first in range(len(words) - count + 1):
            window = words[first : first + count]
            if all(
                text.startswith(query_word, start)
                for query_word, (start, _) in zip(query_words, window)
            ):
                spans = tuple(
                    MatchSpan(start, start + len(query_word), MatchTier.WORD_BOUNDARY)
                    for query_word, (start, _) in zip(query_words, window)
                )
                return MatchResult(MatchTier.WORD_BOUNDARY, self.WORD_BOUNDARY_SCORE, spans)
        return None

    def _match_subsequence(self, query: str, text: str) -> Optional[MatchResult]:
        """
        Greedy in-order character scan.

        Every query character must be found, otherwise the tier fails
        without partial credit.
        """
        if len(query) < self.MIN_SUBSEQUENCE_LENGTH:
            return None

        score = 0.0
        positions: List[int] = []
        query_index = 0
        run_length = 0

        for text_index, char in enumerate(text):
            if query_index == len(query):
                break
            if char != query[query_index]:
                continue

            if positions and text_index == positions[-1] + 1:
                run_length += 1
                score += self.RUN_BONUS_BASE + self.RUN_BONUS_STEP * run_length
            else:
                run_length = 0

            score += self.CHARACTER_WEIGHT / len(query)

            if text_index == 0 or is_word_boundary(text[text_index - 1]):
                score += self.BOUNDARY_BONUS

            positions.append(text_index)
            query_index += 1

        if query_index < len(query):
            return None

        spread = positions[-1] - positions[0]
        window = min(self.max_distance, len(text))
        score *= max(self.SPREAD_FLOOR, 1 - spread / window)
        score += max(0.0, (self.LENGTH_BONUS_PIVOT - len(text)) / 100)
        score = min(max(score, 0.0), 1.0)

        return MatchResult(
            MatchTier.FUZZY_CHARACTER, score, self._merge_positions(positions)
        )

    def _match_edit_distance(self, query: str, text: str) -> Optional[MatchResult]:
        """Closest field word within floor(30%) edits of the query."""
        if len(query) < self.MIN_EDIT_QUERY_LENGTH:
            return None

        best: Optional[Tuple[int, int, int]] = None
        for start, end in iter_word_spans(text):
            word = text[start:end]
            if len(word) < self.MIN_EDIT_WORD_LENGTH:
                continue

            distance = within_edit_distance(query, word)
            if distance is not None and (best is None or distance < best[0]):
                best = (distance, start, end)

        if best is None:
            return None

        distance, start, end = best
        span = MatchSpan(start, end, MatchTier.EDIT_DISTANCE)
        return MatchResult(
            MatchTier.EDIT_DISTANCE, self.EDIT_DISTANCE_WEIGHT / (1 + distance), (span,)
        )

    @staticmethod
    def _merge_positions(positions: List[int]) -> Tuple[MatchSpan, ...]:
        """Collapse runs of adjacent character positions into spans."""
        spans = []
        start = end = positions[0]
        for position in positions[1:]:
            if position == end + 1:
                end = position
            else:
                spans.append(MatchSpan(start, end + 1, MatchTier.FUZZY_CHARACTER))
                start = end = position
        spans.append(MatchSpan(start, end + 1, MatchTier.FUZZY_CHARACTER))
        return tuple(spans)

    def get_stats(self) -> dict:
        """
        Get matcher configuration.

        Returns:
            Dictionary with matcher settings
        """
        return {
            "max_distance": self.max_distance,
            "tiers": [tier.value for tier in MatchTier if tier != MatchTier.EXPANDED_TERM],
            "algorithm": "rapidfuzz",
        }
