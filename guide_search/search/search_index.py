"""
Precomputed search records for cheap candidate filtering.

The index is rebuilt only when a different catalog snapshot is supplied.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple

from ..domain.entities import GuideEntry, SearchableRecord
from .fuzzy_matcher import FuzzyMatcher, split_words, within_edit_distance

logger = logging.getLogger(__name__)


class SearchIndex:
    """
    Per-guide searchable text and tokens.

    prefilter() rejects guides whose tokens share nothing with the query
    before the expensive relevance scoring runs. A token shares something
    when it contains the query, is contained in it, or is within the edit
    distance the matcher tolerates. Short queries (3 characters or fewer)
    always pass; the token test is unreliable there.
    """

    MIN_TOKEN_LENGTH = 2
    SHORT_QUERY_LENGTH = 3

    def __init__(self):
        self._catalog: Optional[Sequence[GuideEntry]] = None
        self._records: Tuple[SearchableRecord, ...] = ()
        self.builds = 0

    @classmethod
    def make_record(cls, entry: GuideEntry) -> SearchableRecord:
        """Derive the searchable record of one guide."""
        parts = [
            getattr(entry, "name", None),
            getattr(entry, "display_name", None),
            getattr(entry, "description", None),
            getattr(entry, "category", None),
            getattr(entry, "language", None),
            *(getattr(entry, "topics", None) or ()),
        ]
        text = " ".join(str(part) for part in parts if part).lower()
        tokens = tuple(
            token for token in split_words(text) if len(token) >= cls.MIN_TOKEN_LENGTH
        )
        return SearchableRecord(entry=entry, text=text, tokens=tokens)

    def build(self, catalog: Sequence[GuideEntry]) -> Tuple[SearchableRecord, ...]:
        """
        Build records for a catalog snapshot.

        Returns the cached records when called again with the same
        catalog object.

        Args:
            catalog: Ordered catalog snapshot

        Returns:
            One SearchableRecord per guide, in catalog order
        """
        if catalog is self._catalog:
            return self._records

        self._records = tuple(self.make_record(entry) for entry in catalog)
        self._catalog = catalog
        self.builds += 1
        logger.info(f"Built search index: {len(self._records)} records")
        return self._records

    @property
    def records(self) -> Tuple[SearchableRecord, ...]:
        return self._records

    @classmethod
    def prefilter(cls, record: SearchableRecord, normalized_query: str) -> bool:
        """
        Cheap candidate test.

        Args:
            record: Searchable record
            normalized_query: Trimmed lowercase query term

        Returns:
            True if the record may match and should be scored
        """
        if len(normalized_query) <= cls.SHORT_QUERY_LENGTH:
            return True
        if any(
            normalized_query in token or token in normalized_query
            for token in record.tokens
        ):
            return True

        return any(
            within_edit_distance(normalized_query, token) is not None
            for token in record.tokens
            if len(token) >= FuzzyMatcher.MIN_EDIT_WORD_LENGTH
        )

    @classmethod
    def prefilter_any(cls, record: SearchableRecord, terms: Iterable[str]) -> bool:
        """Prefilter against several terms; passes if any term passes."""
        return any(cls.prefilter(record, term) for term in terms)
