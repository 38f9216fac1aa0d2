"""
Domain entities for guide search.

Core objects representing catalog guides, derived search records,
match spans and scored results. These entities are framework-agnostic
and carry no infrastructure concerns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class MatchTier(str, Enum):
    """Strategies that can produce a match, strongest first."""

    EXACT = "exact"
    WORD_BOUNDARY = "word-boundary"
    FUZZY_CHARACTER = "fuzzy-character"
    EDIT_DISTANCE = "edit-distance"
    EXPANDED_TERM = "expanded-term"


class SearchField(str, Enum):
    """Guide fields that take part in matching."""

    NAME = "name"
    DISPLAY_NAME = "display_name"
    DESCRIPTION = "description"
    CATEGORY = "category"
    LANGUAGE = "language"
    TOPICS = "topics"


@dataclass(frozen=True)
class GuideEntry:
    """
    Immutable catalog record for one installation guide.

    Owned by the external catalog; the search engine only reads it.
    Optional fields fall back to empty values.
    """

    name: str
    display_name: str
    description: str
    category: str
    slug: str
    language: Optional[str] = None
    topics: Tuple[str, ...] = ()
    stars: int = 0

    REQUIRED_FIELDS = ("name", "display_name", "description", "category", "slug")

    # Keys used by the published catalog JSON
    _JSON_KEYS = {
        "display_name": ("displayName", "display_name"),
        "stars": ("stars", "stargazers_count"),
    }

    def __post_init__(self):
        """Validate popularity signal."""
        if self.stars < 0:
            raise ValueError(f"Stars must be non-negative, got {self.stars}")

    @classmethod
    def missing_fields(cls, data: Mapping[str, Any]) -> Tuple[str, ...]:
        """Return required textual fields that are absent or empty in a raw record."""
        missing = []
        for name in cls.REQUIRED_FIELDS:
            if not cls._lookup(data, name):
                missing.append(name)
        return tuple(missing)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GuideEntry":
        """
        Build a guide from a catalog record.

        Accepts the camelCase keys of the published catalog as well as
        snake_case ones. Missing textual fields become empty strings,
        a missing slug falls back to the name.

        Args:
            data: Raw guide mapping

        Returns:
            GuideEntry instance
        """
        name = str(cls._lookup(data, "name") or "")
        topics = cls._lookup(data, "topics") or ()
        if isinstance(topics, str):
            topics = (topics,)
        language = cls._lookup(data, "language")
        stars = cls._lookup(data, "stars") or 0

        return cls(
            name=name,
            display_name=str(cls._lookup(data, "display_name") or ""),
            description=str(cls._lookup(data, "description") or ""),
            category=str(cls._lookup(data, "category") or ""),
            slug=str(cls._lookup(data, "slug") or name),
            language=str(language) if language else None,
            topics=tuple(str(topic) for topic in topics if topic),
            stars=max(0, int(stars)),
        )

    @classmethod
    def _lookup(cls, data: Mapping[str, Any], name: str) -> Any:
        for key in cls._JSON_KEYS.get(name, (name,)):
            value = data.get(key)
            if value is not None:
                return value
        return None

    @property
    def title(self) -> str:
        """Name shown to users."""
        return self.display_name or self.name

    @property
    def route(self) -> Tuple[str, str]:
        """Routing key of the guide page: (category, slug)."""
        return (self.category, self.slug)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "category": self.category,
            "language": self.language,
            "topics": list(self.topics),
            "stars": self.stars,
            "slug": self.slug,
        }


@dataclass(frozen=True)
class SearchableRecord:
    """
    Precomputed search data for one guide.

    Attributes:
        entry: Originating guide
        text: Lowercase concatenation of all searchable fields
        tokens: Words of the text, shorter than 2 characters dropped
    """

    entry: GuideEntry = field(compare=False)
    text: str
    tokens: Tuple[str, ...]


@dataclass(frozen=True)
class MatchSpan:
    """Half-open character range within an original field value."""

    start: int
    end: int
    tier: MatchTier

    def __post_init__(self):
        """Validate span bounds."""
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")

    def fits(self, text: str) -> bool:
        """Check the span lies within text."""
        return self.end <= len(text)


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of matching one query term against one field value.

    Attributes:
        tier: Strategy that produced the match
        score: Score contribution before field weighting (0-1)
        spans: Matched ranges, ordered and non-overlapping
    """

    tier: MatchTier
    score: float
    spans: Tuple[MatchSpan, ...]


@dataclass(frozen=True)
class ScoredResult:
    """
    A guide with its relevance score for one query.

    Attributes:
        entry: The matched guide
        score: Total relevance score
        matched_field: Field of the winning match
        spans: Spans of the winning match within that field
        match_tier: Tier of the winning match
        matched_term: Query term (original or expanded) that matched
    """

    entry: GuideEntry
    score: float
    matched_field: SearchField
    spans: Tuple[MatchSpan, ...] = ()
    match_tier: Optional[MatchTier] = None
    matched_term: str = ""

    def sort_key(self) -> tuple:
        """
        Descending score, then descending stars, then display name.

        Missing stars count as 0 and a missing display name as "", so
        malformed guides still order deterministically.
        """
        entry = self.entry
        stars = getattr(entry, "stars", None) or 0
        return (-self.score, -stars, getattr(entry, "display_name", None) or "")


@dataclass(frozen=True)
class SearchResult:
    """Result returned by the query API, with highlighted text."""

    entry: GuideEntry
    score: float
    matched_field: SearchField
    highlighted_name: str
    highlighted_description: str

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        result = self.entry.to_dict()
        result["_relevance"] = {
            "score": round(self.score, 4),
            "matched_field": self.matched_field.value,
        }
        result["highlightedName"] = self.highlighted_name
        result["highlightedDescription"] = self.highlighted_description
        return result
