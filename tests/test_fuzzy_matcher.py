"""
Tests for the fuzzy matcher.

Covers every matching tier, span placement and the edit-distance helper.
"""

import pytest

from guide_search.domain.entities import MatchSpan, MatchTier
from guide_search.search.fuzzy_matcher import (
    FuzzyMatcher,
    fold_case,
    is_word_boundary,
    levenshtein_distance,
    split_words,
)


class TestFuzzyMatcherInitialization:
    """Test fuzzy matcher initialization."""

    def test_default_initialization(self):
        matcher = FuzzyMatcher()

        assert matcher.max_distance == 100

    def test_invalid_max_distance(self):
        with pytest.raises(ValueError):
            FuzzyMatcher(max_distance=0)


class TestExactTier:
    """Test exact substring matching."""

    def test_substring_match(self):
        result = FuzzyMatcher().match("gin", "nginx")

        assert result.tier == MatchTier.EXACT
        assert result.score == 1.0
        assert result.spans == (MatchSpan(1, 4, MatchTier.EXACT),)

    def test_case_insensitive(self):
        """Spans point into the original, uppercase text."""
        result = FuzzyMatcher().match("nginx", "Install NGINX")

        assert result.tier == MatchTier.EXACT
        assert result.spans == (MatchSpan(8, 13, MatchTier.EXACT),)

    def test_empty_inputs(self):
        matcher = FuzzyMatcher()

        assert matcher.match("", "nginx") is None
        assert matcher.match("nginx", "") is None


class TestWordBoundaryTier:
    """Test word-start matching of multi-word queries."""

    def test_delimiter_variants(self):
        result = FuzzyMatcher().match("web server", "Web-Server setup")

        assert result.tier == MatchTier.WORD_BOUNDARY
        assert result.score == 0.9
        assert result.spans == (
            MatchSpan(0, 3, MatchTier.WORD_BOUNDARY),
            MatchSpan(4, 10, MatchTier.WORD_BOUNDARY),
        )

    def test_word_prefixes(self):
        result = FuzzyMatcher().match("web serv", "nginx web_servers")

        assert result.tier == MatchTier.WORD_BOUNDARY
        assert [(s.start, s.end) for s in result.spans] == [(6, 9), (10, 14)]


class TestSubsequenceTier:
    """Test character subsequence matching."""

    def test_scattered_characters(self):
        result = FuzzyMatcher().match("ngx", "nginx")

        assert result.tier == MatchTier.FUZZY_CHARACTER
        assert result.spans == (
            MatchSpan(0, 2, MatchTier.FUZZY_CHARACTER),
            MatchSpan(4, 5, MatchTier.FUZZY_CHARACTER),
        )
        assert result.score == pytest.approx(0.66)

    def test_missing_character_fails_without_credit(self):
        assert FuzzyMatcher().match("ngz", "nginx") is None

    def test_short_query_skips_subsequence(self):
        assert FuzzyMatcher().match("nn", "nginx") is None

    def test_query_longer_than_text(self):
        """Longer queries only reach the edit-distance tier."""
        assert FuzzyMatcher().match("abc", "ab") is None

    def test_runs_add_bonus(self):
        result = FuzzyMatcher().match("ngnx", "nginx")

        assert result.tier == MatchTier.FUZZY_CHARACTER
        assert [(s.start, s.end) for s in result.spans] == [(0, 2), (3, 5)]
        assert result.score == pytest.approx(0.69)

    def test_scattered_match_scores_below_exact(self):
        matcher = FuzzyMatcher()
        tight = matcher.match("pgs", "pgsetup tool for databases")
        loose = matcher.match("pgs", "p tool g for databases s")

        assert tight.tier == MatchTier.EXACT
        assert loose.tier == MatchTier.FUZZY_CHARACTER
        assert loose.score < tight.score


class TestEditDistanceTier:
    """Test typo tolerance through edit distance."""

    def test_single_typo(self):
        result = FuzzyMatcher().match("kubernetis", "Kubernetes")

        assert result.tier == MatchTier.EDIT_DISTANCE
        assert result.score == pytest.approx(0.4)
        assert result.spans == (MatchSpan(0, 10, MatchTier.EDIT_DISTANCE),)

    def test_query_longer_than_field(self):
        result = FuzzyMatcher().match("nginix", "nginx")

        assert result.tier == MatchTier.EDIT_DISTANCE
        assert result.spans == (MatchSpan(0, 5, MatchTier.EDIT_DISTANCE),)

    def test_closest_word_wins(self):
        result = FuzzyMatcher().match("grafanna", "grafana dashboards")

        assert result.tier == MatchTier.EDIT_DISTANCE
        assert result.spans[0].start == 0

    def test_too_many_edits(self):
        assert FuzzyMatcher().match("abcd", "nginx") is None

    def test_short_query_skips_edit_distance(self):
        assert FuzzyMatcher().match("ngz", "ngi") is None


class TestHelpers:
    """Test module helpers."""

    def test_levenshtein_distance(self):
        assert levenshtein_distance("nginx", "nginix") == levenshtein_distance("nginix", "nginx")
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("nginx", "nginx") == 0

    def test_word_boundaries(self):
        assert is_word_boundary(" ")
        assert is_word_boundary("-")
        assert is_word_boundary("_")
        assert is_word_boundary(".")
        assert not is_word_boundary("a")

    def test_split_words(self):
        assert split_words("web-server  setup_guide.v2") == ["web", "server", "setup", "guide", "v2"]

    def test_fold_case_preserves_length(self):
        text = "Straße İstanbul"

        assert len(fold_case(text)) == len(text)

    def test_get_stats(self):
        stats = FuzzyMatcher(max_distance=50).get_stats()

        assert stats["max_distance"] == 50
        assert "expanded-term" not in stats["tiers"]
