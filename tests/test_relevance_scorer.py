"""
Tests for relevance scoring.
"""

import logging
from types import SimpleNamespace

import pytest

from guide_search.domain.entities import GuideEntry, MatchSpan, MatchTier, SearchField
from guide_search.domain.exceptions import ScoringFailureException
from guide_search.search.relevance_scorer import RelevanceScorer, normalize_query


class TestNormalizeQuery:
    """Test query normalization."""

    def test_trim_lowercase_collapse(self):
        assert normalize_query("  Web   SERVER ") == "web server"

    def test_empty(self):
        assert normalize_query("") == ""
        assert normalize_query(None) == ""
        assert normalize_query("   ") == ""


class TestScore:
    """Test scoring of single guides."""

    def test_exact_name_dominates(self, scorer, nginx):
        result = scorer.score(nginx, "NGINX")

        assert result.score > RelevanceScorer.EXACT_MATCH_BONUS
        assert result.matched_field == SearchField.NAME
        assert result.match_tier == MatchTier.EXACT

    def test_typo_match(self, scorer, nginx):
        result = scorer.score(nginx, "nginix")

        assert result.match_tier == MatchTier.EDIT_DISTANCE
        assert result.matched_field == SearchField.NAME
        assert result.score == pytest.approx(0.42)

    def test_threshold_excludes(self, thesaurus, nginx):
        scorer = RelevanceScorer(thesaurus=thesaurus, threshold=0.5)

        assert scorer.score(nginx, "nginix") is None

    def test_expanded_term_is_discounted(self, scorer, kubernetes):
        result = scorer.score(kubernetes, "k8s")

        assert result.score == pytest.approx(0.82)
        assert result.matched_term == "kubernetes"
        assert result.match_tier == MatchTier.EXACT
        assert all(span.tier == MatchTier.EXPANDED_TERM for span in result.spans)

    def test_direct_match_keeps_its_tier(self, scorer, kubernetes):
        result = scorer.score(kubernetes, "kube")

        assert result.matched_term == "kube"
        assert result.spans == (MatchSpan(0, 4, MatchTier.EXACT),)

    def test_acronym_match(self, scorer, guide_factory):
        guide = guide_factory(
            "home-assistant",
            "Home Assistant",
            "Open source home automation platform",
            "automation",
        )

        result = scorer.score(guide, "ha")

        assert result.score == pytest.approx(RelevanceScorer.ACRONYM_BONUS)
        assert result.matched_field == SearchField.NAME
        assert [(s.start, s.end) for s in result.spans] == [(0, 1), (5, 6)]

    def test_no_evidence(self, scorer, nginx):
        assert scorer.score(nginx, "zzzz") is None

    def test_empty_query(self, scorer, nginx):
        assert scorer.score(nginx, "   ") is None

    def test_popularity_is_capped(self, scorer, guide_factory):
        quiet = guide_factory("nginx-a", "A", "", "web", stars=0)
        popular = guide_factory("nginx-b", "B", "", "web", stars=10**9)

        gap = scorer.score(popular, "nginx").score - scorer.score(quiet, "nginx").score

        assert gap == pytest.approx(RelevanceScorer.POPULARITY_CAP)

    def test_missing_field_is_logged_and_scored(self, scorer, caplog):
        entry = SimpleNamespace(
            name="nginx",
            display_name="NGINX",
            description=None,
            category="web-servers",
            language=None,
            topics=(),
            stars=0,
        )

        with caplog.at_level(logging.WARNING):
            result = scorer.score(entry, "nginx")

        assert result is not None
        assert "missing required field 'description'" in caplog.text


class TestRank:
    """Test batch ranking."""

    def test_sorted_by_score(self, scorer, sample_catalog):
        results = scorer.rank(sample_catalog, "docker")

        assert results[0].entry.name == "docker"
        assert all(a.score >= b.score for a, b in zip(results, results[1:]))

    def test_ties_broken_by_stars(self, scorer, sample_catalog):
        results = scorer.rank(sample_catalog, "monitoring")

        assert [r.entry.name for r in results] == ["grafana", "prometheus", "nagios"]

    def test_ties_broken_by_display_name(self, scorer, guide_factory):
        guides = [
            guide_factory("redis-b", "Beta", "", "db"),
            guide_factory("redis-a", "Alpha", "", "db"),
        ]

        results = scorer.rank(guides, "redis")

        assert [r.entry.display_name for r in results] == ["Alpha", "Beta"]

    def test_tie_with_missing_display_name(self, scorer):
        guides = [
            GuideEntry(
                name="nginx-b",
                display_name="Nginx B",
                description="reverse proxy",
                category="web",
                slug="nginx-b",
            ),
            GuideEntry(
                name="nginx-a",
                display_name=None,
                description="reverse proxy",
                category="web",
                slug="nginx-a",
            ),
        ]

        results = scorer.rank(guides, "proxy")

        assert [r.entry.name for r in results] == ["nginx-a", "nginx-b"]

    def test_tie_with_missing_stars(self, scorer):
        entry = SimpleNamespace(
            name="caddy",
            display_name="Caddy",
            description="reverse proxy",
            category="web",
            language=None,
            topics=None,
            stars=None,
        )

        results = scorer.rank([entry, entry], "proxy")

        assert len(results) == 2

    def test_failure_skips_only_that_guide(self, scorer, nginx):
        broken = SimpleNamespace(
            name="broken",
            display_name="Broken nginx",
            description="",
            category="",
            language=None,
            topics=(),
            stars="many",
        )
        failures = []

        results = scorer.rank([broken, nginx], "nginx", on_failure=failures.append)

        assert [r.entry.name for r in results] == ["nginx"]
        assert len(failures) == 1
        assert isinstance(failures[0], ScoringFailureException)
        assert failures[0].details["entry"] == "broken"

    def test_get_stats(self, scorer):
        stats = scorer.get_stats()

        assert stats["threshold"] == 0.3
        assert stats["field_weights"]["name"] == 1.0
        assert stats["matcher"]["max_distance"] == 100
