"""
Tests for domain entities.
"""

import pytest

from guide_search.domain.entities import (
    GuideEntry,
    MatchSpan,
    MatchTier,
    ScoredResult,
    SearchField,
    SearchResult,
)


class TestGuideEntry:
    """Test GuideEntry entity."""

    def test_create_valid_entry(self, nginx):
        assert nginx.name == "nginx"
        assert nginx.title == "NGINX"
        assert nginx.route == ("web-servers", "nginx")

    def test_negative_stars(self):
        with pytest.raises(ValueError, match="non-negative"):
            GuideEntry("x", "X", "", "misc", "x", stars=-1)

    def test_is_immutable(self, nginx):
        with pytest.raises(AttributeError):
            nginx.name = "apache"

    def test_title_falls_back_to_name(self):
        entry = GuideEntry("nginx", "", "", "web", "nginx")

        assert entry.title == "nginx"

    def test_from_dict_camel_case(self, sample_catalog_dicts):
        entry = GuideEntry.from_dict(sample_catalog_dicts[1])

        assert entry.display_name == "Grafana"
        assert entry.stars == 60000
        assert entry.topics == ()

    def test_from_dict_fills_missing_fields(self):
        entry = GuideEntry.from_dict({"name": "caddy", "category": "web-servers"})

        assert entry.display_name == ""
        assert entry.description == ""
        assert entry.slug == "caddy"
        assert entry.language is None

    def test_missing_fields(self):
        missing = GuideEntry.missing_fields({"name": "caddy", "displayName": "Caddy", "slug": ""})

        assert missing == ("description", "category", "slug")

    def test_to_dict(self, nginx):
        data = nginx.to_dict()

        assert data["displayName"] == "NGINX"
        assert data["topics"] == ["http", "proxy"]
        assert data["slug"] == "nginx"


class TestMatchSpan:
    """Test MatchSpan validation."""

    def test_valid_span(self):
        span = MatchSpan(1, 4, MatchTier.EXACT)

        assert span.fits("nginx")
        assert not span.fits("ngi")

    @pytest.mark.parametrize("start,end", [(-1, 2), (3, 3), (4, 2)])
    def test_invalid_span(self, start, end):
        with pytest.raises(ValueError):
            MatchSpan(start, end, MatchTier.EXACT)


class TestResults:
    """Test result objects."""

    def test_sort_key(self, nginx, kubernetes):
        low = ScoredResult(entry=nginx, score=0.5, matched_field=SearchField.NAME)
        high = ScoredResult(entry=kubernetes, score=0.9, matched_field=SearchField.NAME)
        tied = ScoredResult(entry=kubernetes, score=0.5, matched_field=SearchField.NAME)

        assert sorted([low, high, tied], key=ScoredResult.sort_key) == [high, tied, low]

    def test_search_result_to_dict(self, nginx):
        result = SearchResult(
            entry=nginx,
            score=5.123456,
            matched_field=SearchField.NAME,
            highlighted_name="<mark>NGINX</mark>",
            highlighted_description=nginx.description,
        )

        data = result.to_dict()

        assert data["_relevance"] == {"score": 5.1235, "matched_field": "name"}
        assert data["highlightedName"] == "<mark>NGINX</mark>"
