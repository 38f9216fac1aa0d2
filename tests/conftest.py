"""
Test configuration and fixtures
"""

import pytest

from guide_search.domain.entities import GuideEntry
from guide_search.search.relevance_scorer import RelevanceScorer
from guide_search.search.thesaurus import KeywordThesaurus
from guide_search.services.guide_search_service import GuideSearchService
from guide_search.session.analytics import SearchAnalytics


def make_guide(name, display_name, description, category, language=None, topics=(), stars=0):
    """Build a guide whose slug is its name."""
    return GuideEntry(
        name=name,
        display_name=display_name,
        description=description,
        category=category,
        slug=name,
        language=language,
        topics=tuple(topics),
        stars=stars,
    )


@pytest.fixture
def nginx():
    return make_guide(
        "nginx",
        "NGINX",
        "High-performance web server and reverse proxy",
        "web-servers",
        language="C",
        topics=("http", "proxy"),
        stars=20000,
    )


@pytest.fixture
def kubernetes():
    return make_guide(
        "kubernetes",
        "Kubernetes",
        "Production-grade container orchestration",
        "containers",
        language="Go",
        topics=("containers", "orchestration"),
        stars=100000,
    )


@pytest.fixture
def sample_catalog(nginx, kubernetes):
    """Small catalog covering several categories."""
    return (
        nginx,
        kubernetes,
        make_guide(
            "docker",
            "Docker",
            "Container runtime and image builder",
            "containers",
            language="Go",
            stars=68000,
        ),
        make_guide(
            "postgresql",
            "PostgreSQL",
            "Advanced open source relational database",
            "databases",
            language="C",
            stars=14000,
        ),
        make_guide(
            "prometheus",
            "Prometheus",
            "Monitoring system and time series database",
            "monitoring",
            language="Go",
            stars=50000,
        ),
        make_guide(
            "grafana",
            "Grafana",
            "Observability dashboards",
            "monitoring",
            language="TypeScript",
            stars=60000,
        ),
        make_guide(
            "nagios",
            "Nagios",
            "Infrastructure monitoring and alerting",
            "monitoring",
            language="C",
            stars=1000,
        ),
        make_guide(
            "traefik",
            "Traefik",
            "Cloud native edge router",
            "web-servers",
            language="Go",
            stars=48000,
        ),
        make_guide(
            "wireguard",
            "WireGuard",
            "Fast modern VPN tunnel",
            "security",
            language="C",
            stars=2000,
        ),
        make_guide(
            "home-assistant",
            "Home Assistant",
            "Open source home automation platform",
            "automation",
            language="Python",
            topics=("smart-home",),
            stars=70000,
        ),
    )


@pytest.fixture
def sample_catalog_dicts():
    """Raw catalog records as published in the catalog JSON."""
    return [
        {
            "name": "nginx",
            "displayName": "NGINX",
            "description": "High-performance web server and reverse proxy",
            "category": "web-servers",
            "slug": "nginx",
            "language": "C",
            "topics": ["http", "proxy"],
            "stars": 20000,
        },
        {
            "name": "grafana",
            "displayName": "Grafana",
            "description": "Observability dashboards",
            "category": "monitoring",
            "slug": "grafana",
            "language": "TypeScript",
            "stargazers_count": 60000,
        },
    ]


@pytest.fixture
def thesaurus():
    return KeywordThesaurus()


@pytest.fixture
def scorer(thesaurus):
    return RelevanceScorer(thesaurus=thesaurus)


@pytest.fixture
def search_service(scorer, sample_catalog):
    """Search service with the sample catalog loaded."""
    service = GuideSearchService(scorer=scorer)
    service.set_catalog(sample_catalog)
    return service


@pytest.fixture
def analytics():
    return SearchAnalytics(history_size=10)


@pytest.fixture
def guide_factory():
    """Factory for ad-hoc guides."""
    return make_guide
