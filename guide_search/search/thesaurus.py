"""
Keyword thesaurus for query expansion.

Maps tool names, abbreviations and topic words to related keywords so
that a query like "k8s" also finds the Kubernetes guide. The table is
read in the forward direction only; symmetry is never assumed.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from cachetools import LRUCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


DEFAULT_ALIASES: Dict[str, List[str]] = {
    # Container orchestration
    "kubectl": ["kubernetes", "k8s"],
    "k8s": ["kubernetes", "kubectl"],
    "kubernetes": ["kubectl", "k8s", "container", "orchestration"],
    "docker": ["container", "containerization"],
    "containers": ["docker", "kubernetes", "k8s", "podman"],
    # Web servers
    "nginx": ["web server", "reverse proxy", "load balancer", "http"],
    "apache": ["web server", "http server", "httpd"],
    "web server": ["nginx", "apache", "haproxy", "traefik", "caddy"],
    "reverse proxy": ["nginx", "haproxy", "traefik"],
    "load balancer": ["nginx", "haproxy", "traefik"],
    # Databases
    "postgres": ["postgresql"],
    "postgresql": ["postgres", "sql", "database"],
    "mysql": ["mariadb", "sql", "database"],
    "mariadb": ["mysql", "sql", "database"],
    "mongodb": ["mongo", "nosql", "database"],
    "mongo": ["mongodb"],
    "redis": ["cache", "key-value", "database"],
    "database": ["mysql", "postgresql", "mongodb", "redis", "sql", "nosql"],
    "sql": ["mysql", "postgresql", "mariadb"],
    "nosql": ["mongodb", "redis"],
    # Security
    "authentication": ["keycloak", "authelia", "auth"],
    "auth": ["keycloak", "authelia", "authentication"],
    "vpn": ["wireguard", "openvpn"],
    "firewall": ["fail2ban", "security"],
    "secrets": ["vault", "security"],
    "vault": ["secrets", "hashicorp", "security"],
    # Monitoring
    "metrics": ["prometheus", "grafana", "monitoring"],
    "monitoring": ["prometheus", "grafana", "nagios", "zabbix"],
    "dashboards": ["grafana", "monitoring"],
    "alerting": ["prometheus", "grafana", "monitoring"],
    # Communication
    "chat": ["mattermost", "rocketchat", "matrix", "communication"],
    "slack": ["mattermost", "rocketchat"],
    "teams": ["mattermost", "rocketchat"],
    "video": ["jitsi", "communication"],
    "conference": ["jitsi", "communication"],
    # Media
    "streaming": ["plex", "jellyfin", "media"],
    "movies": ["plex", "jellyfin", "radarr", "media"],
    "tv": ["plex", "jellyfin", "sonarr", "media"],
    "music": ["plex", "jellyfin", "lidarr", "media"],
    "media server": ["plex", "jellyfin"],
    # Productivity
    "cms": ["wordpress", "drupal", "ghost"],
    "blog": ["wordpress", "ghost"],
    "wiki": ["bookstack", "outline"],
    "notes": ["bookstack", "outline"],
    "files": ["nextcloud", "owncloud"],
    "cloud storage": ["nextcloud", "owncloud"],
    # Infrastructure
    "automation": ["ansible", "terraform"],
    "infrastructure as code": ["terraform", "ansible"],
    "iac": ["terraform", "ansible"],
    "ci/cd": ["gitlab", "jenkins"],
    "continuous integration": ["gitlab", "jenkins"],
    "git": ["gitlab", "gitea"],
    "repository": ["gitlab", "gitea"],
    # Common abbreviations
    "k8": ["kubernetes"],
    "tf": ["terraform"],
    "pg": ["postgresql"],
    "db": ["database"],
    "lb": ["load balancer"],
    "rp": ["reverse proxy"],
}


@dataclass(frozen=True)
class Suggestion:
    """Keyword suggestion for a partial query."""

    text: str
    type: str  # "exact" (prefix) or "partial" (contains)

    def to_dict(self) -> dict:
        return {"text": self.text, "type": self.type}


class KeywordThesaurus:
    """
    Alias table with query expansion.

    Expansion rules:
    - The term itself is always part of the result
    - A term that is a table key adds all of its aliases
    - Terms longer than 3 characters also pick up every key that contains
      the term or is contained in it, together with that key's aliases

    The partial pass scans the whole table; it is small and consulted
    once per query, not once per guide.
    """

    PARTIAL_AFFINITY_MIN_LENGTH = 4
    DEFAULT_CACHE_SIZE = 512

    def __init__(
        self,
        aliases: Optional[Mapping[str, Iterable[str]]] = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        """
        Initialize thesaurus.

        Args:
            aliases: Keyword to related keywords mapping (default: DEFAULT_ALIASES)
            cache_size: Maximum number of memoised expansions
        """
        source = DEFAULT_ALIASES if aliases is None else aliases
        self._table: Dict[str, FrozenSet[str]] = {
            self._normalize(key): frozenset(self._normalize(alias) for alias in related)
            for key, related in source.items()
        }
        self._cache: LRUCache = LRUCache(maxsize=cache_size)

    @staticmethod
    def _normalize(term: str) -> str:
        return " ".join(term.lower().split())

    def expand(self, term: str) -> FrozenSet[str]:
        """
        Expand a term into the set of related terms.

        Args:
            term: Lowercase, trimmed query term

        Returns:
            Frozen set that always contains the term itself
        """
        term = self._normalize(term)
        cached = self._cache.get(term)
        if cached is not None:
            return cached

        expanded = {term}
        expanded.update(self._table.get(term, ()))

        if len(term) >= self.PARTIAL_AFFINITY_MIN_LENGTH:
            for keyword, related in self._table.items():
                if keyword in term or term in keyword:
                    expanded.add(keyword)
                    expanded.update(related)

        expanded.discard("")
        expanded.add(term)
        result = frozenset(expanded)
        self._cache[term] = result

        if len(result) > 1:
            logger.debug(f"Expanded '{term}' into {len(result) - 1} related terms")
        return result

    def aliases_of(self, keyword: str) -> FrozenSet[str]:
        """Declared aliases of a keyword (empty if not a table key)."""
        return self._table.get(self._normalize(keyword), frozenset())

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        """
        Suggest table keywords for a partial query.

        Keywords starting with the query come first, then keywords that
        merely contain it; shorter keywords first within each group.

        Args:
            query: Partial user input
            limit: Maximum number of suggestions

        Returns:
            List of suggestions (empty for queries under 2 characters)
        """
        query = self._normalize(query)
        if len(query) < 2:
            return []

        suggestions = []
        for keyword in self._table:
            if keyword.startswith(query):
                suggestions.append(Suggestion(text=keyword, type="exact"))
            elif query in keyword:
                suggestions.append(Suggestion(text=keyword, type="partial"))

        suggestions.sort(key=lambda s: (s.type != "exact", len(s.text), s.text))
        return suggestions[:limit]

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, keyword: str) -> bool:
        return self._normalize(keyword) in self._table


_default_thesaurus: Optional[KeywordThesaurus] = None


def get_thesaurus() -> KeywordThesaurus:
    """Get the process-wide thesaurus built from DEFAULT_ALIASES."""
    global _default_thesaurus
    if _default_thesaurus is None:
        _default_thesaurus = KeywordThesaurus()
    return _default_thesaurus
