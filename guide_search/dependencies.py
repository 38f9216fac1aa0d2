"""
Shared dependencies for the application.

Provides dependency injection functions used across routers.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .services.guide_search_service import GuideSearchService
    from .session.analytics import SearchAnalytics

# Global instances (set by main app)
_search_service: Optional["GuideSearchService"] = None
_analytics: Optional["SearchAnalytics"] = None


def set_search_service(service: Optional["GuideSearchService"]) -> None:
    """
    Set the global guide search service instance.

    Called by main app during startup.
    """
    global _search_service
    _search_service = service


def set_analytics(analytics: Optional["SearchAnalytics"]) -> None:
    """Set the global search analytics instance."""
    global _analytics
    _analytics = analytics


async def get_search_service() -> "GuideSearchService":
    """
    Get guide search service instance for dependency injection.

    Used by all routers that need the search service.
    """
    if _search_service is None:
        raise RuntimeError("Guide search service not initialized")
    return _search_service


async def get_analytics() -> "SearchAnalytics":
    """Get search analytics instance for dependency injection."""
    if _analytics is None:
        raise RuntimeError("Search analytics not initialized")
    return _analytics


def current_search_service() -> Optional["GuideSearchService"]:
    """Get the search service if one has been set, without raising."""
    return _search_service
