"""
Service layer orchestrating catalog, index and ranking.
"""

from .guide_search_service import GuideSearchService, SearchFilters, SortOrder

__all__ = ["GuideSearchService", "SearchFilters", "SortOrder"]
