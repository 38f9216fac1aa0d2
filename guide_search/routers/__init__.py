"""
HTTP routers for the guide search service.
"""

from . import health_router, search_router

__all__ = ["health_router", "search_router"]
