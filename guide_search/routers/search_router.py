"""
Guide search router.

Endpoints for ranked guide search, keyword suggestions and search
analytics used by the search box and the search page.
"""

import time
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..dependencies import get_analytics, get_search_service
from ..domain.exceptions import CatalogUnavailableException, ValidationException
from ..services.guide_search_service import GuideSearchService, SearchFilters
from ..session.analytics import SearchAnalytics

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/guides", tags=["guide-search"])


class GuideSearchResult(BaseModel):
    """Guide search result item."""

    name: str = Field(..., description="Canonical guide name")
    display_name: str = Field(..., description="Guide title")
    description: str = Field("", description="Guide summary")
    category: str = Field(..., description="Guide category")
    slug: str = Field(..., description="Routing key within the category")
    language: Optional[str] = Field(None, description="Primary language")
    topics: List[str] = Field(default_factory=list)
    stars: int = Field(0, description="Popularity signal")
    score: float = Field(..., description="Relevance score")
    matched_field: str = Field(..., description="Field of the winning match")
    highlighted_name: str = Field(..., description="Title with matches marked")
    highlighted_description: str = Field(..., description="Summary with matches marked")


class GuideSearchResponse(BaseModel):
    """Guide search response."""

    success: bool = True
    query: str = Field(..., description="Original query")
    results: List[GuideSearchResult] = Field(default_factory=list)
    count: int = Field(..., description="Number of results")
    latency_ms: float = Field(..., description="Search latency in milliseconds")


class SelectionRequest(BaseModel):
    """Selection of a presented result."""

    query: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)


def _error(status_code: int, error: str, message: str, details: Optional[dict] = None):
    detail = {"success": False, "error": error, "message": message}
    if details:
        detail["details"] = details
    return HTTPException(status_code=status_code, detail=detail)


@router.get(
    "/search",
    response_model=GuideSearchResponse,
    responses={
        200: {"description": "Search successful"},
        400: {"description": "Invalid parameters"},
        503: {"description": "Catalog not loaded"},
    },
    summary="Search installation guides",
    description="""
    Typo-tolerant guide search with keyword aliases.

    Features:
    - Exact, word-boundary, subsequence and edit-distance matching
    - Alias expansion ("k8s" finds Kubernetes)
    - Category, language and minimum-stars filters
    - Highlighted titles and descriptions

    Queries shorter than 2 characters return an empty result list.
    """,
)
async def search_guides(
    q: str = Query(
        ...,
        min_length=1,
        max_length=100,
        description="Search query",
        examples=["nginx", "k8s", "postgres"],
    ),
    limit: Optional[int] = Query(
        default=None, ge=1, le=50, description="Maximum results"
    ),
    category: Optional[List[str]] = Query(default=None, description="Category filter"),
    language: Optional[List[str]] = Query(default=None, description="Language filter"),
    min_stars: int = Query(default=0, ge=0, description="Minimum stars"),
    sort: str = Query(
        default="relevance", description="relevance, name, stars or category"
    ),
    service: GuideSearchService = Depends(get_search_service),
    analytics: SearchAnalytics = Depends(get_analytics),
):
    """Search the guide catalog."""
    start_time = time.time()

    try:
        filters = SearchFilters.create(
            categories=category, languages=language, min_stars=min_stars
        )
        matches = service.search(q, limit=limit, filters=filters, sort=sort)

    except ValidationException as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "validation_error", e.message, e.details)

    except CatalogUnavailableException as e:
        logger.warning("Search without catalog", query=q, error=e.message)
        raise _error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "catalog_unavailable",
            "Guide catalog is not available, please retry later",
        )

    except Exception as e:
        logger.error("Guide search error", error=str(e), query=q)
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            "An error occurred during search",
        )

    results = [
        GuideSearchResult(
            name=match.entry.name,
            display_name=match.entry.title,
            description=match.entry.description or "",
            category=match.entry.category or "",
            slug=match.entry.slug or match.entry.name,
            language=match.entry.language,
            topics=list(match.entry.topics or ()),
            stars=match.entry.stars or 0,
            score=round(match.score, 4),
            matched_field=match.matched_field.value,
            highlighted_name=match.highlighted_name,
            highlighted_description=match.highlighted_description,
        )
        for match in matches
    ]
    analytics.track_search(q, len(results))

    latency_ms = (time.time() - start_time) * 1000
    logger.info(
        "Guide search completed",
        query=q,
        results=len(results),
        latency_ms=round(latency_ms, 1),
    )

    response = GuideSearchResponse(
        query=q,
        results=results,
        count=len(results),
        latency_ms=round(latency_ms, 2),
    )
    return JSONResponse(
        content=response.model_dump(),
        headers={
            "Cache-Control": "public, max-age=60",
            "X-Search-Latency-Ms": str(round(latency_ms, 2)),
            "X-Result-Count": str(len(results)),
        },
    )


@router.get(
    "/suggestions",
    summary="Keyword suggestions",
    description="Alias-table keywords that start with or contain the query.",
)
async def get_suggestions(
    q: str = Query(..., min_length=1, max_length=100, description="Partial query"),
    limit: int = Query(default=5, ge=1, le=20, description="Maximum suggestions"),
    service: GuideSearchService = Depends(get_search_service),
):
    """Get keyword suggestions for a partial query."""
    suggestions = service.suggest(q, limit=limit)
    return {
        "success": True,
        "query": q,
        "suggestions": [suggestion.to_dict() for suggestion in suggestions],
        "count": len(suggestions),
    }


@router.post(
    "/search/selection",
    summary="Record a selected result",
    description="Attach the chosen guide to the most recent search for the query.",
)
async def record_selection(
    selection: SelectionRequest,
    analytics: SearchAnalytics = Depends(get_analytics),
):
    """Record which guide the user opened for a query."""
    recorded = analytics.record_selection(
        selection.query, f"{selection.category}/{selection.slug}"
    )
    return {"success": True, "recorded": recorded}


@router.get(
    "/search/stats",
    summary="Search statistics",
    description="Success rate, click rate and popular terms of recent searches.",
)
async def get_search_stats(
    limit: int = Query(default=10, ge=1, le=50, description="Popular terms to return"),
    service: GuideSearchService = Depends(get_search_service),
    analytics: SearchAnalytics = Depends(get_analytics),
):
    """Get search analytics and engine configuration."""
    return {
        "success": True,
        "stats": analytics.get_search_stats(),
        "popular_terms": analytics.get_popular_terms(limit),
        "engine": service.get_stats(),
    }
