import logging
from typing import Literal, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.agent.graph import MovieAgent
from app.api.deps import get_movie_agent, get_response_cache, provider_status
from app.config import settings
from app.core.assembler import build_envelope, failure_response, missing_query_response
from app.core.cache import ResponseCache
from app.models.schemas import MovieAgentQuery

router = APIRouter(prefix="/api")
logger = logging.getLogger(__name__)


def cache_key(request: MovieAgentQuery) -> Tuple[str, str, str, int, int]:
    """Cache key: weekly/query marker, type, normalized query, page, page size."""
    marker = "weekly" if request.weekly else "query"
    normalized = " ".join(request.text.lower().split())
    return marker, request.type, normalized, request.page, request.page_size


@router.get("/movieAgent")
@router.get("/movieAgents")
async def movie_agent(
    query: Optional[str] = Query(default=None, description="Title or free-text question"),
    type: Literal["movie", "tv"] = Query(default="movie", description="Media type"),
    weekly: bool = Query(default=False, description="This week's releases instead of a query"),
    page: int = Query(default=1, ge=1, description="1-based page number"),
    page_size: int = Query(
        default=settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        alias="pageSize",
        description="Items per page",
    ),
    agent: MovieAgent = Depends(get_movie_agent),
    cache: ResponseCache = Depends(get_response_cache),
):
    """
    Answer a movie/OTT query.

    SPECIFIC queries return {"movies": [...]}; LIST and weekly queries
    return {"releases": [...]}. Degraded results carry search_hints.
    """
    request = MovieAgentQuery(query=query, type=type, weekly=weekly, page=page, page_size=page_size)
    if not request.text and not request.weekly:
        return missing_query_response()

    key = cache_key(request)
    cached = cache.get(key)
    if cached is not None:
        logger.info(f"Cache hit for {key}")
        return JSONResponse(status_code=200, content=cached)

    try:
        state = await agent.run(request)
        payload = build_envelope(state["resolution"])
    except Exception as e:
        return failure_response(e, request.text, request.type)

    hints = payload.get("search_hints") or {}
    if hints.get("found_results") is False:
        logger.info(f"Not caching degraded response for {key}")
    else:
        cache.set(key, payload)
    return JSONResponse(status_code=200, content=payload)


@router.get("/health")
async def health_check(agent: MovieAgent = Depends(get_movie_agent)):
    """
    Health check endpoint.

    Returns:
        Service status and which providers have credentials
    """
    return {"status": "ok", "providers": provider_status(agent.toolkit)}
