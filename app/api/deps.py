"""
Application-scoped services shared by every request.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import httpx
from fastapi import FastAPI, Request

from app.agent.graph import MovieAgent
from app.agent.models import AgentToolkit
from app.agent.research_agent import WebResearcher
from app.config import Settings, settings
from app.core.cache import ResponseCache
from app.core.llm import GEMINI, PERPLEXITY, LLMClient
from app.services.omdb import OMDBClient
from app.services.serpapi import SerpAPIClient
from app.services.tmdb import TMDBClient
from app.tools.tavily_tool import TavilyMovieTool

logger = logging.getLogger(__name__)


class AppState:
    """
    Owns the shared httpx client, the provider clients, the compiled agent
    graph and the response cache.
    """

    def __init__(
        self,
        config: Settings,
        http: Optional[httpx.AsyncClient] = None,
        llm: Optional[LLMClient] = None,
    ):
        self.settings = config
        self.http = http or httpx.AsyncClient(timeout=config.HTTP_TIMEOUT)

        self.tmdb = TMDBClient(self.http, config)
        self.omdb = OMDBClient(self.http, config)
        self.serpapi = SerpAPIClient(self.http, config)
        self.tavily = TavilyMovieTool(config)
        self.researcher = WebResearcher(self.tavily, self.serpapi, review_sites=config.REVIEW_SITES)
        self.llm = llm or LLMClient(config)

        self.toolkit = AgentToolkit(
            settings=config,
            llm=self.llm,
            tmdb=self.tmdb,
            omdb=self.omdb,
            researcher=self.researcher,
        )
        self.agent = MovieAgent(self.toolkit)
        self.cache = ResponseCache(
            max_entries=config.CACHE_MAX_ENTRIES,
            ttl_seconds=config.CACHE_TTL_SECONDS,
        )

    async def aclose(self) -> None:
        await self.http.aclose()


def provider_status(toolkit: AgentToolkit) -> Dict[str, bool]:
    """Which providers have credentials; values never include the keys."""
    return {
        "tmdb": toolkit.tmdb.configured,
        "omdb": toolkit.omdb.configured,
        "web_search": toolkit.researcher.configured,
        "perplexity": toolkit.llm.is_configured(PERPLEXITY),
        "gemini": toolkit.llm.is_configured(GEMINI),
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    state = AppState(settings)
    app.state.services = state
    logger.info(f"Movie agent ready; providers: {provider_status(state.toolkit)}")
    try:
        yield
    finally:
        await state.aclose()
        logger.info("Shared HTTP client closed")


def get_app_state(request: Request) -> AppState:
    return request.app.state.services


def get_movie_agent(request: Request) -> MovieAgent:
    return get_app_state(request).agent


def get_response_cache(request: Request) -> ResponseCache:
    return get_app_state(request).cache
