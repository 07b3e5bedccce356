"""
Research agent for web search using the tavily tool and SerpAPI.
"""
import logging
from typing import Optional, Sequence

import httpx

from app.agent.models import WebSearchResult
from app.core.exceptions import MissingCredentialError, ProviderError
from app.services.serpapi import SerpAPIClient
from app.tools.tavily_tool import TavilyMovieTool

logger = logging.getLogger(__name__)


def media_label(media_type: str) -> str:
    return "OTT series" if media_type == "tv" else "movie"


class WebResearcher:
    """
    Web search with Tavily as the primary provider and SerpAPI as fallback.
    """

    def __init__(self, tavily: TavilyMovieTool, serpapi: SerpAPIClient, review_sites: Sequence[str] = ()):
        self.tavily = tavily
        self.serpapi = serpapi
        self.review_sites = list(review_sites)

    @property
    def configured(self) -> bool:
        return self.tavily.configured or self.serpapi.configured

    def require(self) -> None:
        if not self.configured:
            raise MissingCredentialError("TAVILY_API_KEY")

    async def _serpapi_search(self, query: str, include_domains: Optional[Sequence[str]]) -> WebSearchResult:
        try:
            results = await self.serpapi.search(query, include_domains=include_domains)
        except (httpx.HTTPError, ProviderError) as e:
            logger.warning(f"SerpAPI search error: {e}")
            return WebSearchResult(source="serpapi", ok=False, summary=f"Search failed: {e}")
        logger.info(f"SerpAPI found {len(results)} results")
        return WebSearchResult(source="serpapi", results=results)

    async def search(self, query: str, include_domains: Optional[Sequence[str]] = None) -> WebSearchResult:
        """
        Search the web, falling back to SerpAPI when Tavily fails or finds nothing.

        Returns:
            WebSearchResult; `ok` is False only if every configured provider failed
        """
        result = WebSearchResult(source="none", ok=False, summary="No search provider configured")
        if self.tavily.configured:
            result = await self.tavily.search(query, include_domains=include_domains)
            if result.ok and result.results:
                return result
        if self.serpapi.configured:
            fallback = await self._serpapi_search(query, include_domains)
            if fallback.ok or not result.ok:
                return fallback
        return result

    async def review_search(self, title: str, media_type: str = "movie") -> WebSearchResult:
        """Search review sites for a title, widening to the open web if they have nothing."""
        query = f"{title} {media_label(media_type)} reviews"
        result = await self.search(query, include_domains=self.review_sites or None)
        if result.results or not self.review_sites:
            return result
        logger.info(f"No review-site hits for '{title}', widening search")
        widened = await self.search(f"{title} {media_label(media_type)} review cast release date")
        return widened if widened.ok or not result.ok else result


def format_results_for_agent(results: WebSearchResult, max_chars: int = 600) -> str:
    """
    Format search results as numbered snippets for a prompt.

    Args:
        results: Search results
        max_chars: Per-result content cap

    Returns:
        Formatted string for the agent
    """
    if not results.results:
        return "No web results found."

    formatted = []
    for i, result in enumerate(results.results, 1):
        title = result.get("title") or "Untitled"
        content = (result.get("content") or "").strip()
        if len(content) > max_chars:
            content = content[:max_chars] + "..."
        url = result.get("url", "")
        formatted.append(f"{i}. {title}\n   {content}\n   Source: {url}")

    return "\n".join(formatted)
