"""
Tavily Search Tool for movie research.
"""
import logging
from typing import Dict, Optional, Sequence, Tuple

from langchain_community.tools.tavily_search import TavilySearchResults
from langchain_community.utilities.tavily_search import TavilySearchAPIWrapper
from pydantic import SecretStr

from app.agent.models import WebSearchResult
from app.config import Settings

logger = logging.getLogger(__name__)


class TavilyMovieTool:
    """
    Tool for searching movie information and reviews using Tavily.
    """

    def __init__(self, settings: Settings):
        self.api_key = settings.TAVILY_API_KEY
        self.max_results = settings.SEARCH_MAX_RESULTS
        self._tools: Dict[Tuple[str, ...], TavilySearchResults] = {}

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def tool(self, include_domains: Optional[Sequence[str]] = None) -> Optional[TavilySearchResults]:
        """Lazily build one Tavily tool per domain filter."""
        if not self.api_key:
            return None
        key = tuple(include_domains or ())
        if key not in self._tools:
            wrapper = TavilySearchAPIWrapper(tavily_api_key=SecretStr(self.api_key))
            self._tools[key] = TavilySearchResults(
                api_wrapper=wrapper,
                max_results=self.max_results,
                include_domains=list(key),
            )
        return self._tools[key]

    async def search(self, query: str, include_domains: Optional[Sequence[str]] = None) -> WebSearchResult:
        """
        Search for movie information using Tavily.

        Args:
            query: Search query about movies or shows
            include_domains: Optional list of sites to restrict the search to

        Returns:
            WebSearchResult with findings; `ok` is False if the call failed
        """
        tool = self.tool(include_domains)
        if tool is None:
            logger.error("Tavily tool not initialized - API key missing")
            return WebSearchResult(
                source="tavily",
                ok=False,
                summary="Tavily search unavailable - API key not configured",
            )

        try:
            logger.info(f"Tavily search: {query}")
            results = await tool.ainvoke({"query": query})
        except Exception as e:
            logger.warning(f"Tavily search error: {e}")
            return WebSearchResult(source="tavily", ok=False, summary=f"Search failed: {e}")

        # The tool reports API errors as a string instead of raising
        if not isinstance(results, list):
            logger.warning(f"Tavily search failed: {str(results)[:200]}")
            return WebSearchResult(source="tavily", ok=False, summary="Search failed")

        formatted_results = [
            {
                "title": result.get("title", ""),
                "url": result.get("url", ""),
                "content": result.get("content", ""),
            }
            for result in results
            if isinstance(result, dict)
        ]
        logger.info(f"Tavily found {len(formatted_results)} results")

        return WebSearchResult(
            source="tavily",
            results=formatted_results,
            summary=f"Found {len(formatted_results)} web results about: {query}" if formatted_results else "No results found",
        )
