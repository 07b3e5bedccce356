import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from app.config import Settings
from app.services.http import ProviderClient

logger = logging.getLogger(__name__)


class SerpAPIClient(ProviderClient):
    """Google web search through SerpAPI; fallback when Tavily is unavailable."""

    name = "SerpAPI"

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        super().__init__(http, settings.SERPAPI_KEY)
        self.base_url = settings.SERPAPI_BASE_URL
        self.country = settings.TMDB_REGION.lower()
        self.max_results = settings.SEARCH_MAX_RESULTS

    async def search(self, query: str, include_domains: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """
        Run a web search.

        Returns:
            Results as {title, url, content} dicts
        """
        q = query
        if include_domains:
            q = f"{query} " + " OR ".join(f"site:{domain}" for domain in include_domains)
        params = {
            "engine": "google",
            "q": q,
            "api_key": self.api_key,
            "gl": self.country,
            "num": self.max_results,
        }
        payload = await self._get(self.base_url, params=params)
        if payload.get("error"):
            logger.warning("SerpAPI error: %s", payload["error"])
            return []
        return [
            {
                "title": result.get("title", ""),
                "url": result.get("link", ""),
                "content": result.get("snippet", ""),
            }
            for result in (payload.get("organic_results") or [])[: self.max_results]
        ]
