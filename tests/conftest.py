"""Shared fixtures: settings without ambient credentials, canned provider HTTP and a scripted LLM."""
import re
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Set

import httpx
import pytest

from app.agent.classifier import CLASSIFIER_SYSTEM_PROMPT
from app.agent.list_agent import LIST_SYSTEM_PROMPT
from app.agent.review_agent import REVIEW_SYSTEM_PROMPT
from app.agent.specific_agent import EXTRACTION_SYSTEM_PROMPT
from app.api.deps import AppState
from app.config import Settings
from app.core.fusion import title_key
from app.core.llm import LLMClient, normalize_provider

_DETAILS_PATH = re.compile(r"^(movie|tv)/(\d+)$")


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "TMDB_API_KEY": None,
        "OMDB_API_KEY": None,
        "TAVILY_API_KEY": None,
        "SERPAPI_KEY": None,
        "PERPLEXITY_API_KEY": None,
        "GEMINI_API_KEY": None,
        "GOOGLE_API_KEY": None,
        "LLM_PROVIDER": "perplexity",
        "CLASSIFIER_PROVIDER": "gemini",
        "REVIEW_PROVIDER": "perplexity",
        "CACHE_TTL_SECONDS": 600,
        "CACHE_MAX_ENTRIES": 16,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class ScriptedLLM(LLMClient):
    """LLMClient whose completions come from a responder keyed on the system prompt."""

    def __init__(self, settings: Settings, replies: Optional[Dict[str, Any]] = None):
        super().__init__(settings)
        self.replies = replies or {}
        self.calls: List[Dict[str, Any]] = []

    def reply_for(self, system: Optional[str]) -> Any:
        if system == CLASSIFIER_SYSTEM_PROMPT:
            return self.replies.get("classify", "SPECIFIC")
        if system == LIST_SYSTEM_PROMPT:
            return self.replies.get("list", "[]")
        if system == REVIEW_SYSTEM_PROMPT:
            return self.replies.get("review", "**Overall assessment** Well received.")
        if system == EXTRACTION_SYSTEM_PROMPT:
            return self.replies.get("extract", '{"title": null}')
        return ""

    async def complete(
        self,
        prompt: str,
        *,
        provider: str,
        system: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 800,
        json_output: bool = False,
    ) -> str:
        self.calls.append({"prompt": prompt, "provider": normalize_provider(provider), "system": system})
        reply = self.reply_for(system)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeProviders:
    """
    Canned TMDB, OMDB and SerpAPI responses served through httpx.MockTransport.
    """

    def __init__(self):
        self.tmdb_search: Dict[str, List[dict]] = {}
        self.tmdb_details: Dict[int, dict] = {}
        self.now_playing: List[dict] = []
        self.trending: List[dict] = []
        self.genres: List[dict] = [
            {"id": 18, "name": "Drama"},
            {"id": 27, "name": "Horror"},
            {"id": 35, "name": "Comedy"},
        ]
        self.omdb: Dict[str, dict] = {}
        self.serp_results: List[dict] = []
        self.broken_paths: Set[str] = set()
        self.requests: List[httpx.Request] = []

    def add_title(self, title: str, tmdb_id: int, details: Optional[dict] = None, **result: Any) -> None:
        self.tmdb_search.setdefault(title_key(title), []).append({"id": tmdb_id, "title": title, **result})
        if details is not None:
            self.tmdb_details[tmdb_id] = details

    def _tmdb(self, path: str, params: httpx.QueryParams) -> dict:
        if path.startswith("search/"):
            return {"results": self.tmdb_search.get(title_key(params.get("query")), [])}
        if path.startswith("genre/"):
            return {"genres": self.genres}
        if path in ("movie/now_playing", "tv/on_the_air"):
            return {"results": self.now_playing}
        if path.startswith("trending/"):
            return {"results": self.trending}
        match = _DETAILS_PATH.match(path)
        if match:
            return self.tmdb_details.get(int(match.group(2)), {})
        return {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        params = request.url.params
        if host == "api.themoviedb.org":
            path = request.url.path[len("/3/"):]
            if path in self.broken_paths:
                return httpx.Response(200, content=b"<html>Service unavailable</html>")
            return httpx.Response(200, json=self._tmdb(path, params))
        if host == "www.omdbapi.com":
            payload = self.omdb.get(title_key(params.get("t")))
            return httpx.Response(200, json=payload or {"Response": "False", "Error": "Movie not found!"})
        if host == "serpapi.com":
            return httpx.Response(200, json={"organic_results": self.serp_results})
        return httpx.Response(404, json={"error": "unknown host"})

    def hosts(self) -> List[str]:
        return [request.url.host for request in self.requests]


def days_ago(days: int) -> str:
    return (date.today() - timedelta(days=days)).isoformat()


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
def build_state(providers: FakeProviders) -> Callable[..., AppState]:
    """Factory: AppState over the fake providers with a scripted LLM."""

    def _build(replies: Optional[Dict[str, Any]] = None, **overrides: Any) -> AppState:
        settings = make_settings(**overrides)
        http = httpx.AsyncClient(transport=httpx.MockTransport(providers.handler))
        return AppState(settings, http=http, llm=ScriptedLLM(settings, replies))

    return _build


@pytest.fixture
def stree_2(providers: FakeProviders) -> FakeProviders:
    providers.add_title(
        "Stree 2",
        1059064,
        release_date="2024-08-15",
        vote_average=7.1,
        vote_count=180,
        genre_ids=[27, 35],
        details={
            "id": 1059064,
            "title": "Stree 2",
            "overview": "The town of Chanderi is haunted again.",
            "release_date": "2024-08-15",
            "genres": [{"id": 27, "name": "Horror"}, {"id": 35, "name": "Comedy"}],
            "vote_average": 7.1,
            "vote_count": 180,
            "credits": {
                "cast": [{"name": "Rajkummar Rao"}, {"name": "Shraddha Kapoor"}],
                "crew": [{"job": "Director", "name": "Amar Kaushik"}],
            },
            "watch/providers": {"results": {"IN": {"flatrate": [{"provider_name": "Amazon Prime Video"}]}}},
        },
    )
    providers.serp_results = [
        {
            "title": "Stree 2 review: a horror comedy that delivers",
            "link": "https://indianexpress.com/stree-2-review",
            "snippet": "Rajkummar Rao and Shraddha Kapoor return to Chanderi.",
        },
    ]
    return providers


def calls_with(llm: ScriptedLLM, system: str) -> List[Dict[str, Any]]:
    return [call for call in llm.calls if call["system"] == system]
