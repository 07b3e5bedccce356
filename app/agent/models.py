"""
Core models for the agentic system.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, Field

from app.models.schemas import NormalizedItem, SearchHints

if TYPE_CHECKING:
    from app.agent.research_agent import WebResearcher
    from app.config import Settings
    from app.core.llm import LLMClient
    from app.services.omdb import OMDBClient
    from app.services.tmdb import TMDBClient


class WebSearchResult(BaseModel):
    """Result from a web search tool."""

    source: str = Field(..., description="Source of the result (tavily, serpapi)")
    results: List[dict] = Field(default_factory=list, description="Results as {title, url, content}")
    summary: str = Field(default="", description="Summary of findings")
    ok: bool = Field(default=True, description="False when the provider call failed")

    @property
    def urls(self) -> List[str]:
        return [result["url"] for result in self.results if result.get("url")]


class SpecificResolution(BaseModel):
    """Outcome of resolving a SPECIFIC query."""

    item: Optional[NormalizedItem] = None
    search_hints: Optional[SearchHints] = None


class ListResolution(BaseModel):
    """Outcome of resolving a LIST or weekly query (one page)."""

    items: List[NormalizedItem] = Field(default_factory=list)
    total: int = 0
    search_hints: Optional[SearchHints] = None


@dataclass
class AgentToolkit:
    """Providers available to the agents for one application instance."""

    settings: "Settings"
    llm: "LLMClient"
    tmdb: "TMDBClient"
    omdb: "OMDBClient"
    researcher: "WebResearcher"
