"""Tools for the agentic system."""

from app.tools.tavily_tool import TavilyMovieTool

__all__ = [
    "TavilyMovieTool",
]
