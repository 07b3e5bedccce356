import re
from datetime import date
from typing import List

from app.models.schemas import SearchHints

EXAMPLE_QUERIES: List[str] = [
    "Top Netflix movies this week",
    "Best Hindi thrillers on Prime Video",
    "New OTT releases this week",
    "Stree 2",
    "Panchayat season 3",
]

_YEAR = re.compile(r"\b(19|20)\d{2}\b")


def title_suggestions(query: str, media_type: str = "movie") -> List[str]:
    """Heuristic suggestions for a title query that found no real match."""
    text = (query or "").strip()
    suggestions: List[str] = []
    if len(text) < 3:
        suggestions.append("The title is too short; try the full name")
    if not _YEAR.search(text):
        suggestions.append(f'Try adding the release year, e.g. "{text} {date.today().year}"' if text else "Try adding the release year")
    suggestions.append("Check the spelling of the title")
    if media_type == "movie":
        suggestions.append("If this is a series, search again with type=tv")
    else:
        suggestions.append("If this is a film, search again with type=movie")
    return suggestions


def no_match_hints(query: str, media_type: str = "movie") -> SearchHints:
    return SearchHints(found_results=True, found_match=False, suggestions=title_suggestions(query, media_type))


def no_results_hints() -> SearchHints:
    return SearchHints(found_results=False, suggestions=list(EXAMPLE_QUERIES))


def missing_query_hints() -> SearchHints:
    return SearchHints(
        found_results=False,
        suggestions=["Pass ?query=<title or question>, or ?weekly=true for this week's releases"]
        + EXAMPLE_QUERIES[:3],
    )


def unresolved_hints(query: str, media_type: str = "movie") -> SearchHints:
    return SearchHints(found_results=False, found_match=False, suggestions=title_suggestions(query, media_type))
