import re
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

MediaType = Literal["movie", "tv"]

_RATING_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:/\s*(\d+(?:\.\d+)?))?")


def coerce_rating(value: Any) -> Optional[float]:
    """
    Normalize a provider or model rating to a 0-10 float.

    Accepts numbers, "7.8", "8/10", "78/100" and "4.5/5"; anything
    unparseable (including "N/A") becomes None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        score = float(value)
    else:
        match = _RATING_PATTERN.search(str(value))
        if not match:
            return None
        score = float(match.group(1))
        if match.group(2):
            scale = float(match.group(2))
            if scale <= 0:
                return None
            score = score * 10.0 / scale
    if score <= 0 or score > 10:
        return None
    return round(score, 1)


def coerce_names(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return None
    names = [str(name).strip() for name in value if name is not None and str(name).strip()]
    return names or None


class QueryKind(str, Enum):
    """Classification of a free-text query."""
    LIST = "LIST"
    SPECIFIC = "SPECIFIC"


class MovieAgentQuery(BaseModel):
    """
    Request model for the movie agent endpoint.
    """
    query: Optional[str] = None
    type: MediaType = "movie"
    weekly: bool = False
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)

    @property
    def text(self) -> str:
        return (self.query or "").strip()


class NormalizedItem(BaseModel):
    """
    Canonical output unit merged from one or more provider records.
    """
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    release_date: Optional[str] = None
    genre: Optional[str] = None
    cast: Optional[List[str]] = None
    director: Optional[str] = None
    platform: Optional[str] = None
    rating: Optional[float] = None
    reviews_summary: Optional[str] = None
    type: MediaType = "movie"
    sources: List[str] = Field(default_factory=list)

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, value: Any) -> Optional[float]:
        return coerce_rating(value)

    @field_validator("cast", mode="before")
    @classmethod
    def _cast(cls, value: Any) -> Optional[List[str]]:
        return coerce_names(value)

    @field_validator("genre", "platform", "director", mode="before")
    @classmethod
    def _joined(cls, value: Any) -> Optional[str]:
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(part).strip() for part in value if part)
        return value or None

    @field_validator("sources", mode="before")
    @classmethod
    def _sources(cls, value: Any) -> List[str]:
        return value or []


class SearchHints(BaseModel):
    """
    Quality hints attached to degraded or empty results.
    """
    found_results: bool = True
    found_match: Optional[bool] = None
    suggestions: List[str] = Field(default_factory=list)


class MoviesEnvelope(BaseModel):
    movies: List[NormalizedItem]
    search_hints: Optional[SearchHints] = None


class ReleasesEnvelope(BaseModel):
    releases: List[NormalizedItem]
    search_hints: Optional[SearchHints] = None


class ErrorEnvelope(BaseModel):
    error: str
    details: Optional[Any] = None
    search_hints: Optional[SearchHints] = None
