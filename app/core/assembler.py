"""
Response envelopes and the mapping from pipeline outcomes to HTTP status.
"""
import logging
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from app.agent.models import ListResolution, SpecificResolution
from app.core.exceptions import MissingCredentialError, TitleNotFoundError
from app.core.hints import missing_query_hints, no_match_hints
from app.models.schemas import ErrorEnvelope, MoviesEnvelope, ReleasesEnvelope, SearchHints

logger = logging.getLogger(__name__)

QUERY_REQUIRED = "Query parameter is required"
INTERNAL_ERROR = "Internal server error"


def _dump(envelope: Any) -> Dict[str, Any]:
    payload = envelope.model_dump(mode="json")
    if payload.get("search_hints") is None:
        payload.pop("search_hints", None)
    elif payload["search_hints"].get("found_match") is None:
        payload["search_hints"].pop("found_match", None)
    if "details" in payload and payload["details"] is None:
        payload.pop("details")
    return payload


def movies_envelope(resolution: SpecificResolution) -> Dict[str, Any]:
    movies = [resolution.item] if resolution.item is not None else []
    return _dump(MoviesEnvelope(movies=movies, search_hints=resolution.search_hints))


def releases_envelope(resolution: ListResolution) -> Dict[str, Any]:
    return _dump(ReleasesEnvelope(releases=resolution.items, search_hints=resolution.search_hints))


def build_envelope(resolution: Any) -> Dict[str, Any]:
    if isinstance(resolution, SpecificResolution):
        return movies_envelope(resolution)
    if isinstance(resolution, ListResolution):
        return releases_envelope(resolution)
    raise TypeError(f"Unexpected resolution type: {type(resolution).__name__}")


def error_response(
    status_code: int,
    message: str,
    details: Optional[Any] = None,
    search_hints: Optional[SearchHints] = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(error=message, details=details, search_hints=search_hints)
    return JSONResponse(status_code=status_code, content=_dump(envelope))


def missing_query_response() -> JSONResponse:
    return error_response(400, QUERY_REQUIRED, search_hints=missing_query_hints())


def failure_response(exc: Exception, query: str = "", media_type: str = "movie") -> JSONResponse:
    """
    Map a pipeline exception to a status code and error envelope.

    Unexpected exceptions are logged with their traceback and reported to the
    client only as a generic message.
    """
    if isinstance(exc, MissingCredentialError):
        logger.error(f"Configuration error: {exc}")
        return error_response(500, str(exc))
    if isinstance(exc, TitleNotFoundError):
        return error_response(404, "Title not found", search_hints=no_match_hints(query, media_type))
    logger.exception("Movie agent pipeline failed", exc_info=exc)
    return error_response(500, INTERNAL_ERROR)
