"""
Typed parsing of JSON emitted by generative models.

Replies are loaded strictly; if that fails a single fixed normalization
pass (smart quotes, single-quoted strings, trailing commas) is applied and
the load is attempted once more. Whatever loads is then validated against
pydantic models, and anything that does not validate collapses to an empty
sentinel instead of raising.
"""
import json
import logging
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.models.schemas import MediaType, coerce_names, coerce_rating

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_CLOSER_AHEAD = re.compile(r"\s*[\]}]")
_AFTER_VALUE = re.compile(r"\s*(?:[,:\]}]|$)")
_STRUCTURAL = frozenset("[{,:")
_SMART_QUOTES = {
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
}


class ExtractedTitle(BaseModel):
    """One entry of a model-extracted title list."""
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1)
    type: Optional[MediaType] = None
    description: Optional[str] = None
    platform: Optional[str] = None
    release_date: Optional[str] = None
    genre: Optional[str] = None
    rating: Optional[float] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        if lowered in {"tv", "series", "show", "tv show", "web series", "ott show"}:
            return "tv"
        if lowered in {"movie", "film"}:
            return "movie"
        return None

    @field_validator("description", "platform", "release_date", "genre", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(part) for part in value if part)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, value: Any) -> Optional[float]:
        return coerce_rating(value)


class ExtractedRecord(ExtractedTitle):
    """A single-title metadata record extracted from search snippets."""
    cast: Optional[List[str]] = None
    director: Optional[str] = None

    @field_validator("cast", mode="before")
    @classmethod
    def _cast(cls, value: Any) -> Optional[List[str]]:
        return coerce_names(value)

    @field_validator("director", mode="before")
    @classmethod
    def _plain(cls, value: Any) -> Optional[str]:
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(part) for part in value if part)
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class TitleListReply(BaseModel):
    """Validated title list, or the empty sentinel when `valid` is False."""
    items: List[ExtractedTitle] = Field(default_factory=list)
    valid: bool = True


EMPTY_TITLE_LIST = TitleListReply(items=[], valid=False)


def strip_json_markers(payload: str) -> str:
    text = payload.strip()
    match = _FENCE.search(text)
    if match:
        text = match.group(1)
    elif text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    return text.strip()


def _slice_json(text: str, opener: str, closer: str) -> Optional[str]:
    start = text.find(opener)
    end = text.rfind(closer)
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _closing_single_quote(text: str, start: int) -> Optional[int]:
    """Index of the quote closing a single-quoted string opened before `start`."""
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        # An apostrophe inside the value is not followed by structure
        if ch == "'" and _AFTER_VALUE.match(text, i + 1):
            return i
        i += 1
    return None


def _normalize_outside_strings(text: str) -> str:
    """
    Requote single-quoted strings and drop trailing commas, leaving the
    contents of double-quoted strings untouched.
    """
    out: List[str] = []
    previous = ""
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < len(text):
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
                previous = ch
            i += 1
            continue

        if ch == '"':
            in_string = True
        elif ch == "'" and previous in _STRUCTURAL:
            end = _closing_single_quote(text, i + 1)
            if end is not None:
                inner = text[i + 1:end].replace("\\'", "'").replace('"', '\\"')
                out.append(f'"{inner}"')
                previous = '"'
                i = end + 1
                continue
        elif ch == "," and _CLOSER_AHEAD.match(text, i + 1):
            i += 1
            continue

        out.append(ch)
        if not ch.isspace():
            previous = ch
        i += 1
    return "".join(out)


def repair_json(text: str) -> str:
    """Apply the fixed normalization pass used before the second load attempt."""
    for smart, plain in _SMART_QUOTES.items():
        text = text.replace(smart, plain)
    return _normalize_outside_strings(text)


def load_json(payload: str, expect: type = list) -> Any:
    """
    Load a model reply as JSON of the expected top-level type.

    Returns None when neither the strict load nor the repaired load
    yields a value of that type.
    """
    if not payload or not payload.strip():
        return None
    opener, closer = ("[", "]") if expect is list else ("{", "}")
    cleaned = strip_json_markers(payload)
    candidate = _slice_json(cleaned, opener, closer) or cleaned

    for attempt, text in enumerate((candidate, repair_json(candidate))):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.debug("JSON load attempt %d failed: %s", attempt + 1, exc)
            continue
        if isinstance(parsed, expect):
            return parsed
        logger.debug("Model JSON has type %s, expected %s", type(parsed).__name__, expect.__name__)
        return None
    return None


def parse_title_list(payload: str) -> TitleListReply:
    data = load_json(payload, expect=list)
    if data is None:
        logger.warning("Model reply could not be parsed as a JSON array")
        return EMPTY_TITLE_LIST

    items: List[ExtractedTitle] = []
    for entry in data:
        try:
            items.append(ExtractedTitle.model_validate(entry))
        except ValidationError as exc:
            logger.debug("Skipping invalid entry in model reply: %r (%s)", entry, exc.error_count())
    return TitleListReply(items=items, valid=True)


def parse_title_record(payload: str) -> Optional[ExtractedRecord]:
    data = load_json(payload, expect=dict)
    if data is None:
        logger.warning("Model reply could not be parsed as a JSON object")
        return None
    try:
        return ExtractedRecord.model_validate(data)
    except ValidationError as exc:
        logger.warning("Model record failed validation: %s", exc.error_count())
        return None
