"""
Field-level fusion of provider records into a NormalizedItem.

Every provider contributes a partial record tagged with its source name.
For each field the precedence table for the query kind fixes the order in
which sources are consulted, and the first non-empty value wins. `sources`
is the exception: links from every record are unioned in order.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from app.models.schemas import NormalizedItem, QueryKind

logger = logging.getLogger(__name__)

SourceRecord = Tuple[str, Mapping[str, Any]]

ITEM_FIELDS: Tuple[str, ...] = tuple(NormalizedItem.model_fields)

_SPECIFIC_DEFAULT = ("tmdb", "omdb", "llm", "search")
_LIST_DEFAULT = ("tmdb", "omdb", "llm", "search")

FIELD_PRECEDENCE: Dict[QueryKind, Dict[str, Tuple[str, ...]]] = {
    QueryKind.SPECIFIC: {
        "title": ("tmdb", "omdb", "llm"),
        "description": ("tmdb", "omdb", "llm"),
        "release_date": ("tmdb", "omdb", "llm"),
        "genre": ("tmdb", "omdb", "llm"),
        "cast": ("tmdb", "omdb", "llm"),
        "director": ("tmdb", "omdb", "llm"),
        "platform": ("tmdb", "llm"),
        "rating": ("tmdb", "omdb", "llm"),
        "reviews_summary": ("llm",),
        "_default": _SPECIFIC_DEFAULT,
    },
    QueryKind.LIST: {
        # Provider titles would rename the model's pick to a fuzzy search hit.
        "title": ("llm", "tmdb", "omdb"),
        "platform": ("llm", "tmdb"),
        "type": ("llm", "tmdb"),
        "rating": ("tmdb", "omdb", "llm"),
        "release_date": ("tmdb", "llm", "omdb"),
        "genre": ("tmdb", "llm", "omdb"),
        "_default": _LIST_DEFAULT,
    },
}


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _ordered(partials: Sequence[SourceRecord], order: Sequence[str]) -> List[SourceRecord]:
    rank = {source: idx for idx, source in enumerate(order)}
    indexed = list(enumerate(partials))
    indexed.sort(key=lambda pair: (rank.get(pair[1][0], len(rank)), pair[0]))
    return [record for _, record in indexed]


def _union_sources(partials: Iterable[SourceRecord]) -> List[str]:
    seen = set()
    merged: List[str] = []
    for _, record in partials:
        for link in record.get("sources") or []:
            if link and link not in seen:
                seen.add(link)
                merged.append(link)
    return merged


def merge_records(
    partials: Sequence[SourceRecord],
    precedence: Mapping[str, Sequence[str]],
    fields: Sequence[str] = ITEM_FIELDS,
) -> Dict[str, Any]:
    """
    Merge partial provider records field by field.

    Args:
        partials: (source, record) pairs; records may be empty or partial
        precedence: field -> ordered sources; "_default" covers unlisted fields
        fields: fields to resolve

    Returns:
        Dict with one entry per field (None where no source had a value)
    """
    default_order = tuple(precedence.get("_default", ()))
    merged: Dict[str, Any] = {}
    for field in fields:
        if field == "sources":
            merged[field] = _union_sources(partials)
            continue
        merged[field] = None
        for source, record in _ordered(partials, precedence.get(field, default_order)):
            value = record.get(field)
            if not is_empty(value):
                merged[field] = value
                logger.debug("Field %s resolved from %s", field, source)
                break
    return merged


def fuse_item(
    partials: Sequence[SourceRecord],
    kind: QueryKind,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Optional[NormalizedItem]:
    """Merge partials with the precedence table for `kind`; None when no title resolves."""
    merged = merge_records(partials, FIELD_PRECEDENCE[kind])
    for key, value in (overrides or {}).items():
        if merged.get(key) is None:
            merged[key] = value
    if is_empty(merged.get("title")):
        return None
    merged["title"] = str(merged["title"]).strip()
    if merged.get("type") not in ("movie", "tv"):
        merged["type"] = "movie"
    return NormalizedItem.model_validate(merged)


def title_key(title: Optional[str]) -> str:
    return " ".join((title or "").lower().split())


def dedupe_by_title(items: Iterable[Any]) -> List[Any]:
    """Drop case-insensitive duplicate titles, keeping the first occurrence."""
    seen = set()
    unique: List[Any] = []
    for item in items:
        title = item.get("title") if isinstance(item, Mapping) else getattr(item, "title", None)
        key = title_key(title)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def paginate(items: Sequence[Any], page: int, page_size: int) -> List[Any]:
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be positive")
    start = (page - 1) * page_size
    return list(items[start:start + page_size])
