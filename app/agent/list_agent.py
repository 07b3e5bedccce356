"""
LIST and weekly paths: extract a title list from web search results (or
TMDB discovery), deduplicate, paginate and enrich each page item with
provider ratings and a review summary.
"""
import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx

from app.agent.models import AgentToolkit, ListResolution
from app.agent.research_agent import format_results_for_agent
from app.agent.review_agent import NO_REVIEWS, generate_review_summary
from app.core.exceptions import LLMProviderError, MissingCredentialError, ProviderError
from app.core.fusion import SourceRecord, dedupe_by_title, fuse_item, is_empty, paginate
from app.core.hints import no_results_hints
from app.core.parsing import EMPTY_TITLE_LIST, TitleListReply, parse_title_list
from app.models.schemas import NormalizedItem, QueryKind

logger = logging.getLogger(__name__)

LIST_SYSTEM_PROMPT = (
    "You are an Indian entertainment tracker. You extract lists of films and OTT shows "
    "from web search text and respond with a compact JSON array only."
)


def _media_noun(media_type: str) -> str:
    return "OTT shows" if media_type == "tv" else "movies"


def build_extraction_prompt(query: str, media_type: str, snippets: str) -> str:
    return (
        f"User request: {query}\n"
        f"Using ONLY the search text below, list the {_media_noun(media_type)} that answer the request.\n"
        "Return a JSON array of objects with the keys title, type (\"movie\" or \"tv\"), description "
        "(one sentence), platform, release_date, genre and rating (out of 10). "
        "Use null for anything the text does not state. "
        "Do not add titles that are not in the text. Return [] if there are none.\n\n"
        f"== SEARCH TEXT ==\n{snippets}\n================="
    )


async def extract_titles(query: str, media_type: str, snippets: str, toolkit: AgentToolkit) -> TitleListReply:
    """Ask the extraction LLM for a title list; failures give the empty sentinel."""
    provider = toolkit.llm.require_provider(toolkit.settings.LLM_PROVIDER)
    try:
        reply = await toolkit.llm.complete(
            build_extraction_prompt(query, media_type, snippets),
            provider=provider,
            system=LIST_SYSTEM_PROMPT,
            temperature=0.2,
            max_tokens=1200,
            json_output=True,
        )
    except LLMProviderError as e:
        logger.warning(f"Title list extraction failed: {e}")
        return EMPTY_TITLE_LIST
    return parse_title_list(reply)


async def _provider_records(
    title: str, item_type: str, source: str, record: Dict[str, Any], toolkit: AgentToolkit
) -> List[SourceRecord]:
    """TMDB (unless the record came from TMDB) and, without a provider rating, OMDB."""
    partials: List[SourceRecord] = []
    if source != "tmdb" and toolkit.tmdb.configured:
        try:
            tmdb_record = await toolkit.tmdb.rating_for(title, item_type)
            if tmdb_record:
                partials.append(("tmdb", tmdb_record))
        except (httpx.HTTPError, ProviderError) as e:
            logger.warning(f"TMDB enrichment failed for '{title}': {e}")

    has_provider_rating = any(not is_empty(rec.get("rating")) for _, rec in partials) or (
        source == "tmdb" and not is_empty(record.get("rating"))
    )
    if not has_provider_rating and toolkit.omdb.configured:
        try:
            omdb_record = await toolkit.omdb.lookup(title, None, item_type)
            if omdb_record:
                partials.append(("omdb", omdb_record))
        except (httpx.HTTPError, ProviderError) as e:
            logger.warning(f"OMDB enrichment failed for '{title}': {e}")
    return partials


async def _review_for(title: str, item_type: str, toolkit: AgentToolkit) -> str:
    """Review summary for one list item, seeded with a review-site search."""
    if toolkit.llm.pick_provider(toolkit.settings.REVIEW_PROVIDER) is None:
        return NO_REVIEWS
    research = await toolkit.researcher.review_search(title, item_type) if toolkit.researcher.configured else None
    return await generate_review_summary(title, item_type, research, toolkit)


async def _enrich_item(record: Dict[str, Any], media_type: str, toolkit: AgentToolkit) -> Optional[NormalizedItem]:
    """Fuse one model/catalog record with provider ratings and a review summary."""
    title = record["title"]
    item_type = record.get("type") or media_type
    source = record.pop("_source", "llm")

    provider_partials, reviews_summary = await asyncio.gather(
        _provider_records(title, item_type, source, record, toolkit),
        _review_for(title, item_type, toolkit),
    )
    partials: List[SourceRecord] = [(source, record), *provider_partials]
    return fuse_item(
        partials,
        QueryKind.LIST,
        overrides={"type": item_type, "reviews_summary": reviews_summary},
    )


async def enrich_items(records: List[Dict[str, Any]], media_type: str, toolkit: AgentToolkit) -> List[NormalizedItem]:
    """Enrich every record concurrently, one task per item."""
    enriched = await asyncio.gather(*(_enrich_item(dict(record), media_type, toolkit) for record in records))
    return [item for item in enriched if item is not None]


async def _page_of(
    records: List[Dict[str, Any]], media_type: str, page: int, page_size: int, toolkit: AgentToolkit
) -> ListResolution:
    unique = dedupe_by_title(records)
    window = paginate(unique, page, page_size)
    items = await enrich_items(window, media_type, toolkit)
    # Enrichment never renames, but keep the page free of duplicates regardless
    items = dedupe_by_title(items)
    hints = None if unique else no_results_hints()
    return ListResolution(items=items, total=len(unique), search_hints=hints)


async def resolve_list(
    query: str, media_type: str, page: int, page_size: int, toolkit: AgentToolkit
) -> ListResolution:
    """
    Resolve a LIST query into one page of NormalizedItems.

    Raises:
        MissingCredentialError: No web search or extraction LLM key configured
    """
    toolkit.researcher.require()
    toolkit.llm.require_provider(toolkit.settings.LLM_PROVIDER)

    search_query = query
    if _media_noun(media_type).split()[-1] not in query.lower():
        search_query = f"{query} {_media_noun(media_type)}"
    research = await toolkit.researcher.search(search_query)
    if not research.results:
        logger.info(f"No search results for list query '{query}'")
        return ListResolution(search_hints=no_results_hints())

    extracted = await extract_titles(query, media_type, format_results_for_agent(research, max_chars=800), toolkit)
    if not extracted.valid:
        return ListResolution(search_hints=no_results_hints())

    sources = research.urls
    records = [
        {**entry.model_dump(), "type": entry.type or media_type, "sources": sources}
        for entry in extracted.items
    ]
    logger.info(f"Extracted {len(records)} titles for '{query}'")
    return await _page_of(records, media_type, page, page_size, toolkit)


def _in_window(result: Dict[str, Any], start: date, end: date) -> bool:
    released = result.get("release_date") or result.get("first_air_date") or ""
    try:
        day = date.fromisoformat(released[:10])
    except ValueError:
        return False
    return start <= day <= end


async def _catalog_candidates(media_type: str, window_days: int, toolkit: AgentToolkit) -> List[Dict[str, Any]]:
    now_playing, trending = await asyncio.gather(
        toolkit.tmdb.now_playing(media_type),
        toolkit.tmdb.trending(media_type, "week"),
        return_exceptions=True,
    )
    results: List[Dict[str, Any]] = []
    for name, batch in (("now playing", now_playing), ("trending", trending)):
        if isinstance(batch, Exception):
            logger.warning(f"TMDB {name} failed: {batch}")
            continue
        results.extend(batch)
    if isinstance(now_playing, Exception) and isinstance(trending, Exception):
        raise ProviderError("TMDB discovery endpoints failed")

    end = date.today()
    start = end - timedelta(days=window_days)
    recent = [result for result in results if _in_window(result, start, end)]
    if not recent:
        logger.info("No TMDB titles inside the weekly window; using unfiltered discovery results")
        recent = results

    try:
        genre_names = await toolkit.tmdb.genre_names(media_type)
    except (httpx.HTTPError, ProviderError):
        genre_names = {}
    base = "https://www.themoviedb.org"
    return [
        {
            **toolkit.tmdb.to_record(result, media_type, genre_names=genre_names),
            "sources": [f"{base}/{media_type}/{result['id']}"] if result.get("id") else [],
            "_source": "tmdb",
        }
        for result in recent
    ]


async def resolve_weekly(media_type: str, page: int, page_size: int, toolkit: AgentToolkit) -> ListResolution:
    """
    Resolve this week's releases.

    TMDB discovery (now playing / on the air + weekly trending) is used when
    configured; otherwise the LIST path runs with a fixed query.
    """
    window_days = toolkit.settings.WEEKLY_WINDOW_DAYS
    if toolkit.tmdb.configured:
        try:
            candidates = await _catalog_candidates(media_type, window_days, toolkit)
            logger.info(f"TMDB weekly candidates: {len(candidates)}")
            return await _page_of(candidates, media_type, page, page_size, toolkit)
        except (httpx.HTTPError, ProviderError) as e:
            logger.warning(f"TMDB weekly discovery failed: {e}")
            if not toolkit.researcher.configured:
                return ListResolution(search_hints=no_results_hints())

    if not toolkit.researcher.configured and not toolkit.tmdb.configured:
        raise MissingCredentialError("TMDB_API_KEY")

    end = date.today()
    start = end - timedelta(days=window_days)
    query = f"new {_media_noun(media_type)} released in India this week ({start.isoformat()} to {end.isoformat()})"
    return await resolve_list(query, media_type, page, page_size, toolkit)
