"""
SPECIFIC path: resolve one title by fusing metadata, ratings, search
snippets and a generated review summary.
"""
import asyncio
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import httpx

from app.agent.models import AgentToolkit, SpecificResolution, WebSearchResult
from app.agent.research_agent import format_results_for_agent, media_label
from app.agent.review_agent import NO_REVIEWS, generate_review_summary
from app.core.exceptions import (
    LLMProviderError,
    MissingCredentialError,
    ProviderError,
    TitleNotFoundError,
)
from app.core.fusion import SourceRecord, fuse_item, is_empty, title_key
from app.core.hints import no_match_hints, unresolved_hints
from app.core.parsing import parse_title_record
from app.models.schemas import QueryKind

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "Description not available"

_TRAILING_YEAR = re.compile(r"^(?P<title>.+?)\s*\(?(?P<year>(?:19|20)\d{2})\)?$")

EXTRACTION_SYSTEM_PROMPT = (
    "You extract structured facts about films and OTT shows from web search snippets. "
    "Respond with compact JSON only."
)


def split_title_year(query: str) -> Tuple[str, Optional[int]]:
    """Split a trailing year off a title query ("Stree 2 (2024)" -> ("Stree 2", 2024))."""
    text = " ".join(query.split())
    match = _TRAILING_YEAR.match(text)
    # "Blade Runner 2049" is a title, not a release year
    if match and match.group("title").strip() and int(match.group("year")) <= date.today().year + 2:
        return match.group("title").strip(), int(match.group("year"))
    return text, None


def _year_of(release_date: Optional[str]) -> Optional[int]:
    match = re.search(r"(19|20)\d{2}", release_date or "")
    return int(match.group(0)) if match else None


async def _tmdb_lookup(
    title: str, media_type: str, year: Optional[int], toolkit: AgentToolkit
) -> Tuple[Optional[Dict[str, Any]], bool]:
    """Returns (record, answered); answered is False when the call failed."""
    try:
        return await toolkit.tmdb.find_title(title, media_type, year), True
    except (httpx.HTTPError, ProviderError) as e:
        logger.warning(f"TMDB lookup failed for '{title}': {e}")
        return None, False


async def _extract_from_snippets(
    title: str, media_type: str, research: WebSearchResult, toolkit: AgentToolkit
) -> Optional[Dict[str, Any]]:
    provider = toolkit.llm.pick_provider(toolkit.settings.LLM_PROVIDER)
    if provider is None or not research.results:
        return None
    prompt = (
        f'From the search snippets below, extract facts about the {media_label(media_type)} "{title}".\n'
        "Return one JSON object with the keys title, description, release_date, genre, cast "
        "(array of names), director, platform (streaming service in India, if any) and rating "
        "(out of 10). Use null for anything the snippets do not state. "
        "If the snippets are not about this title, return {\"title\": null}.\n\n"
        f"{format_results_for_agent(research)}"
    )
    try:
        reply = await toolkit.llm.complete(
            prompt,
            provider=provider,
            system=EXTRACTION_SYSTEM_PROMPT,
            temperature=0.1,
            max_tokens=700,
            json_output=True,
        )
    except (LLMProviderError, MissingCredentialError) as e:
        logger.warning(f"Metadata extraction failed for '{title}': {e}")
        return None
    record = parse_title_record(reply)
    return record.model_dump() if record is not None else None


async def _omdb_lookup(
    title: str, year: Optional[int], media_type: str, toolkit: AgentToolkit
) -> Dict[str, Any]:
    if not toolkit.omdb.configured:
        return {}
    try:
        return await toolkit.omdb.lookup(title, year, media_type)
    except (httpx.HTTPError, ProviderError) as e:
        logger.warning(f"OMDB lookup failed for '{title}': {e}")
        return {}


async def resolve_specific(query: str, media_type: str, toolkit: AgentToolkit) -> SpecificResolution:
    """
    Resolve a SPECIFIC query into one NormalizedItem.

    Flow:
    1. TMDB lookup and review search run concurrently
    2. No TMDB record: extract a record from the snippets with the LLM
    3. Nothing resolved a title: one OMDB lookup by the raw title, else an
       empty result (item None, found_results False)
    4. Rating still missing: one OMDB lookup by title (+ year)
    5. Review summary from the review LLM, seeded with the snippets
    6. Fuse with the SPECIFIC precedence table

    Raises:
        MissingCredentialError: TMDB_API_KEY not configured
        TitleNotFoundError: TMDB and web search both answered with nothing
    """
    if not toolkit.tmdb.configured:
        raise MissingCredentialError("TMDB_API_KEY")

    title, year = split_title_year(query)
    logger.info(f"Resolving specific {media_type}: '{title}' (year={year})")

    (tmdb_record, tmdb_answered), research = await asyncio.gather(
        _tmdb_lookup(title, media_type, year, toolkit),
        toolkit.researcher.review_search(title, media_type),
    )

    llm_record: Optional[Dict[str, Any]] = None
    if tmdb_record is None:
        if tmdb_answered and research.ok and not research.results:
            raise TitleNotFoundError(query)
        llm_record = await _extract_from_snippets(title, media_type, research, toolkit)

    partials: List[SourceRecord] = []
    if tmdb_record:
        partials.append(("tmdb", tmdb_record))
    if llm_record:
        partials.append(("llm", llm_record))
    partials.append(("search", {"sources": research.urls}))

    omdb_consulted = False
    resolved_title = next((record.get("title") for _, record in partials if record.get("title")), None)
    if resolved_title is None:
        # Last chance to resolve the raw title before giving up
        omdb_record = await _omdb_lookup(title, year, media_type, toolkit)
        omdb_consulted = True
        if not omdb_record.get("title"):
            logger.info(f"Nothing resolved '{query}'; returning an empty result")
            return SpecificResolution(search_hints=unresolved_hints(query, media_type))
        partials.append(("omdb", omdb_record))
        resolved_title = omdb_record["title"]

    omdb_task = None
    has_rating = any(not is_empty(record.get("rating")) for _, record in partials)
    if not has_rating and not omdb_consulted:
        lookup_year = year or _year_of(next((r.get("release_date") for _, r in partials if r.get("release_date")), None))
        omdb_task = _omdb_lookup(resolved_title, lookup_year, media_type, toolkit)

    review_task = generate_review_summary(resolved_title, media_type, research, toolkit)
    if omdb_task is not None:
        omdb_record, reviews_summary = await asyncio.gather(omdb_task, review_task)
        if omdb_record:
            partials.append(("omdb", omdb_record))
    else:
        reviews_summary = await review_task
    partials.append(("llm", {"reviews_summary": reviews_summary}))

    item = fuse_item(
        partials,
        QueryKind.SPECIFIC,
        overrides={"description": NO_DESCRIPTION, "type": media_type, "reviews_summary": NO_REVIEWS},
    )

    found_match = tmdb_record is not None or any(source == "omdb" for source, _ in partials)
    if not found_match and llm_record:
        # A model record that only echoes the query is not a confident match
        found_match = title_key(llm_record["title"]) != title_key(query)

    hints = None if found_match else no_match_hints(query, media_type)
    if hints is not None:
        logger.info(f"No confident match for '{query}'; returning hints")
    return SpecificResolution(item=item, search_hints=hints)
