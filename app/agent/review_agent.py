"""
Review summary generation.
"""
import logging
from typing import Optional

from app.agent.models import AgentToolkit, WebSearchResult
from app.agent.research_agent import format_results_for_agent, media_label
from app.core.exceptions import LLMProviderError, MissingCredentialError

logger = logging.getLogger(__name__)

NO_REVIEWS = "No reviews available"

REVIEW_SYSTEM_PROMPT = """You are an Indian movie and OTT critic writing for a discovery app.
Write a 200-250 word review summary in plain prose, without citations or links.
Use exactly these sections, each starting on its own line with the label in bold:
**Overall assessment**, **Story**, **Performances**, **Direction**, **Reception**.
Base the summary on the provided snippets; if they say little, keep the section short rather than inventing details."""


async def generate_review_summary(
    title: str,
    media_type: str,
    research: Optional[WebSearchResult],
    toolkit: AgentToolkit,
) -> str:
    """
    Summarize reviews for a title with the review LLM.

    Args:
        title: Resolved title
        media_type: movie or tv
        research: Review search results used to seed the prompt
        toolkit: Agent providers

    Returns:
        Review summary text, or the "No reviews available" placeholder
    """
    provider = toolkit.llm.pick_provider(toolkit.settings.REVIEW_PROVIDER)
    if provider is None:
        logger.info("No review LLM configured; skipping review summary")
        return NO_REVIEWS

    snippets = format_results_for_agent(research) if research is not None else "No web results found."
    prompt = (
        f'Summarize the critical reception of the {media_label(media_type)} "{title}".\n\n'
        f"== REVIEW SNIPPETS ==\n{snippets}\n====================="
    )
    try:
        summary = await toolkit.llm.complete(
            prompt,
            provider=provider,
            system=REVIEW_SYSTEM_PROMPT,
            temperature=0.3,
            max_tokens=600,
        )
    except (LLMProviderError, MissingCredentialError) as e:
        logger.warning(f"Review summary generation failed for '{title}': {e}")
        return NO_REVIEWS

    summary = (summary or "").strip()
    return summary or NO_REVIEWS
