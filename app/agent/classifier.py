"""
Query classification: does the user want one title or a list?
"""
import logging
import re
from typing import Optional, Pattern, Sequence, Tuple

from app.core.exceptions import LLMProviderError, MissingCredentialError
from app.core.llm import LLMClient
from app.models.schemas import QueryKind

logger = logging.getLogger(__name__)

PLATFORM_NAMES: Tuple[str, ...] = (
    "netflix",
    "prime video",
    "amazon prime",
    "hotstar",
    "disney+",
    "disney plus",
    "jiocinema",
    "jio cinema",
    "sonyliv",
    "sony liv",
    "zee5",
    "aha",
    "mx player",
    "apple tv",
    "hulu",
    "hbo",
    "ott",
)

LIST_KEYWORDS: Tuple[str, ...] = (
    "top",
    "best",
    "this week",
    "this month",
    "this weekend",
    "recommend",
    "recommendation",
    "recommendations",
    "suggest",
    "suggestions",
    "list of",
    "latest",
    "new releases",
    "trending",
    "upcoming",
    "popular",
    "movies like",
    "shows like",
    "similar to",
    "to watch",
)

QUESTION_WORDS: Tuple[str, ...] = (
    "what",
    "which",
    "who",
    "when",
    "where",
    "why",
    "how",
    "any",
    "should",
    "can",
    "is",
    "are",
)

CLASSIFIER_SYSTEM_PROMPT = (
    "You classify search queries for a movie and OTT show discovery app. "
    "Answer with exactly one word: LIST if the user wants several titles or "
    "recommendations, SPECIFIC if the user is asking about one particular title."
)


def _compile(terms: Sequence[str]) -> Pattern[str]:
    alternatives = "|".join(re.escape(term) for term in sorted(terms, key=len, reverse=True))
    return re.compile(rf"(?<![\w+])(?:{alternatives})(?![\w+])", re.IGNORECASE)


_PLATFORM_RE = _compile(PLATFORM_NAMES)
_LIST_RE = _compile(LIST_KEYWORDS)
_QUESTION_RE = _compile(QUESTION_WORDS)


def keyword_rule(query: str) -> Optional[QueryKind]:
    """Return LIST when a platform name or list keyword appears in the query."""
    if _PLATFORM_RE.search(query) or _LIST_RE.search(query):
        return QueryKind.LIST
    return None


def short_query_rule(query: str, max_words: int) -> Optional[QueryKind]:
    """Return SPECIFIC for short queries without question words."""
    words = query.split()
    if 0 < len(words) <= max_words and "?" not in query and not _QUESTION_RE.search(query):
        return QueryKind.SPECIFIC
    return None


def fallback_rule(query: str) -> QueryKind:
    if _PLATFORM_RE.search(query) or _QUESTION_RE.search(query) or "?" in query:
        return QueryKind.LIST
    return QueryKind.SPECIFIC


def parse_model_label(reply: str) -> Optional[QueryKind]:
    tokens = re.findall(r"[A-Za-z]+", reply or "")
    if not tokens:
        return None
    first = tokens[0].upper()
    if first in QueryKind.__members__:
        return QueryKind[first]
    return None


async def classify_query(
    query: str,
    llm: Optional[LLMClient] = None,
    provider: str = "gemini",
    short_query_max_words: int = 5,
) -> QueryKind:
    """
    Classify a free-text query as LIST or SPECIFIC.

    Keyword rules and the short-query rule answer without a model call; the
    model is consulted only for what they leave open, and any model problem
    falls back to a permissive heuristic.

    Args:
        query: User query
        llm: LLM client used for the model fallback
        provider: Preferred LLM provider for classification
        short_query_max_words: Word limit for the short-query rule

    Returns:
        QueryKind
    """
    text = " ".join((query or "").split())

    kind = keyword_rule(text)
    if kind is not None:
        logger.info(f"Classified '{text}' as {kind.value} (keyword rule)")
        return kind

    kind = short_query_rule(text, short_query_max_words)
    if kind is not None:
        logger.info(f"Classified '{text}' as {kind.value} (short query rule)")
        return kind

    chosen = llm.pick_provider(provider) if llm is not None else None
    if chosen is not None:
        try:
            reply = await llm.complete(
                f"Query: {text}\nAnswer LIST or SPECIFIC.",
                provider=chosen,
                system=CLASSIFIER_SYSTEM_PROMPT,
                temperature=0.0,
                max_tokens=5,
            )
            kind = parse_model_label(reply)
            if kind is not None:
                logger.info(f"Classified '{text}' as {kind.value} (model)")
                return kind
            logger.warning(f"Ambiguous classifier reply: {reply!r}")
        except (LLMProviderError, MissingCredentialError) as e:
            logger.warning(f"Classifier model failed: {e}")

    kind = fallback_rule(text)
    logger.info(f"Classified '{text}' as {kind.value} (fallback heuristic)")
    return kind
