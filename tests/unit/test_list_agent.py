"""Tests for the LIST and weekly paths."""
import asyncio

import pytest

from app.agent.list_agent import resolve_list, resolve_weekly
from app.agent.review_agent import NO_REVIEWS, REVIEW_SYSTEM_PROMPT
from app.core.exceptions import LLMProviderError, MissingCredentialError
from app.core.fusion import title_key

from tests.conftest import calls_with, days_ago

KEYS = {"TMDB_API_KEY": "tmdb", "OMDB_API_KEY": "omdb", "SERPAPI_KEY": "serp", "PERPLEXITY_API_KEY": "pplx"}

MODEL_LIST = """```json
[{'title': 'Heeramandi', 'type': 'tv', 'platform': 'Netflix', 'rating': 6.5},
 {"title": "heeramandi", "platform": "Netflix"},
 {"title": "Panchayat", "type": "tv", "platform": "Prime Video", "rating": 9.5},
 {"title": "Kota Factory", "type": "tv", "description": "Students prepare for IIT entrance exams in Kota.", "platform": "Netflix"},]
```"""


@pytest.fixture
def ott_search(providers):
    providers.serp_results = [
        {"title": "Best Indian web series 2024", "link": "https://example.in/best-series", "snippet": "Heeramandi, Panchayat..."},
    ]
    providers.tmdb_search["panchayat"] = [{"id": 2, "name": "Panchayat", "vote_average": 8.9, "vote_count": 90, "genre_ids": [35, 18]}]
    providers.omdb["heeramandi"] = {"Response": "True", "Title": "Heeramandi: The Diamond Bazaar", "imdbRating": "6.1"}
    return providers


class TestResolveList:
    """Tests for resolve_list."""

    def test_titles_are_unique_and_enriched(self, build_state, ott_search):
        state = build_state(replies={"list": MODEL_LIST}, **KEYS)
        resolution = asyncio.run(resolve_list("best Indian web series", "tv", 1, 10, state.toolkit))

        titles = [item.title for item in resolution.items]
        assert titles == ["Heeramandi", "Panchayat", "Kota Factory"]
        assert len({title_key(title) for title in titles}) == len(titles)
        assert resolution.total == 3
        assert resolution.search_hints is None

        by_title = {item.title: item for item in resolution.items}
        # Provider ratings beat the model's
        assert by_title["Panchayat"].rating == 8.9
        assert by_title["Panchayat"].genre == "Comedy, Drama"
        assert by_title["Heeramandi"].rating == 6.1
        assert by_title["Kota Factory"].rating is None
        assert by_title["Kota Factory"].platform == "Netflix"
        assert by_title["Kota Factory"].description == "Students prepare for IIT entrance exams in Kota."
        assert all(item.type == "tv" for item in resolution.items)
        assert all(item.sources == ["https://example.in/best-series"] for item in resolution.items)
        assert all(item.reviews_summary == "**Overall assessment** Well received." for item in resolution.items)

    def test_pagination_is_a_contiguous_slice(self, build_state, ott_search):
        state = build_state(replies={"list": MODEL_LIST}, **KEYS)
        first = asyncio.run(resolve_list("best Indian web series", "tv", 1, 2, state.toolkit))
        # Only the requested page is summarized
        assert len(calls_with(state.llm, REVIEW_SYSTEM_PROMPT)) == 2
        second = asyncio.run(resolve_list("best Indian web series", "tv", 2, 2, state.toolkit))

        assert [item.title for item in first.items] == ["Heeramandi", "Panchayat"]
        assert [item.title for item in second.items] == ["Kota Factory"]
        assert first.total == second.total == 3

    def test_unparseable_model_reply(self, build_state, ott_search):
        state = build_state(replies={"list": "Sorry, I cannot help with that."}, **KEYS)
        resolution = asyncio.run(resolve_list("best Indian web series", "tv", 1, 10, state.toolkit))
        assert resolution.items == []
        assert resolution.search_hints.found_results is False

    def test_review_llm_failure_gives_placeholder(self, build_state, ott_search):
        replies = {"list": MODEL_LIST, "review": LLMProviderError("Perplexity API request failed")}
        state = build_state(replies=replies, **KEYS)
        resolution = asyncio.run(resolve_list("best Indian web series", "tv", 1, 10, state.toolkit))
        assert len(resolution.items) == 3
        assert all(item.reviews_summary == NO_REVIEWS for item in resolution.items)

    def test_no_search_results(self, build_state, providers):
        state = build_state(replies={"list": MODEL_LIST}, **KEYS)
        resolution = asyncio.run(resolve_list("best Indian web series", "tv", 1, 10, state.toolkit))
        assert resolution.items == []
        assert resolution.search_hints.found_results is False
        assert state.llm.calls == []

    def test_missing_extraction_llm(self, build_state, ott_search):
        state = build_state(TMDB_API_KEY="tmdb", SERPAPI_KEY="serp")
        with pytest.raises(MissingCredentialError) as exc_info:
            asyncio.run(resolve_list("best Indian web series", "tv", 1, 10, state.toolkit))
        assert exc_info.value.name == "PERPLEXITY_API_KEY"

    def test_missing_web_search(self, build_state):
        state = build_state(PERPLEXITY_API_KEY="pplx")
        with pytest.raises(MissingCredentialError) as exc_info:
            asyncio.run(resolve_list("best Indian web series", "tv", 1, 10, state.toolkit))
        assert exc_info.value.name == "TAVILY_API_KEY"

    def test_gemini_is_used_when_perplexity_is_missing(self, build_state, ott_search):
        state = build_state(replies={"list": MODEL_LIST}, TMDB_API_KEY="tmdb", SERPAPI_KEY="serp", GEMINI_API_KEY="g")
        resolution = asyncio.run(resolve_list("best Indian web series", "tv", 1, 10, state.toolkit))
        assert len(resolution.items) == 3
        assert state.llm.calls[0]["provider"] == "gemini"


class TestResolveWeekly:
    """Tests for resolve_weekly."""

    def test_tmdb_discovery(self, build_state, providers):
        providers.now_playing = [
            {"id": 1, "title": "Fresh Release", "release_date": days_ago(2), "vote_average": 7.2, "vote_count": 40, "genre_ids": [18], "overview": "A debut drama."},
            {"id": 2, "title": "Old Classic", "release_date": "1975-08-15", "vote_average": 8.2, "vote_count": 900},
        ]
        providers.trending = [
            {"id": 1, "title": "Fresh Release", "release_date": days_ago(2), "vote_average": 7.2, "vote_count": 40},
            {"id": 3, "title": "Weekend Opener", "release_date": days_ago(5), "vote_average": 6.4, "vote_count": 12},
        ]
        state = build_state(TMDB_API_KEY="tmdb")

        resolution = asyncio.run(resolve_weekly("movie", 1, 10, state.toolkit))
        assert [item.title for item in resolution.items] == ["Fresh Release", "Weekend Opener"]
        assert resolution.items[0].genre == "Drama"
        assert resolution.items[0].rating == 7.2
        assert resolution.items[0].sources == ["https://www.themoviedb.org/movie/1"]
        assert resolution.items[0].description == "A debut drama."
        # No review LLM configured
        assert all(item.reviews_summary == NO_REVIEWS for item in resolution.items)
        assert state.llm.calls == []

    def test_unfiltered_when_window_is_empty(self, build_state, providers):
        providers.now_playing = [{"id": 2, "title": "Old Classic", "release_date": "1975-08-15"}]
        state = build_state(TMDB_API_KEY="tmdb")
        resolution = asyncio.run(resolve_weekly("movie", 1, 10, state.toolkit))
        assert [item.title for item in resolution.items] == ["Old Classic"]

    def test_search_path_without_tmdb(self, build_state, ott_search):
        state = build_state(replies={"list": MODEL_LIST}, SERPAPI_KEY="serp", PERPLEXITY_API_KEY="pplx")
        resolution = asyncio.run(resolve_weekly("tv", 1, 10, state.toolkit))
        assert len(resolution.items) == 3
        assert "released in India this week" in state.llm.calls[0]["prompt"]

    def test_missing_every_source(self, build_state):
        state = build_state()
        with pytest.raises(MissingCredentialError) as exc_info:
            asyncio.run(resolve_weekly("movie", 1, 10, state.toolkit))
        assert exc_info.value.name == "TMDB_API_KEY"
