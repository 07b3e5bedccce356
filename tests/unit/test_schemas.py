"""Tests for output models, rating coercion and search hints."""
from datetime import date

import pytest
from pydantic import ValidationError

from app.agent.specific_agent import split_title_year
from app.core.hints import missing_query_hints, no_match_hints, no_results_hints, title_suggestions
from app.models.schemas import NormalizedItem, coerce_rating


@pytest.mark.parametrize(
    "value, expected",
    [
        (7.84, 7.8),
        ("8/10", 8.0),
        ("78/100", 7.8),
        ("4.5/5", 9.0),
        ("N/A", None),
        (0, None),
        (11, None),
        (None, None),
        (True, None),
    ],
)
def test_coerce_rating(value, expected):
    assert coerce_rating(value) == expected


class TestNormalizedItem:

    def test_title_required(self):
        with pytest.raises(ValidationError):
            NormalizedItem(title="")

    def test_lists_are_joined(self):
        item = NormalizedItem(title="Jawan", genre=["Action", "Thriller"], platform=["Netflix"], cast="A, B")
        assert item.genre == "Action, Thriller"
        assert item.platform == "Netflix"
        assert item.cast == ["A", "B"]

    def test_defaults(self):
        item = NormalizedItem(title="Jawan", sources=None)
        assert item.type == "movie"
        assert item.sources == []
        assert item.rating is None


class TestHints:

    def test_no_match_hints(self):
        hints = no_match_hints("Jwan", "movie")
        assert hints.found_results is True
        assert hints.found_match is False
        assert any("type=tv" in suggestion for suggestion in hints.suggestions)

    def test_year_suggestion_only_without_year(self):
        with_year = title_suggestions("Jawan 2023")
        without_year = title_suggestions("Jawan")
        assert not any("release year" in s for s in with_year)
        assert any(str(date.today().year) in s for s in without_year)

    def test_short_title_suggestion(self):
        assert any("too short" in s for s in title_suggestions("Ra", "tv"))

    def test_no_results_hints(self):
        hints = no_results_hints()
        assert hints.found_results is False
        assert hints.suggestions

    def test_missing_query_hints(self):
        assert missing_query_hints().found_results is False


class TestSplitTitleYear:

    def test_trailing_year(self):
        assert split_title_year("Stree 2 (2024)") == ("Stree 2", 2024)
        assert split_title_year("Jawan 2023") == ("Jawan", 2023)

    def test_title_without_year(self):
        assert split_title_year("  Stree   2 ") == ("Stree 2", None)

    def test_numeric_title_is_kept(self):
        assert split_title_year("Blade Runner 2049") == ("Blade Runner 2049", None)
        assert split_title_year("1917") == ("1917", None)
