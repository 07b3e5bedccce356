"""Tests for record fusion, deduplication and pagination."""
import pytest

from app.core.fusion import (
    FIELD_PRECEDENCE,
    dedupe_by_title,
    fuse_item,
    is_empty,
    merge_records,
    paginate,
)
from app.models.schemas import NormalizedItem, QueryKind


class TestMergeRecords:
    """Tests for field-level precedence."""

    def test_first_non_empty_source_wins(self):
        partials = [
            ("llm", {"title": "Jawan", "description": "Model text", "rating": 9.0}),
            ("omdb", {"title": "Jawan", "description": "", "rating": "7.0"}),
            ("tmdb", {"title": "Jawan", "description": None, "rating": None}),
        ]
        merged = merge_records(partials, FIELD_PRECEDENCE[QueryKind.SPECIFIC])
        assert merged["description"] == "Model text"
        assert merged["rating"] == "7.0"

    def test_unlisted_field_uses_default_order(self):
        precedence = {"_default": ("b", "a")}
        merged = merge_records([("a", {"genre": "Drama"}), ("b", {"genre": "Action"})], precedence, fields=("genre",))
        assert merged == {"genre": "Action"}

    def test_sources_are_unioned_in_order(self):
        partials = [
            ("tmdb", {"sources": ["https://a"]}),
            ("search", {"sources": ["https://b", "https://a"]}),
        ]
        merged = merge_records(partials, FIELD_PRECEDENCE[QueryKind.SPECIFIC])
        assert merged["sources"] == ["https://a", "https://b"]

    def test_missing_everywhere_is_none(self):
        merged = merge_records([("tmdb", {"title": "Jawan"})], FIELD_PRECEDENCE[QueryKind.SPECIFIC])
        assert merged["director"] is None


class TestFuseItem:

    def test_provider_rating_beats_model_rating(self):
        partials = [
            ("llm", {"title": "Panchayat", "rating": 9.5, "platform": "Prime Video"}),
            ("tmdb", {"title": "Panchayat", "rating": 8.9}),
        ]
        item = fuse_item(partials, QueryKind.LIST)
        assert isinstance(item, NormalizedItem)
        assert item.rating == 8.9
        assert item.platform == "Prime Video"

    def test_list_keeps_model_title(self):
        partials = [
            ("llm", {"title": "Kota Factory"}),
            ("tmdb", {"title": "Kota Factory: Season 3"}),
        ]
        assert fuse_item(partials, QueryKind.LIST).title == "Kota Factory"

    def test_overrides_fill_only_missing_fields(self):
        partials = [("tmdb", {"title": "Jawan", "description": "A man sets out to right wrongs."})]
        item = fuse_item(
            partials,
            QueryKind.SPECIFIC,
            overrides={"description": "Description not available", "reviews_summary": "No reviews available"},
        )
        assert item.description == "A man sets out to right wrongs."
        assert item.reviews_summary == "No reviews available"

    def test_no_title_gives_none(self):
        assert fuse_item([("omdb", {"rating": "7.1"})], QueryKind.SPECIFIC) is None

    def test_rating_is_normalized(self):
        item = fuse_item([("omdb", {"title": "Jawan", "rating": "70/100"})], QueryKind.SPECIFIC)
        assert item.rating == 7.0


class TestDedupeAndPaginate:

    def test_dedupe_is_case_insensitive(self):
        records = [{"title": "Heeramandi"}, {"title": "HEERAMANDI "}, {"title": "Panchayat"}, {"title": ""}]
        assert [r["title"] for r in dedupe_by_title(records)] == ["Heeramandi", "Panchayat"]

    def test_dedupe_accepts_items(self):
        items = [NormalizedItem(title="Jawan"), NormalizedItem(title="jawan")]
        assert len(dedupe_by_title(items)) == 1

    def test_paginate_is_contiguous(self):
        items = list(range(23))
        pages = [paginate(items, page, 5) for page in range(1, 6)]
        assert pages[0] == [0, 1, 2, 3, 4]
        assert pages[4] == [20, 21, 22]
        assert sum(pages, []) == items

    def test_paginate_past_end_is_empty(self):
        assert paginate([1, 2, 3], 3, 2) == []

    def test_paginate_rejects_non_positive(self):
        with pytest.raises(ValueError):
            paginate([1, 2], 0, 10)

    def test_is_empty(self):
        assert is_empty(None)
        assert is_empty("  ")
        assert is_empty([])
        assert not is_empty(0)
