"""Tests for filtering, sorting and truncation"""

import random

import pytest

from playlist_creator.models.video_models import FilterSortConfig, VideoOrder
from playlist_creator.services.video_ranker import (
    extract_year, filter_by_keyword, passes_duration_filters,
    rank_videos, sort_videos, truncate
)


@pytest.fixture
def mixed_videos(make_video):
    return [
        make_video("v1", 30, "Quick tip", published_at="2024-03-01T00:00:00Z"),
        make_video("v2", 300, "Highlights 2019", "season recap", "2023-01-01T00:00:00Z"),
        make_video("v3", 3700, "Full match", "Derby LIVE replay", "2024-05-01T00:00:00Z"),
        make_video("v4", 900, "Highlights", published_at="2022-06-01T00:00:00Z"),
        make_video("v5", 120, "Classic 1998 final", published_at="2021-01-01T00:00:00Z"),
    ]


class TestDurationFilters:
    """Test Shorts and minimum-duration exclusions"""

    def test_shorts_excluded_by_default(self, make_video):
        config = FilterSortConfig()
        assert not passes_duration_filters(make_video("a", 60), config)
        assert passes_duration_filters(make_video("b", 61), config)

    def test_shorts_included_when_requested(self, make_video):
        config = FilterSortConfig(include_shorts=True)
        assert passes_duration_filters(make_video("a", 10), config)

    def test_min_duration_excludes_strictly_shorter(self, make_video):
        config = FilterSortConfig(min_duration_minutes=5)
        assert not passes_duration_filters(make_video("a", 299), config)
        assert passes_duration_filters(make_video("b", 300), config)

    def test_shorts_flag_wins_over_min_duration(self, make_video):
        config = FilterSortConfig(min_duration_minutes=0.5)
        assert not passes_duration_filters(make_video("a", 45), config)


class TestKeywordFilter:
    """Test keyword matching"""

    def test_matches_title_or_description_case_insensitively(self, mixed_videos):
        assert [v.id for v in filter_by_keyword(mixed_videos, "live")] == ["v3"]
        assert [v.id for v in filter_by_keyword(mixed_videos, "HIGHLIGHTS")] == ["v2", "v4"]
        assert [v.id for v in filter_by_keyword(mixed_videos, "recap")] == ["v2"]

    def test_plain_substring_not_word_or_regex(self, mixed_videos):
        assert [v.id for v in filter_by_keyword(mixed_videos, "ighl")] == ["v2", "v4"]
        assert filter_by_keyword(mixed_videos, "Highlights.*") == []

    def test_empty_keyword_keeps_everything(self, mixed_videos):
        assert filter_by_keyword(mixed_videos, None) == mixed_videos
        assert filter_by_keyword(mixed_videos, "") == mixed_videos

    def test_idempotent(self, mixed_videos):
        once = filter_by_keyword(mixed_videos, "highlights")
        assert filter_by_keyword(once, "highlights") == once


class TestExtractYear:
    """Test year extraction from titles"""

    @pytest.mark.parametrize("title, expected", [
        ("Highlights 2019", 2019),
        ("1998 vs 2005", 1998),
        ("Top 10 of 2024!", 2024),
        ("Highlights", None),
        ("Episode 12019", None),
        ("Year 2100", None),
        ("Room 1850", None),
    ])
    def test_extract(self, title, expected):
        assert extract_year(title) == expected


class TestSortVideos:
    """Test every sort order"""

    def test_newest_and_oldest(self, mixed_videos):
        newest = [v.id for v in sort_videos(mixed_videos, VideoOrder.NEWEST_FIRST)]
        assert newest == ["v3", "v1", "v2", "v4", "v5"]
        oldest = [v.id for v in sort_videos(mixed_videos, VideoOrder.OLDEST_FIRST)]
        assert oldest == list(reversed(newest))

    def test_year_ascending_puts_missing_years_last(self, mixed_videos):
        ordered = [v.id for v in sort_videos(mixed_videos, VideoOrder.YEAR_IN_TITLE_ASC)]
        assert ordered[:2] == ["v5", "v2"]
        assert set(ordered[2:]) == {"v1", "v3", "v4"}

    def test_year_descending_puts_missing_years_last(self, mixed_videos):
        ordered = [v.id for v in sort_videos(mixed_videos, VideoOrder.YEAR_IN_TITLE_DESC)]
        assert ordered[:2] == ["v2", "v5"]
        assert set(ordered[2:]) == {"v1", "v3", "v4"}

    def test_duration_orders(self, mixed_videos):
        longest = [v.id for v in sort_videos(mixed_videos, VideoOrder.DURATION_DESC)]
        assert longest == ["v3", "v4", "v2", "v5", "v1"]
        shortest = [v.id for v in sort_videos(mixed_videos, VideoOrder.DURATION_ASC)]
        assert shortest == ["v1", "v5", "v2", "v4", "v3"]

    @pytest.mark.parametrize("order", [o for o in VideoOrder if o is not VideoOrder.RANDOM])
    def test_non_random_orders_are_deterministic(self, mixed_videos, order):
        first = sort_videos(mixed_videos, order)
        for _ in range(3):
            assert sort_videos(list(mixed_videos), order) == first

    def test_random_preserves_membership(self, mixed_videos):
        shuffled = sort_videos(mixed_videos, VideoOrder.RANDOM, rng=random.Random(7))
        assert len(shuffled) == len(mixed_videos)
        assert sorted(v.id for v in shuffled) == sorted(v.id for v in mixed_videos)

    def test_input_not_mutated(self, mixed_videos):
        before = list(mixed_videos)
        sort_videos(mixed_videos, VideoOrder.DURATION_ASC)
        sort_videos(mixed_videos, VideoOrder.RANDOM)
        assert mixed_videos == before


class TestTruncateAndRank:
    """Test the cap and the full ranking pass"""

    def test_truncate_is_a_cap(self, mixed_videos):
        assert len(truncate(mixed_videos, 2)) == 2
        assert truncate(mixed_videos, 50) == mixed_videos

    def test_rank_videos_applies_all_steps(self, mixed_videos):
        config = FilterSortConfig(
            order=VideoOrder.DURATION_DESC,
            keyword="highlights",
            max_results=1
        )
        assert [v.id for v in rank_videos(mixed_videos, config)] == ["v4"]

    def test_rank_videos_excludes_shorts(self, mixed_videos):
        ranked = rank_videos(mixed_videos, FilterSortConfig())
        assert "v1" not in [v.id for v in ranked]
        assert len(ranked) == 4

    @pytest.mark.parametrize("max_results", [1, 3, 4, 10])
    def test_output_length(self, mixed_videos, max_results):
        ranked = rank_videos(mixed_videos, FilterSortConfig(max_results=max_results))
        assert len(ranked) == min(4, max_results)
