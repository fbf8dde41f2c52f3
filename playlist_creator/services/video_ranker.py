"""Client-side filtering, sorting and truncation of channel videos"""

import logging
import random
import re
from typing import Iterable, List, Optional

from ..models.video_models import FilterSortConfig, VideoOrder, VideoSummary

logger = logging.getLogger(__name__)

_YEAR_PATTERN = re.compile(r'\b(?:19|20)\d{2}\b')


def passes_duration_filters(video: VideoSummary, config: FilterSortConfig) -> bool:
    """Apply the Shorts and minimum-duration exclusions to one video."""
    if not config.include_shorts and video.is_short:
        return False
    if config.min_duration_minutes is not None:
        if video.duration_seconds < int(config.min_duration_minutes * 60):
            return False
    return True


def filter_by_keyword(videos: Iterable[VideoSummary], keyword: Optional[str]) -> List[VideoSummary]:
    """
    Keep videos whose title or description contains ``keyword``.

    Matching is a plain case-insensitive substring test. An empty keyword
    keeps everything.
    """
    if not keyword:
        return list(videos)

    needle = keyword.lower()
    return [
        video for video in videos
        if needle in video.title.lower() or needle in video.description.lower()
    ]


def extract_year(title: str) -> Optional[int]:
    """Return the first standalone 19xx/20xx year in ``title``, if any."""
    match = _YEAR_PATTERN.search(title)
    return int(match.group(0)) if match else None


def _year_key(missing: float):
    def key(video: VideoSummary) -> float:
        year = extract_year(video.title)
        return missing if year is None else year
    return key


def sort_videos(
    videos: Iterable[VideoSummary],
    order: VideoOrder,
    rng: Optional[random.Random] = None
) -> List[VideoSummary]:
    """
    Return a new list sorted by ``order``.

    Titles without a year go last in both year orders. Sorting is stable,
    so ties keep their input order. ``rng`` only affects ``RANDOM``.
    """
    result = list(videos)

    if order == VideoOrder.NEWEST_FIRST:
        result.sort(key=lambda v: v.published_at, reverse=True)
    elif order == VideoOrder.OLDEST_FIRST:
        result.sort(key=lambda v: v.published_at)
    elif order == VideoOrder.YEAR_IN_TITLE_ASC:
        result.sort(key=_year_key(float('inf')))
    elif order == VideoOrder.YEAR_IN_TITLE_DESC:
        result.sort(key=_year_key(float('-inf')), reverse=True)
    elif order == VideoOrder.DURATION_DESC:
        result.sort(key=lambda v: v.duration_seconds, reverse=True)
    elif order == VideoOrder.DURATION_ASC:
        result.sort(key=lambda v: v.duration_seconds)
    elif order == VideoOrder.RANDOM:
        (rng or random).shuffle(result)
    else:
        raise ValueError(f"Unsupported video order: {order}")

    return result


def truncate(videos: List[VideoSummary], max_results: int) -> List[VideoSummary]:
    return videos[:max_results]


def rank_videos(
    videos: Iterable[VideoSummary],
    config: FilterSortConfig,
    rng: Optional[random.Random] = None
) -> List[VideoSummary]:
    """
    Filter, sort and cap ``videos`` according to ``config``.

    The duration filters are applied again here so the function is
    correct on unfiltered input; on already-filtered input it is a no-op.
    """
    candidates = [video for video in videos if passes_duration_filters(video, config)]
    candidates = filter_by_keyword(candidates, config.keyword)
    ranked = sort_videos(candidates, config.order, rng=rng)
    final = truncate(ranked, config.max_results)

    logger.debug(
        f"Ranked {len(candidates)} videos by {config.order.value}, returning {len(final)}"
    )
    return final
