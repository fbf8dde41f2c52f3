"""Data models for channels, videos and ranking requests"""

import random
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.durations import format_duration, is_short

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
WATCH_VIDEOS_URL = "https://www.youtube.com/watch_videos?video_ids={video_ids}"

# Cool dark palette used when a saved channel has no explicit colour
CHANNEL_PALETTE = [
    "#4A148C", "#6A1B9A", "#7B1FA2", "#8E24AA", "#9C27B0", "#BA68C8",
    "#CE93D8", "#E1BEE7", "#2E3440", "#3B4252", "#434C5E", "#4C566A",
    "#88C0D0", "#81A1C1", "#5E81AC", "#A3BE8C", "#8FBCBB", "#D08770",
    "#EBCB8B", "#BF616A", "#B48EAD",
]


class VideoOrder(str, Enum):
    """Sort orders available for a channel's videos"""
    NEWEST_FIRST = "date"
    OLDEST_FIRST = "date_asc"
    YEAR_IN_TITLE_ASC = "year_in_title_asc"
    YEAR_IN_TITLE_DESC = "year_in_title_desc"
    DURATION_DESC = "duration_desc"
    DURATION_ASC = "duration_asc"
    RANDOM = "random"

    @property
    def display_name(self) -> str:
        return _ORDER_DISPLAY_NAMES[self]

    @classmethod
    def sorted_cases(cls) -> List["VideoOrder"]:
        """All orders with RANDOM moved to the end"""
        return [order for order in cls if order is not cls.RANDOM] + [cls.RANDOM]


_ORDER_DISPLAY_NAMES = {
    VideoOrder.NEWEST_FIRST: "Newest to Oldest",
    VideoOrder.OLDEST_FIRST: "Oldest to Newest",
    VideoOrder.YEAR_IN_TITLE_ASC: "Year in Title (Oldest to Newest)",
    VideoOrder.YEAR_IN_TITLE_DESC: "Year in Title (Newest to Oldest)",
    VideoOrder.DURATION_DESC: "Longest to Shortest",
    VideoOrder.DURATION_ASC: "Shortest to Longest",
    VideoOrder.RANDOM: "Random",
}


class ChannelRef(BaseModel):
    """A resolved YouTube channel"""
    id: str = Field(..., min_length=1, description="YouTube channel ID")
    display_name: str = Field("", description="Channel title, for labelling only")

    model_config = {"frozen": True}


class VideoSummary(BaseModel):
    """Metadata of one video needed for filtering, sorting and display"""
    id: str = Field(..., description="YouTube video ID")
    title: str = Field("", description="Video title")
    description: str = Field("", description="Video description")
    duration_seconds: int = Field(..., ge=0, description="Duration in whole seconds")
    published_at: str = Field(..., description="Publication time, ISO 8601 in UTC")
    thumbnail_url: Optional[str] = Field(None, description="Medium or default thumbnail URL")
    raw_duration: Optional[str] = Field(None, description="Duration as returned by the API")

    @property
    def is_short(self) -> bool:
        return is_short(self.duration_seconds)

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_seconds)

    @property
    def watch_url(self) -> str:
        return WATCH_URL.format(video_id=self.id)


class FilterSortConfig(BaseModel):
    """
    Filter and sort parameters for one pipeline run.

    ``min_duration_minutes`` excludes videos strictly shorter than the given
    number of minutes. Shorts (60 seconds or less) are excluded unless
    ``include_shorts`` is set, whatever the minimum duration.
    """
    order: VideoOrder = Field(VideoOrder.NEWEST_FIRST, description="Sort order")
    keyword: Optional[str] = Field(None, description="Case-insensitive title/description filter")
    min_duration_minutes: Optional[float] = Field(None, ge=0, description="Minimum length in minutes")
    include_shorts: bool = Field(False, description="Keep videos of 60 seconds or less")
    max_results: int = Field(50, ge=1, description="Cap on the number of videos returned")

    model_config = {"frozen": True}

    @field_validator('keyword')
    def blank_keyword_is_none(cls, v):
        if v is None or not v.strip():
            return None
        return v


class SavedChannel(BaseModel):
    """A channel bookmarked by the user"""
    id: str = Field(..., min_length=1, description="YouTube channel ID")
    name: str = Field(..., min_length=1, description="Display name chosen by the user")
    color_hex: str = Field(
        default_factory=lambda: random.choice(CHANNEL_PALETTE),
        pattern=r'^#[0-9A-Fa-f]{6}$',
        description="Badge colour"
    )
    position: int = Field(0, ge=0, description="Index in the saved list")

    def to_ref(self) -> ChannelRef:
        return ChannelRef(id=self.id, display_name=self.name)


class PipelineResult(BaseModel):
    """Outcome of one retrieval and ranking run"""
    channel: ChannelRef
    videos: List[VideoSummary] = Field(default_factory=list)
    total_video_ids: int = Field(0, description="IDs found in the uploads playlist")
    fetched_details: int = Field(0, description="Videos left after the duration filters")

    @property
    def video_ids(self) -> List[str]:
        return [video.id for video in self.videos]

    @property
    def playlist_url(self) -> Optional[str]:
        if not self.videos:
            return None
        return WATCH_VIDEOS_URL.format(video_ids=",".join(self.video_ids))
