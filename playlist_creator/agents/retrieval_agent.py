"""Retrieval agent running the channel video pipeline end to end"""

import logging
import random
from datetime import datetime
from typing import Any, Dict, Optional

from ..clients.youtube_client import YouTubeClient
from ..core.exceptions import InvalidInputError
from ..core.logging import log_performance
from ..core.settings import Settings, get_settings
from ..models.video_models import ChannelRef, FilterSortConfig, PipelineResult
from ..services.video_ranker import rank_videos

# Setup logging
logger = logging.getLogger(__name__)


class RetrievalAgent:
    """
    Runs the retrieval and ranking pipeline for one channel:

    1. resolve the channel (search by name, or trust the given ID)
    2. look up its uploads playlist
    3. page through the playlist for every video ID
    4. fetch details in chunks, dropping Shorts / too-short videos
    5. keyword filter, sort and truncate

    Each run is independent. A failure at any stage aborts the run and
    nothing partial is returned. Cancelling the awaiting task stops the
    run at the next API call.
    """

    def __init__(
        self,
        youtube_client: Optional[YouTubeClient] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize retrieval agent.

        Args:
            youtube_client: YouTube API client (if None, created on first use)
            settings: Configuration handed to a client created here
            rng: Random source for the RANDOM order (tests pass a seeded one)
        """
        self.agent_name = "RetrievalAgent"
        self.settings = settings or get_settings()
        self.youtube_client = youtube_client
        self._owns_client = youtube_client is None
        self.rng = rng

        self.run_stats = self._empty_stats()
        logger.info(f"[{self.agent_name}] Agent initialized")

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "runs": 0,
            "videos_returned": 0,
            "api_calls_made": 0,
            "quota_used": 0,
            "last_run": None
        }

    def _client(self) -> YouTubeClient:
        if self.youtube_client is None:
            self.youtube_client = YouTubeClient(settings=self.settings)
        return self.youtube_client

    async def resolve_channel(self, channel_name: str) -> ChannelRef:
        """Find the first channel matching ``channel_name``."""
        logger.info(f"[{self.agent_name}] Searching channel '{channel_name}'")
        return await self._client().search_channel(channel_name)

    @log_performance("channel_pipeline")
    async def run(
        self,
        config: FilterSortConfig,
        channel_id: Optional[str] = None,
        channel_name: Optional[str] = None
    ) -> PipelineResult:
        """
        Retrieve and rank a channel's videos.

        Args:
            config: Filter and sort parameters for this run
            channel_id: Channel ID, used as-is without a search
            channel_name: Channel name to search when no ID is given

        Returns:
            PipelineResult with at most ``config.max_results`` videos

        Raises:
            InvalidInputError: Neither or both channel arguments given
            NotFoundError / MalformedResponseError / UpstreamError: from the API stages
        """
        has_id = bool(channel_id and channel_id.strip())
        has_name = bool(channel_name and channel_name.strip())
        if has_id == has_name:
            raise InvalidInputError("Provide exactly one of channel ID or channel name")

        client = self._client()
        calls_before = client.request_count

        if has_id:
            channel = ChannelRef(id=channel_id.strip())
        else:
            channel = await self.resolve_channel(channel_name)

        logger.info(f"[{self.agent_name}] Fetching videos for channel {channel.id}")
        uploads_playlist_id = await client.get_uploads_playlist_id(channel.id)

        video_ids = await client.list_playlist_video_ids(uploads_playlist_id)
        if not video_ids:
            logger.info(f"[{self.agent_name}] Channel {channel.id} has no uploads")

        details = await client.get_video_details(video_ids, config)
        logger.info(
            f"[{self.agent_name}] {len(details)}/{len(video_ids)} videos passed the duration filters"
        )

        videos = rank_videos(details, config, rng=self.rng)

        self.run_stats["runs"] += 1
        self.run_stats["videos_returned"] = len(videos)
        self.run_stats["api_calls_made"] += client.request_count - calls_before
        self.run_stats["quota_used"] = client.get_quota_usage()
        self.run_stats["last_run"] = datetime.now()

        logger.info(f"[{self.agent_name}] Returning {len(videos)} videos ordered by {config.order.value}")
        return PipelineResult(
            channel=channel,
            videos=videos,
            total_video_ids=len(video_ids),
            fetched_details=len(details)
        )

    def get_run_stats(self) -> Dict[str, Any]:
        """Statistics accumulated across runs of this agent"""
        stats = self.run_stats.copy()
        if self.youtube_client:
            stats["current_quota_usage"] = self.youtube_client.get_quota_usage()
        return stats

    def reset_stats(self) -> None:
        self.run_stats = self._empty_stats()
        if self.youtube_client:
            self.youtube_client.reset_quota_tracking()
        logger.info(f"[{self.agent_name}] Statistics reset")

    async def __aenter__(self):
        self._client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_client and self.youtube_client is not None:
            await self.youtube_client.aclose()


# Factory function for easy instantiation
def create_retrieval_agent(
    youtube_client: Optional[YouTubeClient] = None,
    settings: Optional[Settings] = None
) -> RetrievalAgent:
    """
    Factory function to create retrieval agent.

    Args:
        youtube_client: Optional YouTube client for dependency injection
        settings: Optional explicit configuration

    Returns:
        Configured retrieval agent
    """
    return RetrievalAgent(youtube_client=youtube_client, settings=settings)
