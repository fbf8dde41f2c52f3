"""YouTube Data API client for channel, playlist and video lookups"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.durations import parse_iso_duration
from ..core.exceptions import (
    ChannelNotFoundError, InvalidAPIKeyError, InvalidInputError,
    MalformedResponseError, QuotaExceededError, UpstreamError
)
from ..core.settings import Settings, get_settings
from ..models.video_models import ChannelRef, FilterSortConfig, VideoSummary
from ..services.video_ranker import passes_duration_filters

# Setup logging
logger = logging.getLogger(__name__)

# Hard API limit for playlistItems page size and videos?id= batch size
MAX_IDS_PER_REQUEST = 50

# Quota cost per endpoint call, in API units
SEARCH_QUOTA_COST = 100
LIST_QUOTA_COST = 1

KEY_ERROR_REASONS = {"keyInvalid", "keyExpired", "API_KEY_INVALID", "API_KEY_EXPIRED"}
QUOTA_ERROR_REASONS = {
    "quotaExceeded", "dailyLimitExceeded", "rateLimitExceeded",
    "userRateLimitExceeded", "RATE_LIMIT_EXCEEDED"
}


def chunked(items: List[str], size: int) -> List[List[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def classify_error_response(response: Any) -> UpstreamError:
    """
    Map a non-success API response onto the upstream error hierarchy.

    The status code and the ``error.errors[].reason`` / ``error.details[].reason``
    fields decide first. The message text is only inspected when the body
    carries no reason at all.
    """
    status = response.status_code

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    error = payload.get("error", {}) if isinstance(payload, dict) else {}
    if not isinstance(error, dict):
        error = {"message": str(error)}

    reasons = [
        entry.get("reason")
        for entry in list(error.get("errors") or []) + list(error.get("details") or [])
        if isinstance(entry, dict) and entry.get("reason")
    ]
    reason = reasons[0] if reasons else None

    message = error.get("message")
    if not message:
        text = getattr(response, "text", "")
        message = text if isinstance(text, str) and text else f"HTTP {status}"

    if status == 401 or KEY_ERROR_REASONS.intersection(reasons):
        return InvalidAPIKeyError(f"YouTube API key rejected: {message}", status, reason)
    if status == 429 or QUOTA_ERROR_REASONS.intersection(reasons):
        return QuotaExceededError("YouTube API quota exceeded", status, reason)

    if not reasons:
        lowered = message.lower()
        if "missing" in lowered or "invalid" in lowered or "api key" in lowered:
            return InvalidAPIKeyError(f"YouTube API key rejected: {message}", status)
        if "quota" in lowered:
            return QuotaExceededError("YouTube API quota exceeded", status)

    return UpstreamError(f"YouTube API error {status}: {message}", status, reason)


class YouTubeClient:
    """
    Async client for the four YouTube Data API v3 endpoints the pipeline uses:
    channel search, channel lookup, playlist items and video details.

    Every failure is raised immediately; nothing is retried.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize YouTube API client.

        Args:
            api_key: YouTube Data API key (if None, taken from settings)
            settings: Explicit configuration (if None, loads from environment)
            http_client: Pre-built transport; the client only closes one it created
        """
        self.settings = settings or get_settings()
        self.api_key = api_key if api_key is not None else self.settings.youtube_api_key

        if not self.api_key or not self.api_key.strip():
            raise InvalidInputError("YouTube API key is required")

        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(
            limits=httpx.Limits(
                max_connections=10,
                max_keepalive_connections=5
            ),
            timeout=self.settings.request_timeout
        )

        self.base_url = self.settings.youtube_api_base_url.rstrip("/")
        self.quota_used = 0
        self.request_count = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _get(self, endpoint: str, params: Dict[str, Any], quota_cost: int) -> Dict[str, Any]:
        """Issue one GET and return the decoded JSON object."""
        request_params = dict(params, key=self.api_key)

        try:
            response = await self.client.get(f"{self.base_url}/{endpoint}", params=request_params)
        except httpx.HTTPStatusError as e:
            raise classify_error_response(e.response) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Network error: {e}") from e

        self.request_count += 1

        if response.status_code >= 400:
            error = classify_error_response(response)
            logger.warning(f"{endpoint} request failed: {error}")
            raise error

        self.quota_used += quota_cost
        logger.debug(f"Quota used: {self.quota_used} after {endpoint}")

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{endpoint} returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"{endpoint} returned {type(data).__name__}, expected an object")
        return data

    async def search_channels(self, name: str, max_results: int = 5) -> List[ChannelRef]:
        """
        Search channels by free-text name.

        Returns:
            Matching channels in the order the API ranked them
        """
        if not name or not name.strip():
            raise InvalidInputError("Channel name is required")

        # Quota Cost: 100
        data = await self._get("search", {
            "part": "snippet",
            "q": name.strip(),
            "type": "channel",
            "maxResults": min(max_results, MAX_IDS_PER_REQUEST),
        }, SEARCH_QUOTA_COST)

        channels = []
        for item in data.get("items", []):
            channel_id = (item.get("id") or {}).get("channelId") or (item.get("snippet") or {}).get("channelId")
            if not channel_id:
                logger.warning("Skipping search result without a channel ID")
                continue
            title = (item.get("snippet") or {}).get("title", "")
            channels.append(ChannelRef(id=channel_id, display_name=title))
        return channels

    async def search_channel(self, name: str) -> ChannelRef:
        """
        Resolve a channel name to the first matching channel.

        Raises:
            InvalidInputError: Blank name
            ChannelNotFoundError: The search returned no channels
        """
        channels = await self.search_channels(name, max_results=1)
        if not channels:
            raise ChannelNotFoundError(f"No channel found with name '{name.strip()}'")

        logger.info(f"Resolved channel '{name.strip()}' to {channels[0].id} ({channels[0].display_name})")
        return channels[0]

    async def get_uploads_playlist_id(self, channel_id: str) -> str:
        """
        Look up the ID of the channel's implicit uploads playlist.

        Raises:
            ChannelNotFoundError: No channel with this ID
            MalformedResponseError: The channel record lacks an uploads playlist
        """
        if not channel_id or not channel_id.strip():
            raise InvalidInputError("Channel ID is required")

        data = await self._get("channels", {
            "part": "contentDetails",
            "id": channel_id.strip(),
        }, LIST_QUOTA_COST)

        items = data.get("items") or []
        if not items:
            raise ChannelNotFoundError(f"No channel found with ID '{channel_id}'")

        uploads = (
            ((items[0].get("contentDetails") or {}).get("relatedPlaylists") or {}).get("uploads")
        )
        if not uploads:
            raise MalformedResponseError(f"Could not find uploads playlist for channel '{channel_id}'")
        return uploads

    async def list_playlist_video_ids(self, playlist_id: str) -> List[str]:
        """
        Collect every video ID in a playlist by following page tokens.

        IDs keep their page-then-position order. An empty playlist yields
        an empty list.
        """
        video_ids: List[str] = []
        page_token: Optional[str] = None
        pages = 0

        while True:
            params = {
                "part": "contentDetails",
                "playlistId": playlist_id,
                "maxResults": MAX_IDS_PER_REQUEST,
            }
            if page_token:
                params["pageToken"] = page_token

            data = await self._get("playlistItems", params, LIST_QUOTA_COST)
            pages += 1

            for item in data.get("items", []):
                video_id = (item.get("contentDetails") or {}).get("videoId")
                if video_id:
                    video_ids.append(video_id)
                else:
                    logger.warning(f"Skipping playlist item without a video ID in {playlist_id}")

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Collected {len(video_ids)} video IDs from {playlist_id} in {pages} page(s)")
        return video_ids

    async def get_video_details(
        self,
        video_ids: List[str],
        config: Optional[FilterSortConfig] = None
    ) -> List[VideoSummary]:
        """
        Fetch video details in chunks of 50 IDs.

        Args:
            video_ids: Video IDs in the order results should keep
            config: When given, the Shorts and minimum-duration exclusions
                are applied as each chunk arrives

        Returns:
            Video summaries, chunk by chunk in input order

        Raises:
            UpstreamError: Any chunk failed; results of other chunks are discarded
        """
        if not video_ids:
            return []

        chunks = chunked(video_ids, MAX_IDS_PER_REQUEST)
        concurrency = self.settings.detail_fetch_concurrency
        logger.debug(f"Getting details for {len(video_ids)} videos in {len(chunks)} chunk(s)")

        if concurrency <= 1 or len(chunks) == 1:
            results = []
            for chunk in chunks:
                results.append(await self._fetch_detail_chunk(chunk, config))
        else:
            semaphore = asyncio.Semaphore(concurrency)

            async def bounded(chunk: List[str]) -> List[VideoSummary]:
                async with semaphore:
                    return await self._fetch_detail_chunk(chunk, config)

            tasks = [asyncio.ensure_future(bounded(chunk)) for chunk in chunks]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise

        return [video for chunk_result in results for video in chunk_result]

    async def _fetch_detail_chunk(
        self,
        chunk: List[str],
        config: Optional[FilterSortConfig]
    ) -> List[VideoSummary]:
        # Quota Cost: 1
        data = await self._get("videos", {
            "part": "contentDetails,snippet",
            "id": ",".join(chunk),
        }, LIST_QUOTA_COST)

        videos = []
        for item in data.get("items", []):
            video = self._parse_video_item(item)
            if video is None:
                continue
            if config is not None and not passes_duration_filters(video, config):
                continue
            videos.append(video)
        return videos

    def _parse_video_item(self, item: Dict[str, Any]) -> Optional[VideoSummary]:
        """Parse a videos.list item; returns None for records without an ID"""
        video_id = item.get("id")
        if not video_id:
            logger.warning("Skipping video record without an ID")
            return None

        snippet = item.get("snippet") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumbnail_url = (
            (thumbnails.get("medium") or {}).get("url") or
            (thumbnails.get("default") or {}).get("url")
        )
        raw_duration = (item.get("contentDetails") or {}).get("duration")

        return VideoSummary(
            id=video_id,
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            duration_seconds=parse_iso_duration(raw_duration),
            published_at=snippet.get("publishedAt", ""),
            thumbnail_url=thumbnail_url,
            raw_duration=raw_duration
        )

    def get_quota_usage(self) -> int:
        """Get current quota usage for this session"""
        return self.quota_used

    def reset_quota_tracking(self) -> None:
        """Reset quota tracking (call at start of new day)"""
        self.quota_used = 0
        self.request_count = 0
        logger.info("Quota tracking reset")
