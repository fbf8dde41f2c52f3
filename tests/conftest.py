"""Pytest configuration and shared fixtures"""

import pytest
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import Mock

from playlist_creator.clients.youtube_client import YouTubeClient
from playlist_creator.core.settings import Settings
from playlist_creator.models.video_models import VideoSummary


def json_response(data: Any, status_code: int = 200) -> Mock:
    """Mock httpx response returning ``data`` from ``json()``"""
    return Mock(status_code=status_code, json=lambda: data, text="")


def video_item(
    video_id: str,
    duration: Optional[str] = "PT5M",
    title: str = "Video",
    description: str = "",
    published_at: str = "2024-01-15T10:00:00Z",
    thumbnails: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """One item of a videos.list response"""
    if thumbnails is None:
        thumbnails = {
            "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
            "medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg"},
        }
    item = {
        "id": video_id,
        "snippet": {
            "title": title,
            "description": description,
            "publishedAt": published_at,
            "thumbnails": thumbnails,
        },
        "contentDetails": {},
    }
    if duration is not None:
        item["contentDetails"]["duration"] = duration
    return item


class FakeYouTubeAPI:
    """
    Stand-in for ``httpx.AsyncClient.get`` serving an in-memory channel.

    ``videos`` maps video ID to a videos.list item; the uploads playlist
    holds them in insertion order and is paged ``page_size`` at a time.
    """

    def __init__(
        self,
        videos: Optional[Dict[str, Dict[str, Any]]] = None,
        channel_id: str = "UC_test",
        channel_title: str = "Test Channel",
        uploads_id: str = "UU_test",
        page_size: int = 50
    ):
        self.videos = videos or {}
        self.channel_id = channel_id
        self.channel_title = channel_title
        self.uploads_id = uploads_id
        self.page_size = page_size
        self.calls: List[Dict[str, Any]] = []
        self.fail_on: Optional[Callable[[str, Dict[str, Any]], Optional[Mock]]] = None

    def calls_to(self, endpoint: str) -> List[Dict[str, Any]]:
        return [call["params"] for call in self.calls if call["endpoint"] == endpoint]

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None):
        params = params or {}
        endpoint = url.rsplit("/", 1)[-1]
        self.calls.append({"endpoint": endpoint, "params": dict(params)})

        if self.fail_on:
            failure = self.fail_on(endpoint, params)
            if failure is not None:
                return failure

        if endpoint == "search":
            items = []
            if params["q"].lower() == self.channel_title.lower():
                items.append({
                    "id": {"kind": "youtube#channel", "channelId": self.channel_id},
                    "snippet": {"title": self.channel_title},
                })
            return json_response({"items": items})

        if endpoint == "channels":
            if params["id"] != self.channel_id:
                return json_response({"pageInfo": {"totalResults": 0}})
            return json_response({"items": [{
                "id": self.channel_id,
                "contentDetails": {"relatedPlaylists": {"uploads": self.uploads_id}},
            }]})

        if endpoint == "playlistItems":
            ids = list(self.videos)
            start = int(params.get("pageToken") or 0)
            page = ids[start:start + self.page_size]
            data = {"items": [{"contentDetails": {"videoId": vid}} for vid in page]}
            if start + self.page_size < len(ids):
                data["nextPageToken"] = str(start + self.page_size)
            return json_response(data)

        if endpoint == "videos":
            requested = params["id"].split(",")
            return json_response({"items": [self.videos[vid] for vid in requested if vid in self.videos]})

        return json_response({}, status_code=404)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Setup test environment variables"""
    monkeypatch.setenv("YOUTUBE_API_KEY", "test_youtube_key")
    monkeypatch.setenv("CHANNELS_DB_PATH", str(tmp_path / "channels.db"))
    monkeypatch.delenv("DOWNLOAD_SCRIPT_PATH", raising=False)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    # Drop any settings cached by an earlier test
    monkeypatch.setattr("playlist_creator.core.settings._settings", None)


@pytest.fixture
def settings(tmp_path):
    """Explicit settings isolated to the test's temp directory"""
    return Settings(
        youtube_api_key="test_api_key",
        channels_db_path=str(tmp_path / "channels.db"),
        log_dir=str(tmp_path / "logs")
    )


@pytest.fixture
def fake_api():
    return FakeYouTubeAPI()


@pytest.fixture
def youtube_client(settings, fake_api):
    """YouTube client whose transport is the in-memory fake API"""
    return YouTubeClient(settings=settings, http_client=fake_api)


@pytest.fixture
def make_video():
    """Factory for VideoSummary objects with sensible defaults"""
    def factory(
        video_id: str,
        duration_seconds: int = 300,
        title: str = "Video",
        description: str = "",
        published_at: str = "2024-01-15T10:00:00Z"
    ) -> VideoSummary:
        return VideoSummary(
            id=video_id,
            title=title,
            description=description,
            duration_seconds=duration_seconds,
            published_at=published_at
        )
    return factory
