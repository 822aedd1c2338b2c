from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from backend.app.services.cursor_cache import CursorCache


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeYouTubeClient:
    """Records every upstream call and replays canned payloads."""

    def __init__(self):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.search_payload: dict[str, Any] = {"items": []}
        self.videos_payload: dict[str, Any] = {"items": []}
        self.channels_payload: dict[str, Any] = {"items": []}
        self.error: Exception | None = None

    def _record(self, name: str, params: dict[str, Any], payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((name, dict(params)))
        if self.error is not None:
            raise self.error
        return payload

    def search(self, params):
        return self._record("search", params, self.search_payload)

    def list_videos(self, params):
        return self._record("videos", params, self.videos_payload)

    def list_channels(self, params):
        return self._record("channels", params, self.channels_payload)

    def calls_to(self, name: str) -> list[dict[str, Any]]:
        return [params for call_name, params in self.calls if call_name == name]


def iso_ago(**delta) -> str:
    return (datetime.now(timezone.utc) - timedelta(**delta)).isoformat().replace("+00:00", "Z")


def make_search_video(video_id: str, title: str | None = None, days_ago: int = 2) -> dict:
    return {
        "kind": "youtube#searchResult",
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {
            "title": title or f"Video {video_id}",
            "channelId": f"UC_{video_id}",
            "channelTitle": f"Channel {video_id}",
            "publishedAt": iso_ago(days=days_ago),
            "thumbnails": {"default": {"url": f"https://img/{video_id}.jpg"}},
        },
    }


def make_search_channel(channel_id: str) -> dict:
    return {
        "kind": "youtube#searchResult",
        "id": {"kind": "youtube#channel", "channelId": channel_id},
        "snippet": {
            "title": f"Channel {channel_id}",
            "channelId": channel_id,
            "thumbnails": {
                "default": {"url": f"https://img/{channel_id}/default.jpg"},
                "high": {"url": f"https://img/{channel_id}/high.jpg"},
            },
        },
    }


def make_video(video_id: str, views: int | None = 1000, days_ago: int = 2) -> dict:
    video = {
        "kind": "youtube#video",
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "channelId": f"UC_{video_id}",
            "channelTitle": f"Channel {video_id}",
            "publishedAt": iso_ago(days=days_ago),
        },
    }
    if views is not None:
        video["statistics"] = {"viewCount": str(views)}
    return video


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cursor_cache(clock: ManualClock) -> CursorCache:
    return CursorCache(clock=clock)


@pytest.fixture
def fake_client() -> FakeYouTubeClient:
    return FakeYouTubeClient()
