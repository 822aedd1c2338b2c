from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import patch

from fastapi.testclient import TestClient

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import backend.main as main_module
from backend.app.config import Settings
from backend.app.services.cursor_cache import CursorCache
from backend.app.services.youtube_client import UpstreamError, YouTubeClient


def make_search_video(video_id: str, days_ago: int) -> dict:
    published_at = (datetime.now(timezone.utc) - timedelta(days=days_ago)).isoformat().replace("+00:00", "Z")
    return {
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {
            "title": f"Video {video_id}",
            "channelId": "UC_SMOKE",
            "channelTitle": "Smoke Channel",
            "publishedAt": published_at,
        },
    }


def make_search_channel(channel_id: str) -> dict:
    return {
        "id": {"kind": "youtube#channel", "channelId": channel_id},
        "snippet": {
            "title": f"Channel {channel_id}",
            "thumbnails": {"high": {"url": f"https://img/{channel_id}.jpg"}},
        },
    }


def make_video(video_id: str, views: int) -> dict:
    return {
        "id": video_id,
        "snippet": {"title": f"Video {video_id}", "channelTitle": "Smoke Channel"},
        "statistics": {"viewCount": str(views)},
    }


def assert_true(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def build_client() -> TestClient:
    app = main_module.create_app(
        Settings(youtube_api_key="SMOKE_KEY"),
        client=YouTubeClient("SMOKE_KEY"),
        cursor_cache=CursorCache(),
    )
    return TestClient(app)


def test_health() -> None:
    payload = build_client().get("/healthz").json()
    assert_true(payload.get("ok") is True, "/healthz should return ok=true")


def test_search_pages() -> None:
    api = build_client()
    calls: list[tuple[str, dict[str, Any]]] = []

    def fake_get(resource: str, params: dict) -> dict:
        calls.append((resource, dict(params)))
        if resource == "videos":
            return {"items": [make_video("s1", 1200)]}
        if params.get("pageToken") == "SEARCH_P2":
            return {"items": [make_search_video("s2", 4)]}
        return {
            "items": [make_search_video("s1", 3), make_search_channel("UC_SMOKE")],
            "nextPageToken": "SEARCH_P2",
        }

    with patch.object(YouTubeClient, "_get", side_effect=fake_get):
        page_1 = api.get("/v1/search", params={"q": "smoke"}).json()
        page_2 = api.get("/v1/search", params={"q": "smoke", "page": 2}).json()

    assert_true(page_1.get("nextPage") == 2, "/v1/search page 1 should point at page 2")
    assert_true(page_1["items"][0]["data"].get("viewCount") == 1200, "/v1/search should attach view counts")
    assert_true(page_1["items"][1]["type"] == "channel", "/v1/search should keep channel results")
    assert_true(page_2.get("nextPage") is None, "/v1/search last page should have nextPage=null")
    search_calls = [params for resource, params in calls if resource == "search"]
    assert_true(search_calls[1].get("pageToken") == "SEARCH_P2", "/v1/search page 2 should reuse the cursor")


def test_trending_and_channels() -> None:
    api = build_client()

    def fake_get(resource: str, params: dict) -> dict:
        if resource == "videos":
            return {"items": [make_video("t1", 99)], "nextPageToken": "TRENDING_P2"}
        return {"items": [make_search_channel("UC_ONE")]}

    with patch.object(YouTubeClient, "_get", side_effect=fake_get):
        trending = api.get("/v1/trending", params={"region": "gb"}).json()
        channels = api.get("/v1/channels", params={"q": "smoke"}).json()

    assert_true(trending.get("nextPage") == 2, "/v1/trending should expose the next page")
    assert_true(trending["items"][0]["data"].get("viewCount") == 99, "/v1/trending should keep statistics")
    assert_true(channels["items"][0]["data"].get("avatar") == "https://img/UC_ONE.jpg", "/v1/channels avatar")


def test_upstream_failures() -> None:
    api = build_client()

    def fake_get(resource: str, params: dict) -> dict:
        raise UpstreamError(f"YouTube {resource} failed: 500", status_code=500)

    with patch.object(YouTubeClient, "_get", side_effect=fake_get):
        search = api.get("/v1/search", params={"q": "smoke"})
        suggest = api.get("/v1/suggest", params={"q": "smoke"})

    assert_true(search.status_code == 502, "/v1/search upstream failure should return 502")
    assert_true(search.json().get("error"), "/v1/search failure should carry an error message")
    assert_true(suggest.status_code == 200, "/v1/suggest should never fail")
    assert_true(suggest.json() == {"suggestions": []}, "/v1/suggest should degrade to an empty list")


def run() -> int:
    checks = [
        ("health", test_health),
        ("search pages", test_search_pages),
        ("trending + channels", test_trending_and_channels),
        ("upstream failures", test_upstream_failures),
    ]
    failures = []

    for check_name, check_fn in checks:
        try:
            check_fn()
            print(f"[PASS] {check_name}")
        except Exception as exc:  # pragma: no cover - smoke script output path
            failures.append((check_name, str(exc)))
            print(f"[FAIL] {check_name}: {exc}")

    if failures:
        print(f"\nSmoke checks failed: {len(failures)}")
        for check_name, message in failures:
            print(f"- {check_name}: {message}")
        return 1

    print("\nAll smoke checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
