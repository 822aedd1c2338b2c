import pytest
from conftest import make_search_channel, make_search_video, make_video
from fastapi.testclient import TestClient

import backend.app.config as config_module
import backend.main as main_module
from backend.app.config import Settings
from backend.app.services.cursor_cache import QueryShape
from backend.app.services.youtube_client import UpstreamError


@pytest.fixture
def api(fake_client, cursor_cache) -> TestClient:
    app = main_module.create_app(
        Settings(youtube_api_key="TEST_KEY"),
        client=fake_client,
        cursor_cache=cursor_cache,
    )
    return TestClient(app)


def test_parse_page():
    assert main_module.parse_page(None) == 1
    assert main_module.parse_page("3") == 3
    assert main_module.parse_page(" 2 ") == 2
    assert main_module.parse_page("0") == 1
    assert main_module.parse_page("-4") == 1
    assert main_module.parse_page("abc") == 1


def test_health(api):
    assert api.get("/healthz").json() == {"ok": True}
    assert api.get("/health").json() == {"ok": True}


def test_search_endpoint_paginates_through_cache(api, fake_client):
    fake_client.search_payload = {
        "items": [make_search_video("v1"), make_search_channel("UC1")],
        "nextPageToken": "TOKEN_P2",
    }
    fake_client.videos_payload = {"items": [make_video("v1", views=5)]}

    first = api.get("/v1/search", params={"q": "cats"})
    assert first.status_code == 200
    body = first.json()
    assert body["nextPage"] == 2
    assert body["items"][0]["type"] == "video"
    assert body["items"][0]["data"]["id"] == "v1"
    assert body["items"][0]["data"]["viewCount"] == 5
    assert body["items"][0]["data"]["publishedText"] == "2 days ago"
    assert body["items"][1] == {
        "type": "channel",
        "data": {"id": "UC1", "title": "Channel UC1", "avatar": "https://img/UC1/high.jpg"},
    }

    fake_client.search_payload = {"items": []}
    second = api.get("/v1/search", params={"q": "cats", "page": "2"})

    assert second.json() == {"items": [], "nextPage": None}
    assert fake_client.calls_to("search")[1]["pageToken"] == "TOKEN_P2"


def test_search_without_query_returns_empty(api, fake_client):
    response = api.get("/v1/search")
    assert response.status_code == 200
    assert response.json() == {"items": [], "nextPage": None}
    assert fake_client.calls == []


def test_trending_endpoint_uses_stored_cursor(api, fake_client, cursor_cache):
    cursor_cache.store(QueryShape.trending("US"), 1, "TRENDING_P2")
    fake_client.videos_payload = {"items": [make_video("t1", views=10)], "nextPageToken": "TRENDING_P3"}

    response = api.get("/v1/trending", params={"region": "US", "page": 2})

    assert response.status_code == 200
    assert response.json()["nextPage"] == 3
    assert fake_client.calls_to("videos")[0]["pageToken"] == "TRENDING_P2"


def test_channels_endpoint(api, fake_client):
    fake_client.search_payload = {"items": [make_search_channel("UC7")]}

    response = api.get("/v1/channels", params={"q": "lofi", "page": "junk"})

    assert response.json() == {
        "items": [
            {
                "type": "channel",
                "data": {"id": "UC7", "title": "Channel UC7", "avatar": "https://img/UC7/high.jpg"},
            }
        ],
        "nextPage": None,
    }


def test_upstream_failure_returns_degraded_envelope(api, fake_client):
    fake_client.error = UpstreamError("YouTube search failed: 500", status_code=500)

    response = api.get("/v1/search", params={"q": "cats"})

    assert response.status_code == 502
    assert response.json() == {"items": [], "nextPage": None, "error": "YouTube search failed: 500"}


def test_quota_failure_maps_to_429(api, fake_client):
    fake_client.error = UpstreamError("YouTube videos failed: 403", status_code=403, reason="quotaExceeded")

    response = api.get("/v1/trending")

    assert response.status_code == 429
    assert response.json()["items"] == []
    assert response.json()["nextPage"] is None


def test_suggest_never_surfaces_errors(api, fake_client):
    fake_client.error = UpstreamError("YouTube search failed: 500", status_code=500)

    response = api.get("/v1/suggest", params={"q": "cats"})

    assert response.status_code == 200
    assert response.json() == {"suggestions": []}


def test_suggest_returns_titles(api, fake_client):
    fake_client.search_payload = {"items": [make_search_video("a", title="cat videos")]}
    assert api.get("/v1/suggest", params={"q": "cat"}).json() == {"suggestions": ["cat videos"]}


def test_create_app_requires_api_key(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)
    monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)

    with pytest.raises(RuntimeError):
        main_module.create_app()


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)
    monkeypatch.setenv("YOUTUBE_API_KEY", "abc")
    monkeypatch.setenv("CURSOR_CACHE_MAX_ENTRIES", "10")
    monkeypatch.setenv("CURSOR_CACHE_TTL_SECONDS", "not-a-number")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://a.test, https://b.test")

    settings = config_module.load_settings()

    assert settings.youtube_api_key == "abc"
    assert settings.cursor_cache_max_entries == 10
    assert settings.cursor_cache_ttl_seconds == 30 * 60
    assert settings.cors_origins == ("https://a.test", "https://b.test")
    assert settings.cors_credentials is True
