import logging
from collections.abc import Mapping
from typing import Any

from backend.app.models import ChannelItem, PagedResult, VideoItem
from backend.app.services.cursor_cache import CursorCache, QueryShape
from backend.app.services.normalizer import to_channel_item, to_video_item
from backend.app.services.youtube_client import UpstreamError, YouTubeClient

LOGGER = logging.getLogger("yt_proxy.aggregator")

PAGE_SIZE = 20
SUGGEST_MAX_RESULTS = 10
DEFAULT_REGION = "US"

YOUTUBE_KIND_VIDEO = "youtube#video"
YOUTUBE_KIND_CHANNEL = "youtube#channel"


def _records(payload: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return [item for item in payload.get("items") or [] if isinstance(item, Mapping)]


def _result_kind(record: Mapping[str, Any]) -> str | None:
    raw_id = record.get("id")
    if isinstance(raw_id, Mapping):
        return raw_id.get("kind")
    return None


def _video_id(record: Mapping[str, Any]) -> str | None:
    raw_id = record.get("id")
    if isinstance(raw_id, Mapping):
        return raw_id.get("videoId") or None
    return None


def _resolve_cursor(cache: CursorCache, shape: QueryShape, page: int) -> str | None:
    cursor = cache.lookup(shape, page)
    if cursor is None and page > 1:
        # Unknown page: ask upstream without a cursor, which serves the first page.
        LOGGER.warning(
            "no cursor cached for %s page=%s, requesting without pageToken",
            shape.cache_key(),
            page,
        )
    return cursor


def _paged(
    cache: CursorCache,
    shape: QueryShape,
    page: int,
    payload: Mapping[str, Any],
    items: list[VideoItem | ChannelItem],
) -> PagedResult:
    next_token = payload.get("nextPageToken") or None
    cache.store(shape, page, next_token)
    return PagedResult(items=items, next_page=page + 1 if next_token else None)


def suggest(client: YouTubeClient, q: str | None) -> list[str]:
    """Best-effort title suggestions. Upstream failures yield an empty list."""
    q = (q or "").strip()
    if not q:
        return []

    try:
        payload = client.search(
            {
                "part": "snippet",
                "type": "video",
                "maxResults": SUGGEST_MAX_RESULTS,
                "q": q,
            }
        )
    except UpstreamError as exc:
        LOGGER.info("suggest degraded to empty list q=%r: %s", q, exc)
        return []

    suggestions: list[str] = []
    seen: set[str] = set()
    for record in _records(payload):
        title = (record.get("snippet") or {}).get("title")
        if title and title not in seen:
            seen.add(title)
            suggestions.append(title)
        if len(suggestions) >= SUGGEST_MAX_RESULTS:
            break
    return suggestions


def trending(client: YouTubeClient, cache: CursorCache, region: str | None = None, page: int = 1) -> PagedResult:
    region = (region or DEFAULT_REGION).strip().upper() or DEFAULT_REGION
    page = max(1, page)
    shape = QueryShape.trending(region)

    payload = client.list_videos(
        {
            "part": "snippet,statistics,contentDetails",
            "chart": "mostPopular",
            "regionCode": region,
            "maxResults": PAGE_SIZE,
            "pageToken": _resolve_cursor(cache, shape, page),
        }
    )

    # chart=mostPopular already carries statistics on each record
    items: list[VideoItem | ChannelItem] = [
        to_video_item(record, record if record.get("statistics") else None)
        for record in _records(payload)
    ]
    return _paged(cache, shape, page, payload, items)


def search(client: YouTubeClient, cache: CursorCache, q: str | None, page: int = 1) -> PagedResult:
    """
    Mixed video and channel search.

    Video view counts need a second, batched videos.list call for every video
    id on the page. Channel results never trigger it.
    """
    q = (q or "").strip()
    if not q:
        return PagedResult()
    page = max(1, page)
    shape = QueryShape.search(q)

    payload = client.search(
        {
            "part": "snippet",
            "type": "video,channel",
            "maxResults": PAGE_SIZE,
            "q": q,
            "pageToken": _resolve_cursor(cache, shape, page),
        }
    )
    records = _records(payload)

    video_ids: list[str] = []
    for record in records:
        if _result_kind(record) != YOUTUBE_KIND_VIDEO:
            continue
        video_id = _video_id(record)
        if video_id:
            video_ids.append(video_id)

    stats_by_id: dict[str, Mapping[str, Any]] = {}
    if video_ids:
        stats_payload = client.list_videos({"part": "statistics,snippet", "id": ",".join(video_ids)})
        for video in _records(stats_payload):
            if video.get("id"):
                stats_by_id[video["id"]] = video

    items: list[VideoItem | ChannelItem] = []
    for record in records:
        if _result_kind(record) == YOUTUBE_KIND_CHANNEL:
            items.append(to_channel_item(record))
            continue
        video_id = _video_id(record)
        items.append(to_video_item(record, stats_by_id.get(video_id) if video_id else None))

    return _paged(cache, shape, page, payload, items)


def channels(client: YouTubeClient, cache: CursorCache, q: str | None, page: int = 1) -> PagedResult:
    q = (q or "").strip()
    if not q:
        return PagedResult()
    page = max(1, page)
    shape = QueryShape.channels(q)

    payload = client.search(
        {
            "part": "snippet",
            "type": "channel",
            "maxResults": PAGE_SIZE,
            "q": q,
            "pageToken": _resolve_cursor(cache, shape, page),
        }
    )
    items: list[VideoItem | ChannelItem] = [to_channel_item(record) for record in _records(payload)]
    return _paged(cache, shape, page, payload, items)
