import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from backend.app.models import ChannelData, ChannelItem, VideoData, VideoItem

RawRecord = Mapping[str, Any]

# (base, unit): divide by base while the value is at least base
AGE_UNITS: tuple[tuple[float, str], ...] = (
    (60, "second"),
    (60, "minute"),
    (24, "hour"),
    (7, "day"),
    (4.345, "week"),
    (12, "month"),
    (math.inf, "year"),
)


def parse_iso8601_datetime(value: str):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def relative_age(timestamp: str | datetime | None, now: datetime | None = None) -> str | None:
    """
    Humanize an absolute timestamp as "<n> <unit>(s) ago".

    Elapsed time is clamped to at least one second, so future or garbled
    clocks read as "1 second ago" rather than a negative age.
    """
    if not timestamp:
        return None
    if isinstance(timestamp, datetime):
        published = timestamp
    else:
        published = parse_iso8601_datetime(timestamp)
    if published is None:
        return None
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    value = max(1, math.floor((now - published).total_seconds()))
    unit = AGE_UNITS[-1][1]
    for base, name in AGE_UNITS:
        if value < base:
            unit = name
            break
        value = math.floor(value / base)

    plural = "s" if value > 1 else ""
    return f"{value} {unit}{plural} ago"


def best_thumbnail_url(thumbnails: dict) -> str | None:
    for key in ("maxres", "standard", "high", "medium", "default"):
        t = thumbnails.get(key)
        if isinstance(t, dict) and t.get("url"):
            return t["url"]
    return None


def _record_id(record: RawRecord, id_field: str) -> str | None:
    # search.list nests the id ({"kind": ..., "videoId": ...}), videos.list does not
    raw_id = record.get("id")
    if isinstance(raw_id, Mapping):
        value = raw_id.get(id_field)
        return str(value) if value else None
    if isinstance(raw_id, str) and raw_id:
        return raw_id
    return None


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def to_video_item(
    record: RawRecord,
    stats_record: RawRecord | None = None,
    now: datetime | None = None,
) -> VideoItem:
    snippet = record.get("snippet") or {}
    view_count = None
    if stats_record is not None:
        view_count = _to_int((stats_record.get("statistics") or {}).get("viewCount"))

    return VideoItem(
        data=VideoData(
            id=_record_id(record, "videoId"),
            title=snippet.get("title"),
            channel_id=snippet.get("channelId"),
            channel_name=snippet.get("channelTitle"),
            view_count=view_count,
            published_text=relative_age(snippet.get("publishedAt"), now=now),
        )
    )


def to_channel_item(record: RawRecord) -> ChannelItem:
    snippet = record.get("snippet") or {}
    return ChannelItem(
        data=ChannelData(
            id=_record_id(record, "channelId"),
            title=snippet.get("title"),
            avatar_url=best_thumbnail_url(snippet.get("thumbnails") or {}),
        )
    )
