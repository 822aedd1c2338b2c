import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

LOGGER = logging.getLogger("yt_proxy.cursor_cache")

CURSOR_CACHE_MAX_ENTRIES = 500
CURSOR_CACHE_TTL_SECONDS = 30 * 60  # 30 minutes

QueryKind = Literal["trending", "search", "channels"]


@dataclass(frozen=True)
class QueryShape:
    """Identity of one logical paginated query.

    Trending queries are told apart by region, search and channel queries by
    their text. The kind is always part of the key, so a search for "US" and
    trending in region "US" never share cursors.
    """

    kind: QueryKind
    q: str | None = None
    region: str | None = None

    @classmethod
    def trending(cls, region: str) -> "QueryShape":
        return cls(kind="trending", region=region)

    @classmethod
    def search(cls, q: str) -> "QueryShape":
        return cls(kind="search", q=q)

    @classmethod
    def channels(cls, q: str) -> "QueryShape":
        return cls(kind="channels", q=q)

    def cache_key(self) -> str:
        fields = {"kind": self.kind, "q": self.q, "region": self.region}
        present = {k: v for k, v in fields.items() if v is not None}
        return json.dumps(present, sort_keys=True, separators=(",", ":"))


class CursorCache:
    """
    Maps (query shape, virtual page) to the upstream pageToken for that page.

    Page 1 never has an entry. An entry is written when page N comes back with
    a nextPageToken and is read when the client asks for page N + 1. Entries
    live for ttl_seconds after their last store; the least recently used one
    is evicted once max_entries live entries exist.
    """

    def __init__(
        self,
        max_entries: int = CURSOR_CACHE_MAX_ENTRIES,
        ttl_seconds: float = CURSOR_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # (shape key, page) -> (expires_at, cursor); ordered oldest use first
        self._entries: OrderedDict[tuple[str, int], tuple[float, str]] = OrderedDict()
        self._lock = threading.Lock()

    def lookup(self, shape: QueryShape, page: int) -> str | None:
        if page <= 1:
            return None

        key = (shape.cache_key(), page)
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return None
            expires_at, cursor = hit
            if self._clock() >= expires_at:
                self._entries.pop(key, None)
                return None
            self._entries.move_to_end(key)
            return cursor

    def store(self, shape: QueryShape, for_page: int, cursor: str | None) -> None:
        if not cursor:
            return
        if for_page < 1:
            raise ValueError("for_page must be at least 1")

        key = (shape.cache_key(), for_page + 1)
        with self._lock:
            now = self._clock()
            if key in self._entries:
                self._entries.move_to_end(key)
            else:
                self._make_room(now)
            self._entries[key] = (now + self.ttl_seconds, cursor)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock())
            return len(self._entries)

    def _make_room(self, now: float) -> None:
        if len(self._entries) < self.max_entries:
            return
        self._purge_expired(now)
        while len(self._entries) >= self.max_entries:
            (shape_key, page), _ = self._entries.popitem(last=False)
            LOGGER.debug("evicted cursor shape=%s page=%s", shape_key, page)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
