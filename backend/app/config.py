import os
from dataclasses import dataclass

from dotenv import load_dotenv

from backend.app.services.cursor_cache import CURSOR_CACHE_MAX_ENTRIES, CURSOR_CACHE_TTL_SECONDS
from backend.app.services.youtube_client import YOUTUBE_API_BASE_URL


@dataclass(frozen=True)
class Settings:
    youtube_api_key: str | None
    youtube_api_base_url: str = YOUTUBE_API_BASE_URL
    youtube_timeout_seconds: float = 15
    cursor_cache_max_entries: int = CURSOR_CACHE_MAX_ENTRIES
    cursor_cache_ttl_seconds: float = CURSOR_CACHE_TTL_SECONDS
    cors_origins: tuple[str, ...] = ("*",)
    cors_credentials: bool = False
    log_level: str = "INFO"
    port: int = 8080


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def parse_cors_origins() -> tuple[tuple[str, ...], bool]:
    raw = (os.getenv("CORS_ALLOWED_ORIGINS") or "").strip()
    if not raw or raw == "*":
        return ("*",), False
    origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
    if not origins:
        return ("*",), False
    return origins, True


def load_settings() -> Settings:
    load_dotenv()
    cors_origins, cors_credentials = parse_cors_origins()
    return Settings(
        youtube_api_key=(os.getenv("YOUTUBE_API_KEY") or "").strip() or None,
        youtube_api_base_url=os.getenv("YOUTUBE_API_BASE_URL") or YOUTUBE_API_BASE_URL,
        youtube_timeout_seconds=_float_env("YOUTUBE_TIMEOUT_SECONDS", 15),
        cursor_cache_max_entries=_int_env("CURSOR_CACHE_MAX_ENTRIES", CURSOR_CACHE_MAX_ENTRIES),
        cursor_cache_ttl_seconds=_float_env("CURSOR_CACHE_TTL_SECONDS", CURSOR_CACHE_TTL_SECONDS),
        cors_origins=cors_origins,
        cors_credentials=cors_credentials,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        port=_int_env("PORT", 8080),
    )
