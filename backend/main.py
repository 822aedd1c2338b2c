import logging

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.config import Settings, load_settings
from backend.app.logging_config import configure_logging
from backend.app.models import PagedResult, SuggestResult
from backend.app.services import aggregator
from backend.app.services.cursor_cache import CursorCache
from backend.app.services.youtube_client import UpstreamError, YouTubeClient

LOGGER = logging.getLogger("yt_proxy.api")


# ---------------------------
# Helpers
# ---------------------------

def parse_page(raw: str | None) -> int:
    """Virtual page number from the query string; junk and values below 1 become 1."""
    try:
        page = int(str(raw or "1").strip())
    except ValueError:
        return 1
    return max(1, page)


def get_client(request: Request) -> YouTubeClient:
    return request.app.state.youtube_client


def get_cursor_cache(request: Request) -> CursorCache:
    return request.app.state.cursor_cache


async def upstream_error_handler(_request: Request, exc: UpstreamError):
    status_code = 429 if exc.quota_exceeded else 502
    LOGGER.warning("upstream failure status=%s reason=%s: %s", exc.status_code, exc.reason, exc)
    return JSONResponse(
        status_code=status_code,
        content=PagedResult(error=str(exc)).to_payload(),
    )


# ---------------------------
# Routes
# ---------------------------

router = APIRouter()


@router.get("/healthz")
@router.get("/health")
def health():
    return {"ok": True}


@router.get("/v1/suggest")
def suggest(request: Request, q: str | None = None):
    suggestions = aggregator.suggest(get_client(request), q)
    return SuggestResult(suggestions=suggestions).model_dump()


@router.get("/v1/trending")
def trending(request: Request, region: str | None = None, page: str | None = None):
    result = aggregator.trending(
        get_client(request),
        get_cursor_cache(request),
        region=region,
        page=parse_page(page),
    )
    return result.to_payload()


@router.get("/v1/search")
def search(request: Request, q: str | None = None, page: str | None = None):
    result = aggregator.search(get_client(request), get_cursor_cache(request), q, page=parse_page(page))
    return result.to_payload()


@router.get("/v1/channels")
def channels(request: Request, q: str | None = None, page: str | None = None):
    result = aggregator.channels(get_client(request), get_cursor_cache(request), q, page=parse_page(page))
    return result.to_payload()


# ---------------------------
# App setup
# ---------------------------

def create_app(
    settings: Settings | None = None,
    client: YouTubeClient | None = None,
    cursor_cache: CursorCache | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    if client is None:
        if not settings.youtube_api_key:
            raise RuntimeError("Missing YOUTUBE_API_KEY in backend/.env")
        client = YouTubeClient(
            settings.youtube_api_key,
            base_url=settings.youtube_api_base_url,
            timeout=settings.youtube_timeout_seconds,
        )
    if cursor_cache is None:
        cursor_cache = CursorCache(
            max_entries=settings.cursor_cache_max_entries,
            ttl_seconds=settings.cursor_cache_ttl_seconds,
        )

    app = FastAPI(title="YouTube paged search proxy")
    app.state.settings = settings
    app.state.youtube_client = client
    app.state.cursor_cache = cursor_cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=settings.cors_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.include_router(router)
    return app


def run() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
