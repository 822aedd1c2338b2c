import logging
from collections.abc import Mapping
from typing import Any

import requests

LOGGER = logging.getLogger("yt_proxy.youtube")

YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
QUOTA_REASONS = {"quotaExceeded", "dailyLimitExceeded", "rateLimitExceeded"}

ParamValue = str | int | float | None


class UpstreamError(Exception):
    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @property
    def quota_exceeded(self) -> bool:
        return self.reason in QUOTA_REASONS


def _error_reason(response: requests.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    error = payload.get("error") or {}
    if not isinstance(error, dict):
        return None
    errors = error.get("errors") or []
    if errors and isinstance(errors[0], dict):
        reason = errors[0].get("reason")
        if reason:
            return str(reason)
    return None


class YouTubeClient:
    """
    Thin read-only wrapper over the YouTube Data API v3.

    Responses come back exactly as decoded from the wire. Anything that is
    not a 2xx JSON body turns into an UpstreamError.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = YOUTUBE_API_BASE_URL,
        timeout: float = 15,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def search(self, params: Mapping[str, ParamValue]) -> dict[str, Any]:
        return self._get("search", params)

    def list_videos(self, params: Mapping[str, ParamValue]) -> dict[str, Any]:
        return self._get("videos", params)

    def list_channels(self, params: Mapping[str, ParamValue]) -> dict[str, Any]:
        return self._get("channels", params)

    def _get(self, resource: str, params: Mapping[str, ParamValue]) -> dict[str, Any]:
        query = {k: v for k, v in params.items() if v is not None}
        query["key"] = self.api_key
        url = f"{self.base_url}/{resource}"

        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
        except requests.RequestException as exc:
            LOGGER.warning("youtube %s request failed: %s", resource, exc)
            raise UpstreamError(f"YouTube {resource} request failed: {exc}") from exc

        if not response.ok:
            reason = _error_reason(response)
            LOGGER.warning(
                "youtube %s failed status=%s reason=%s",
                resource,
                response.status_code,
                reason,
            )
            raise UpstreamError(
                f"YouTube {resource} failed: {response.status_code}",
                status_code=response.status_code,
                reason=reason,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"YouTube {resource} returned an invalid body",
                status_code=response.status_code,
            ) from exc
