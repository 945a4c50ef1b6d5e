"""
Client for a google-reverse-image-api compatible reverse search service.

Environment:
    REVERSE_API_URL: full POST endpoint.
    REVERSE_API_BASE: base URL used as ``BASE + "/reverse"`` when the URL is unset.
    REVERSE_API_KEY: optional bearer token.
    REVERSE_API_TIMEOUT: optional timeout in seconds.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional

import requests

from sightguard.configuration.app_configuration import app_config
from sightguard.datatypes.analysis_datatypes import ReverseSearchResult
from sightguard.exceptions import UpstreamAnalysisError
from sightguard.util.logger import get_logger

logger = get_logger("reverse_image_client")


def resolve_endpoint() -> str:
    endpoint = os.getenv("REVERSE_API_URL", "").strip()
    if endpoint:
        return endpoint
    base = os.getenv("REVERSE_API_BASE", "").strip().rstrip("/")
    if not base:
        raise UpstreamAnalysisError("set REVERSE_API_URL or REVERSE_API_BASE to enable reverse search")
    return base + "/reverse"


def resolve_timeout() -> float:
    raw = os.getenv("REVERSE_API_TIMEOUT", "").strip()
    if raw:
        try:
            return float(raw)
        except ValueError:
            logger.warning("[REVERSE SEARCH] Ignoring invalid REVERSE_API_TIMEOUT=%r", raw)
    return app_config.reverse_search_timeout


def parse_reverse_result(payload: Any) -> ReverseSearchResult:
    """Flatten the upstream JSON, ignoring unknown fields and wrong types."""
    if not isinstance(payload, dict):
        return ReverseSearchResult()

    data = payload.get("data")
    data = data if isinstance(data, dict) else {}

    def text(mapping: Dict[str, Any], key: str) -> str:
        value = mapping.get(key)
        return value if isinstance(value, str) else ""

    success = payload.get("success")
    return ReverseSearchResult(
        success=success if isinstance(success, bool) else False,
        message=text(payload, "message"),
        similar_url=text(data, "similarUrl"),
        result_text=text(data, "resultText"),
    )


class ReverseImageClient:
    """POSTs ``{"imageUrl": url}`` and parses the reply into a ``ReverseSearchResult``."""

    def __init__(self, endpoint: Optional[str] = None, api_key: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self._endpoint = endpoint
        self._api_key = api_key
        self._timeout = timeout

    def _search_sync(self, image_url: str) -> ReverseSearchResult:
        if not image_url.strip():
            raise UpstreamAnalysisError("image URL is empty")

        endpoint = self._endpoint or resolve_endpoint()
        api_key = (self._api_key if self._api_key is not None else os.getenv("REVERSE_API_KEY", "")).strip()
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        logger.debug("[REVERSE SEARCH] Looking up %s via %s", image_url, endpoint)
        try:
            response = requests.post(
                endpoint,
                json={"imageUrl": image_url},
                headers=headers,
                timeout=self._timeout or resolve_timeout(),
            )
        except requests.RequestException as exc:
            raise UpstreamAnalysisError(f"reverse search failed: {exc}") from exc

        if response.status_code != 200:
            raise UpstreamAnalysisError(f"unexpected status {response.status_code} from reverse API")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamAnalysisError(f"invalid JSON from reverse API: {exc}") from exc
        return parse_reverse_result(payload)

    async def search(self, image_url: str) -> ReverseSearchResult:
        return await asyncio.to_thread(self._search_sync, image_url)
