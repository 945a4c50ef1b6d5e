"""
Thin client for the Sightengine ``check.json`` endpoint.

The HTTP call is blocking (``requests``) and therefore always runs through
``asyncio.to_thread`` so the bot's event loop keeps serving commands while
the upstream request is in flight.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import requests

from sightguard.configuration.app_configuration import app_config
from sightguard.exceptions import UpstreamAnalysisError
from sightguard.util.logger import get_logger

logger = get_logger("sightengine_client")


class SightengineClient:
    """Calls Sightengine with the configured model sets.

    Credentials default to the ``SIGHTENGINE_USER`` and ``SIGHTENGINE_SECRET``
    environment variables and are looked up per call, so a ``.env`` loaded
    after construction is still honoured.
    """

    def __init__(
        self,
        api_user: Optional[str] = None,
        api_secret: Optional[str] = None,
        endpoint: Optional[str] = None,
        models: Optional[str] = None,
        ai_models: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._api_user = api_user
        self._api_secret = api_secret
        self.endpoint = endpoint or app_config.sightengine_endpoint
        self.models = models or app_config.sightengine_models
        self.ai_models = ai_models or app_config.sightengine_ai_models
        self.timeout = timeout or app_config.sightengine_timeout

    @property
    def host(self) -> str:
        return urlsplit(self.endpoint).netloc or self.endpoint

    def _credentials(self) -> tuple[str, str]:
        api_user = (self._api_user or os.getenv("SIGHTENGINE_USER", "")).strip()
        api_secret = (self._api_secret or os.getenv("SIGHTENGINE_SECRET", "")).strip()
        if not api_user or not api_secret:
            raise UpstreamAnalysisError("SIGHTENGINE_USER or SIGHTENGINE_SECRET not set")
        return api_user, api_secret

    def _check_sync(self, image_url: str, models: str) -> Dict[str, Any]:
        """Perform the blocking GET and return the decoded JSON object."""
        api_user, api_secret = self._credentials()
        params = {
            "url": image_url,
            "models": models,
            "api_user": api_user,
            "api_secret": api_secret,
        }

        logger.debug("[SIGHTENGINE] Checking %s with models=%s", image_url, models)
        try:
            response = requests.get(self.endpoint, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            # str(exc) carries the full request URL, credentials included
            logger.debug("[SIGHTENGINE] Request to %s failed with %s", self.host, type(exc).__name__)
            raise UpstreamAnalysisError(
                f"Sightengine request to {self.host} failed ({type(exc).__name__})"
            ) from None

        if response.status_code != 200:
            raise UpstreamAnalysisError(f"unexpected status {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamAnalysisError(f"invalid JSON from Sightengine: {exc}") from exc

        if not isinstance(payload, dict):
            raise UpstreamAnalysisError("Sightengine returned a non-object JSON body")
        if payload.get("status") == "failure":
            error = payload.get("error")
            message = error.get("message") if isinstance(error, dict) else error
            raise UpstreamAnalysisError(f"Sightengine reported failure: {message or 'unknown error'}")
        return payload

    async def check(self, image_url: str) -> Dict[str, Any]:
        """Run the full moderation model set on ``image_url``."""
        return await asyncio.to_thread(self._check_sync, image_url, self.models)

    async def check_ai_only(self, image_url: str) -> Dict[str, Any]:
        """Run only the AI-generated image model on ``image_url``."""
        return await asyncio.to_thread(self._check_sync, image_url, self.ai_models)
