import logging
from typing import Any, Optional

import httpx

from app.core.exceptions import ProviderError

logger = logging.getLogger(__name__)


def handle_response(resp: httpx.Response, provider: str) -> Any:
    """
    Handle a provider response with error checking and JSON parsing.

    Raises:
        httpx.HTTPStatusError: For 4xx/5xx status codes
        ProviderError: If the body is not valid JSON
    """
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError:
        logger.warning(f"{provider} HTTP {resp.status_code} for {resp.request.url.path}")
        raise

    if not resp.content:
        logger.warning(f"Empty {provider} response for {resp.request.url.path}")
        return {}

    try:
        return resp.json()
    except ValueError as exc:
        logger.warning(f"Invalid JSON from {provider}: {resp.text[:200]}...")
        raise ProviderError(f"{provider} returned invalid JSON") from exc


class ProviderClient:
    """
    Base class for REST providers sharing one httpx.AsyncClient.
    """

    name = "provider"

    def __init__(self, http: httpx.AsyncClient, api_key: Optional[str]):
        self.http = http
        self.api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _get(self, url: str, params: Optional[dict] = None) -> Any:
        resp = await self.http.get(url, params=params)
        return handle_response(resp, self.name)
