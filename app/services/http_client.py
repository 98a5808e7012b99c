import logging
from typing import Any

import httpx

from app.core.config import HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class HttpxClient:
    """Generic outbound HTTP client for the api_call action."""

    def __init__(self, timeout: float = HTTP_TIMEOUT_SECONDS, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self._transport = transport

    async def request(self, method: str, url: str, json: Any = None) -> Any:
        """
        Send the request and return the parsed JSON body (or text when the
        response is not JSON). Raises httpx.HTTPStatusError on 4xx/5xx.
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.request(method.upper(), url, json=json)

        logger.info("🌐 [api_call] %s %s -> %s", method.upper(), url, response.status_code)
        response.raise_for_status()

        try:
            return response.json()
        except ValueError:
            return response.text
