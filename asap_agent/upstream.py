"""Async client for OpenAI-compatible chat completion providers."""

from typing import Any, Dict, List, Optional

import httpx

from asap_agent.config import UPSTREAM_TIMEOUT
from asap_agent.exceptions import ExternalAPIError
from asap_agent.logger import LoggerMixin


class UpstreamClient(LoggerMixin):
    """Posts conversations to a chat completion endpoint with a bearer token."""

    def __init__(
        self,
        url: str,
        api_key: str,
        model: str,
        timeout: float = UPSTREAM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise ExternalAPIError(f"No API key configured for {self.url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.post(self.url, json=payload, headers=self._headers())
            except httpx.TimeoutException as e:
                raise ExternalAPIError(f"Request to {self.url} timed out") from e
            except httpx.HTTPError as e:
                raise ExternalAPIError(f"Request to {self.url} failed: {e}") from e

        if not resp.is_success:
            raise ExternalAPIError(
                f"API request failed with status: {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ExternalAPIError(f"Malformed JSON from {self.url}") from e
        if not isinstance(data, dict):
            raise ExternalAPIError(f"Unexpected response from {self.url}: {data!r}")
        return data

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 800,
    ) -> str:
        """Return the text of the first completion choice."""
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        data = await self._post(payload)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalAPIError(f"Unexpected completion payload: {data}") from e
        if not isinstance(content, str):
            raise ExternalAPIError(f"Completion content is not text: {content!r}")
        return content

    async def forward(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Send ``messages`` with the configured model and return the raw JSON body."""
        self.logger.debug(f"Forwarding {len(messages)} messages to {self.url}")
        return await self._post({"model": self.model, "messages": messages})
