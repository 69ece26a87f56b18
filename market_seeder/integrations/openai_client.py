from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import CompletionResponseError

logger = logging.getLogger(__name__)


def extract_message_content(payload: Any) -> str:
    """Return ``choices[0].message.content`` from a chat completion payload."""

    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise CompletionResponseError(
            "Chat completion response has no choices[0].message.content"
        ) from exc
    if not isinstance(content, str):
        raise CompletionResponseError(
            f"Chat completion content is {type(content).__name__}, expected str"
        )
    return content


class OpenAIChatClient:
    """Thin wrapper around OpenAI's chat completions endpoint.

    Each call is a single attempt; HTTP and transport errors propagate.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o",
        temperature: float = 0.7,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required for market proposals")
        self._model = model
        self._temperature = temperature
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def complete(self, prompt: str) -> str:
        payload = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._temperature,
        }
        response = await self._client.post("/chat/completions", json=payload)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            logger.error(
                "Chat completion failed (status=%s, model=%s)",
                response.status_code,
                self._model,
            )
            raise
        return extract_message_content(response.json())


__all__ = ["OpenAIChatClient", "extract_message_content"]
