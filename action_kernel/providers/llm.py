"""
LLM provider port.

Both the Perception and Planning stages treat the model as one opaque call:
messages in, text out. Anything that goes wrong is a ProviderError, which the
stages recover from locally.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional, Protocol, runtime_checkable

import httpx

from action_kernel.errors import ProviderError

logger = logging.getLogger(__name__)

_TIMEOUT = 30.0


@runtime_checkable
class LLMProvider(Protocol):
    async def send_message(self, messages: List[Dict[str, str]]) -> str: ...


def extract_json_object(text: str) -> dict:
    """Return the first complete JSON object embedded in a model reply."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    raise ProviderError("No JSON object found in model response")


class ChatCompletionsProvider:
    """OpenAI-compatible /chat/completions client."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 1024,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._transport = transport

    async def send_message(self, messages: List[Dict[str, str]]) -> str:
        payload = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            async with httpx.AsyncClient(
                timeout=_TIMEOUT, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{self._base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as e:
            raise ProviderError(f"Model call timed out after {_TIMEOUT}s") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Model call failed with HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Model call failed: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Malformed chat completion response") from e
        logger.debug("Model %s replied with %d chars", self._model, len(content or ""))
        return content or ""
