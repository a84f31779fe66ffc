"""Chat completion client for OpenAI-compatible HTTP endpoints."""
from __future__ import annotations

import logging
from typing import Any

import aiohttp

from atelier.engine.errors import ChatTransportError
from atelier.engine.models import AgentConfig, ChatMessage

logger = logging.getLogger(__name__)

# Agent configuration keys forwarded verbatim to the request body.
_PASSTHROUGH_PARAMS = ("temperature", "max_tokens", "top_p")


def build_payload(config: AgentConfig, messages: list[ChatMessage]) -> dict[str, Any]:
    """Request body for ``POST /chat/completions``."""
    wire: list[dict[str, str]] = []
    system_prompt = config.configurations.get("system_prompt")
    if system_prompt:
        wire.append({"role": "system", "content": str(system_prompt)})
    wire.extend({"role": m.role, "content": m.content} for m in messages)

    payload: dict[str, Any] = {"model": config.model, "messages": wire}
    for key in _PASSTHROUGH_PARAMS:
        if key in config.configurations:
            payload[key] = config.configurations[key]
    return payload


class ChatCompletionClient:
    """Sends a transcript to the completion endpoint and returns the reply."""

    def __init__(self, api_base: str, timeout_seconds: float = 120.0) -> None:
        self._url = api_base.rstrip("/") + "/chat/completions"
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def url(self) -> str:
        return self._url

    async def complete(
        self,
        config: AgentConfig,
        messages: list[ChatMessage],
        api_key: str,
    ) -> str:
        payload = build_payload(config, messages)
        headers = {"Authorization": f"Bearer {api_key}"}
        logger.info(
            "Chat request model=%s messages=%d url=%s",
            config.model, len(payload["messages"]), self._url,
        )
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as http:
                async with http.post(self._url, json=payload, headers=headers) as resp:
                    if resp.status >= 400:
                        body = await resp.text()
                        raise ChatTransportError(body[:300] or resp.reason or "", resp.status)
                    data = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise ChatTransportError(f"{type(exc).__name__}: {exc}") from exc
        except TimeoutError as exc:
            raise ChatTransportError("request timed out") from exc
        except ValueError as exc:
            raise ChatTransportError(f"response is not JSON: {exc}") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ChatTransportError("malformed response: no choices[0].message.content") from exc
        return str(content or "")
