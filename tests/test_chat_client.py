from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from atelier.engine.errors import ChatTransportError
from atelier.engine.models import AgentConfig, ChatMessage
from atelier.shared.services.chat_client import ChatCompletionClient, build_payload


def _config(**extra) -> AgentConfig:
    return AgentConfig(
        id="a1",
        name="Helper",
        configurations={"model": "openai/gpt-4o-mini", **extra},
    )


def test_build_payload_prepends_system_prompt_and_passes_params():
    config = _config(system_prompt="Be brief.", temperature=0.3, unrelated="x")
    messages = [ChatMessage("user", "hi"), ChatMessage("assistant", "hello")]

    payload = build_payload(config, messages)

    assert payload == {
        "model": "openai/gpt-4o-mini",
        "messages": [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ],
        "temperature": 0.3,
    }


class TestChatCompletionClient(AioHTTPTestCase):
    async def get_application(self):
        self.requests: list[dict] = []
        self.reply: web.Response = web.json_response(
            {"choices": [{"message": {"role": "assistant", "content": "pong"}}]}
        )

        async def completions(request: web.Request) -> web.Response:
            self.requests.append(
                {
                    "authorization": request.headers.get("Authorization"),
                    "body": await request.json(),
                }
            )
            return self.reply

        app = web.Application()
        app.router.add_post("/v1/chat/completions", completions)
        return app

    def _client(self) -> ChatCompletionClient:
        return ChatCompletionClient(str(self.server.make_url("/v1/")), timeout_seconds=5)

    async def test_complete_returns_reply_content(self):
        client = self._client()

        reply = await client.complete(_config(), [ChatMessage("user", "ping")], "sk-test")

        assert reply == "pong"
        assert client.url.endswith("/v1/chat/completions")
        (request,) = self.requests
        assert request["authorization"] == "Bearer sk-test"
        assert request["body"]["model"] == "openai/gpt-4o-mini"
        assert request["body"]["messages"] == [{"role": "user", "content": "ping"}]

    async def test_http_error_carries_status(self):
        self.reply = web.Response(status=500, text="upstream exploded")

        with pytest.raises(ChatTransportError) as info:
            await self._client().complete(_config(), [ChatMessage("user", "x")], "k")

        assert info.value.status == 500
        assert "upstream exploded" in str(info.value)

    async def test_malformed_response_is_rejected(self):
        self.reply = web.json_response({"choices": []})

        with pytest.raises(ChatTransportError) as info:
            await self._client().complete(_config(), [ChatMessage("user", "x")], "k")

        assert "malformed response" in str(info.value)

    async def test_non_json_response_is_rejected(self):
        self.reply = web.Response(text="<html>gateway</html>")

        with pytest.raises(ChatTransportError) as info:
            await self._client().complete(_config(), [ChatMessage("user", "x")], "k")

        assert "not JSON" in str(info.value)
