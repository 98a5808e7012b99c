"""Tests for the async Graph API client and the api_call HTTP client."""

from __future__ import annotations

import json

import httpx
import pytest

from app.services.http_client import HttpxClient
from app.services.instagram_client import (
    InstagramAPIError,
    InstagramClient,
    PRIVATE_REPLY_MESSAGE_MAX_LENGTH,
    build_template_buttons,
)


class Recorder:
    """httpx MockTransport handler that records requests and replays a response."""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {"id": "ok_1"}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self):
        content = self.requests[-1].content
        return json.loads(content) if content else None


def make_client(recorder: Recorder) -> InstagramClient:
    return InstagramClient("tok_123", transport=httpx.MockTransport(recorder))


class TestInstagramClient:

    @pytest.mark.asyncio
    async def test_reply_to_comment(self):
        recorder = Recorder()
        result = await make_client(recorder).reply_to_comment("c1", "thanks!")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path.endswith("/c1/replies")
        assert request.headers["Authorization"] == "Bearer tok_123"
        assert recorder.last_json == {"message": "thanks!"}
        assert result == {"id": "ok_1"}

    @pytest.mark.asyncio
    async def test_moderation_endpoints(self):
        recorder = Recorder(body={"success": True})
        client = make_client(recorder)

        await client.delete_comment("c1")
        await client.hide_comment("c2")
        await client.like_comment("c3")

        delete, hide, like = recorder.requests
        assert delete.method == "DELETE" and delete.url.path.endswith("/c1")
        assert hide.method == "POST" and json.loads(hide.content) == {"hide": True}
        assert like.url.path.endswith("/c3/likes")

    @pytest.mark.asyncio
    async def test_direct_message_payload(self):
        recorder = Recorder()
        await make_client(recorder).send_direct_message("s1", "hello")

        assert recorder.requests[0].url.path.endswith("/me/messages")
        assert recorder.last_json == {"recipient": {"id": "s1"}, "message": {"text": "hello"}}

    @pytest.mark.asyncio
    async def test_private_reply_addresses_comment_and_truncates(self):
        recorder = Recorder()
        await make_client(recorder).send_private_reply("c1", "x" * 600)

        payload = recorder.last_json
        assert payload["recipient"] == {"comment_id": "c1"}
        assert len(payload["message"]["text"]) == PRIVATE_REPLY_MESSAGE_MAX_LENGTH
        assert payload["message"]["text"].endswith("...")

    @pytest.mark.asyncio
    async def test_button_template(self):
        recorder = Recorder()
        await make_client(recorder).send_button_template(
            "s1",
            "Pick one",
            "subtitle",
            [
                {"type": "web_url", "title": "Shop now", "url": "https://shop.example"},
                {"type": "postback", "title": "Talk to a human please", "payload": "HUMAN"},
            ],
        )

        attachment = recorder.last_json["message"]["attachment"]
        element = attachment["payload"]["elements"][0]
        assert attachment["payload"]["template_type"] == "generic"
        assert element["title"] == "Pick one"
        assert element["buttons"] == [
            {"type": "web_url", "url": "https://shop.example", "title": "Shop now"},
            {"type": "postback", "payload": "HUMAN", "title": "Talk to a human plea"},
        ]

    @pytest.mark.asyncio
    async def test_error_includes_graph_api_message(self):
        recorder = Recorder(status_code=400, body={"error": {"message": "Invalid OAuth access token.", "code": 190}})

        with pytest.raises(InstagramAPIError) as excinfo:
            await make_client(recorder).reply_to_comment("c1", "hi")

        assert str(excinfo.value) == "Failed to reply to comment: Invalid OAuth access token."
        assert excinfo.value.status_code == 400

    @pytest.mark.asyncio
    async def test_network_error_wrapped(self):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = InstagramClient("tok", transport=httpx.MockTransport(boom))
        with pytest.raises(InstagramAPIError, match="Failed to send DM: connection refused"):
            await client.send_direct_message("s1", "hi")


class TestBuildTemplateButtons:

    def test_drops_invalid_and_caps_at_three(self):
        buttons = [
            {"type": "web_url", "title": "A", "url": "https://a"},
            {"type": "web_url", "title": "missing url"},
            {"type": "postback", "title": "B", "payload": "B"},
            {"title": "C", "url": "https://c"},
            {"type": "postback", "title": "D", "payload": "D"},
            "not a button",
        ]
        result = build_template_buttons(buttons)
        assert [button["title"] for button in result] == ["A", "B", "C"]
        assert result[2]["type"] == "web_url"


class TestHttpxClient:

    @pytest.mark.asyncio
    async def test_returns_json_body(self):
        recorder = Recorder(body={"received": True})
        client = HttpxClient(transport=httpx.MockTransport(recorder))

        result = await client.request("post", "https://hooks.example/in", json={"comment_id": "c1"})

        assert result == {"received": True}
        assert recorder.requests[0].method == "POST"
        assert recorder.last_json == {"comment_id": "c1"}

    @pytest.mark.asyncio
    async def test_raises_on_http_error(self):
        client = HttpxClient(transport=httpx.MockTransport(lambda request: httpx.Response(500, text="down")))
        with pytest.raises(httpx.HTTPStatusError):
            await client.request("POST", "https://hooks.example/in", json={})

    @pytest.mark.asyncio
    async def test_text_body(self):
        client = HttpxClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="accepted")))
        assert await client.request("GET", "https://hooks.example/in") == "accepted"
