import asyncio
import json

import httpx
import pytest

from ragchat import client
from ragchat.client import EMPTY_ANSWER, ask, render_reply
from ragchat.services.retry import RetryPolicy

FAST = RetryPolicy(max_attempts=3, base_delay_s=0)


def test_render_with_citations():
    out = render_reply({
        "text": "Darcy is proud.",
        "citations": [{"document_ids": ["pride_prejudice_analysis", "other"]}, {"document_ids": ["emma"]}],
    })
    assert out == (
        "Darcy is proud.\n\n---\n\n**Citations from Documents:**\n"
        "1. Source: pride_prejudice_analysis\n"
        "2. Source: emma\n"
    )


def test_render_without_text_or_citations():
    assert render_reply({}) == EMPTY_ANSWER
    assert render_reply({"text": "Hi", "citations": []}) == "Hi"


def test_ask_retries_server_errors():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"text": "ok", "citations": []})

    result = asyncio.run(ask("hi", "http://backend.test/generate", policy=FAST, transport=httpx.MockTransport(handler)))
    assert result == {"text": "ok", "citations": []}
    assert len(calls) == 3
    assert json.loads(calls[0].content) == {"prompt": "hi"}


def test_ask_does_not_retry_client_errors():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": "Prompt is required"})

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(ask("hi", "http://backend.test/generate", policy=FAST, transport=httpx.MockTransport(handler)))
    assert len(calls) == 1


def test_ask_gives_up_after_max_attempts():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(httpx.ConnectError):
        asyncio.run(ask("hi", "http://backend.test/generate", policy=FAST, transport=httpx.MockTransport(handler)))
    assert len(calls) == 3


def test_ask_rejects_non_object_body():
    def handler(request):
        return httpx.Response(200, json=[])

    with pytest.raises(ValueError):
        asyncio.run(ask("hi", "http://backend.test/generate", policy=FAST, transport=httpx.MockTransport(handler)))


def test_main_reports_unexpected_body_as_network_error(monkeypatch, capsys):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["not", "an", "object"]))

    def fake_ask(prompt, url):
        return ask(prompt, url, policy=FAST, transport=transport)

    monkeypatch.setattr(client, "ask", fake_ask)
    assert client.main(["hi", "--url", "http://backend.test/generate"]) == 1
    assert client.NETWORK_ERROR in capsys.readouterr().err
