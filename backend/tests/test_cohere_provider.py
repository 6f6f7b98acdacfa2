import asyncio
import json

import httpx
import pytest

from ragchat.errors import ProviderError
from ragchat.services.metrics import begin_run, end_run
from ragchat.services.providers.cohere import CohereProvider


def _provider(handler):
    return CohereProvider(api_key="test-key", base_url="https://api.example.test", transport=httpx.MockTransport(handler))


def test_embed_request_and_response():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "x", "embeddings": [[0.1, 0.2], [0.3, 0.4]], "texts": ["a", "b"]})

    vecs = asyncio.run(_provider(handler).embed(["a", "b"], model="embed-multilingual-v3.0", input_type="search_document"))
    assert vecs == [[0.1, 0.2], [0.3, 0.4]]
    assert seen["path"] == "/v1/embed"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"] == {"texts": ["a", "b"], "model": "embed-multilingual-v3.0", "input_type": "search_document"}


def test_embed_typed_embeddings_shape():
    def handler(request):
        return httpx.Response(200, json={"embeddings": {"float": [[1.0, 0.0]]}})

    assert asyncio.run(_provider(handler).embed(["a"], model="m", input_type="search_query")) == [[1.0, 0.0]]


def test_chat_payload_and_reply():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "text": "Elizabeth misjudges Darcy.",
            "generation_id": "g1",
            "citations": [{"start": 0, "end": 9, "text": "Elizabeth", "document_ids": ["pride"]}],
        })

    docs = [{"id": "pride", "title": "Pride", "text": "Pride. Elizabeth and Darcy."}]
    reply = asyncio.run(_provider(handler).chat("Who?", model="command-r-plus", preamble="Be brief.", temperature=0.3, documents=docs))
    assert seen["path"] == "/v1/chat"
    assert seen["body"] == {
        "model": "command-r-plus",
        "message": "Who?",
        "preamble": "Be brief.",
        "temperature": 0.3,
        "documents": docs,
    }
    assert reply.text == "Elizabeth misjudges Darcy."
    assert reply.citations[0].document_ids == ["pride"]


def test_chat_without_citations_defaults_to_empty_list():
    def handler(request):
        body = json.loads(request.content)
        assert "documents" not in body
        return httpx.Response(200, json={"text": "Hello", "citations": None})

    reply = asyncio.run(_provider(handler).chat("hi", model="m", preamble="p", temperature=0.7))
    assert reply.text == "Hello"
    assert reply.citations == []


def test_http_error_status_is_carried():
    def handler(request):
        return httpx.Response(429, json={"message": "too many requests"})

    with pytest.raises(ProviderError) as ei:
        asyncio.run(_provider(handler).embed(["a"], model="m", input_type="search_document"))
    assert ei.value.status_code == 429


def test_transport_error_has_no_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError) as ei:
        asyncio.run(_provider(handler).chat("hi", model="m", preamble="p", temperature=0.3))
    assert ei.value.status_code is None


def test_malformed_embeddings_raise():
    def handler(request):
        return httpx.Response(200, json={"embeddings": "nope"})

    with pytest.raises(ProviderError):
        asyncio.run(_provider(handler).embed(["a"], model="m", input_type="search_document"))


def test_calls_are_recorded_in_metrics_run():
    def handler(request):
        if request.url.path == "/v1/embed":
            return httpx.Response(200, json={"embeddings": [[1.0]]})
        return httpx.Response(503, text="unavailable")

    async def scenario():
        token = begin_run()
        p = _provider(handler)
        await p.embed(["a"], model="m", input_type="search_document")
        with pytest.raises(ProviderError):
            await p.chat("hi", model="c", preamble="p", temperature=0.3)
        return end_run(token)

    summary = asyncio.run(scenario())
    assert summary["provider"]["cohere"]["status"] == {"200": 1, "503": 1}
    assert summary["llm"]["cohere:m"]["calls"] == 1
    assert summary["llm"]["cohere:c"]["errors"] == 1


def test_chat_citation_fields_are_kept():
    citation = {"start": 0, "end": 5, "text": "Darcy", "document_ids": ["pride"], "type": "TEXT_CONTENT"}

    def handler(request):
        return httpx.Response(200, json={"text": "Darcy is proud.", "citations": [citation]})

    reply = asyncio.run(_provider(handler).chat("Who?", model="m", preamble="p", temperature=0.3))
    assert reply.model_dump()["citations"] == [citation]
