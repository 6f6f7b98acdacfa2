from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union
import httpx
from pydantic import BaseModel, Field, ValidationError

from ragchat.config import DEFAULT_COHERE_BASE_URL
from ragchat.errors import ProviderError
from ragchat.models.types import ChatReply, Citation
from ragchat.services.metrics import now, elapsed_ms, record_http, record_llm
from ragchat.services.providers.base import Provider

EMBED_PATH = "/v1/embed"
CHAT_PATH = "/v1/chat"


class _EmbedResponse(BaseModel):
    # {"embeddings": [[...]]}, or {"embeddings": {"float": [[...]]}} when embedding_types is requested
    embeddings: Union[List[List[float]], Dict[str, List[List[float]]]] = Field(default_factory=list)

    def vectors(self) -> List[List[float]]:
        if isinstance(self.embeddings, dict):
            return self.embeddings.get("float") or []
        return self.embeddings


class _ChatResponse(BaseModel):
    text: Optional[str] = None
    citations: Optional[List[Citation]] = None

    def to_reply(self) -> ChatReply:
        return ChatReply(text=self.text or "", citations=self.citations or [])


class CohereProvider(Provider):
    """Cohere v1 REST API (embed + chat).
    Docs:
      - https://docs.cohere.com/v1/reference/embed
      - https://docs.cohere.com/v1/reference/chat
    """

    name = "cohere"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_COHERE_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, headers=headers, transport=transport)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        t0 = now()
        try:
            resp = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise ProviderError(f"{path}: {e.__class__.__name__}: {e}", status_code=None) from e
        record_http(self.name, resp.status_code, elapsed_ms(t0))
        if resp.status_code >= 400:
            raise ProviderError(f"{path} returned {resp.status_code}: {resp.text[:300]}", status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(f"{path} returned a non-JSON body", status_code=resp.status_code) from e
        if not isinstance(data, dict):
            raise ProviderError(f"{path} returned an unexpected payload", status_code=resp.status_code)
        return data

    async def embed(self, texts: Sequence[str], *, model: str, input_type: str) -> List[List[float]]:
        payload = {"texts": list(texts), "model": model, "input_type": input_type}
        t0 = now()
        try:
            data = await self._post(EMBED_PATH, payload)
            vectors = _EmbedResponse.model_validate(data).vectors()
        except ValidationError as e:
            record_llm(self.name, model, items=len(texts), latency_ms=elapsed_ms(t0), ok=False)
            raise ProviderError(f"{EMBED_PATH} returned malformed embeddings: {e.errors()[:1]}", status_code=200) from e
        except ProviderError:
            record_llm(self.name, model, items=len(texts), latency_ms=elapsed_ms(t0), ok=False)
            raise
        record_llm(self.name, model, items=len(texts), latency_ms=elapsed_ms(t0), ok=True)
        return vectors

    async def chat(
        self,
        message: str,
        *,
        model: str,
        preamble: str,
        temperature: float,
        documents: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> ChatReply:
        payload: Dict[str, Any] = {
            "model": model,
            "message": message,
            "preamble": preamble,
            "temperature": temperature,
        }
        if documents:
            payload["documents"] = list(documents)
        t0 = now()
        try:
            data = await self._post(CHAT_PATH, payload)
            reply = _ChatResponse.model_validate(data).to_reply()
        except ValidationError as e:
            record_llm(self.name, model, latency_ms=elapsed_ms(t0), ok=False)
            raise ProviderError(f"{CHAT_PATH} returned a malformed reply: {e.errors()[:1]}", status_code=200) from e
        except ProviderError:
            record_llm(self.name, model, latency_ms=elapsed_ms(t0), ok=False)
            raise
        record_llm(self.name, model, latency_ms=elapsed_ms(t0), ok=True)
        return reply

    async def aclose(self) -> None:
        await self._client.aclose()
