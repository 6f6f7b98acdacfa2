import hashlib
import re
from typing import Any, Dict, List, Optional, Sequence
import numpy as np

from ragchat.models.types import ChatReply, Citation
from ragchat.services.metrics import record_fallback
from ragchat.services.providers.base import Provider

OFFLINE_DIM = 1024  # same width as embed-multilingual-v3.0
SNIPPET_CHARS = 400

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _bucket(token: str) -> int:
    return int(hashlib.sha256(token.encode("utf-8")).hexdigest()[:8], 16)


def _fallback_embed(text: str, dim: int = OFFLINE_DIM) -> List[float]:
    # Signed feature hashing over lowercase tokens: texts sharing words score higher
    v = np.zeros(dim, dtype=np.float32)
    for tok in _TOKEN_RE.findall(text.lower()):
        h = _bucket(tok)
        v[h % dim] += 1.0 if (h >> 31) & 1 else -1.0
    if not v.any():
        # No tokens: seeded random vector, never zero-magnitude
        rng = np.random.default_rng(_bucket(text))
        v = rng.random(dim, dtype=np.float32)
    v = v / (np.linalg.norm(v) + 1e-8)
    return v.tolist()


def _first_sentences(text: str, limit: int = SNIPPET_CHARS) -> str:
    body = " ".join(text.split())
    if len(body) <= limit:
        return body
    cut = body.rfind(". ", 0, limit)
    return body[: cut + 1] if cut > 0 else body[:limit] + "..."


class OfflineProvider(Provider):
    """Deterministic stand-in used when no provider API key is configured."""

    name = "offline"

    def __init__(self, dim: int = OFFLINE_DIM):
        self.dim = dim

    async def embed(self, texts: Sequence[str], *, model: str, input_type: str) -> List[List[float]]:
        record_fallback("embed")
        return [_fallback_embed(t, self.dim) for t in texts]

    async def chat(
        self,
        message: str,
        *,
        model: str,
        preamble: str,
        temperature: float,
        documents: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> ChatReply:
        record_fallback("chat")
        if not documents:
            return ChatReply(text="Offline mode: set COHERE_API_KEY to enable generated answers.")
        top = documents[0]
        snippet = _first_sentences(str(top.get("text", "")))
        doc_id = str(top.get("id", "doc_0"))
        text = f"From {top.get('title') or doc_id}: {snippet}"
        start = text.index(snippet)
        cit = Citation(start=start, end=start + len(snippet), text=snippet, document_ids=[doc_id])
        return ChatReply(text=text, citations=[cit])
