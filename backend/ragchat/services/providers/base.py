from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ragchat.models.types import ChatReply

INPUT_TYPES = {
    "document": "search_document",
    "query": "search_query",
}


class Provider:
    """Embedding + chat endpoints of an external model provider."""

    name = "provider"

    async def embed(self, texts: Sequence[str], *, model: str, input_type: str) -> List[List[float]]:
        raise NotImplementedError

    async def chat(
        self,
        message: str,
        *,
        model: str,
        preamble: str,
        temperature: float,
        documents: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> ChatReply:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
