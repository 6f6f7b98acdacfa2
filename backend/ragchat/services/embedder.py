import asyncio
import logging
import math
from typing import Awaitable, Callable, List, Optional, Sequence
import numpy as np

from ragchat.errors import EmbeddingError
from ragchat.models.types import Document, EmbeddedDocument
from ragchat.services.providers.base import INPUT_TYPES, Provider
from ragchat.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

BATCH_SIZE = 96
BATCH_DELAY_S = 10.0  # pause between batches to stay under provider rate limits


def document_text(doc: Document) -> str:
    return f"{doc.title}. {doc.text}"


class Embedder:
    def __init__(
        self,
        provider: Provider,
        model: str,
        *,
        batch_size: int = BATCH_SIZE,
        batch_delay_s: float = BATCH_DELAY_S,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.model = model
        self.batch_size = max(1, batch_size)
        self.batch_delay_s = batch_delay_s
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def embed(self, texts: Sequence[str], purpose: str = "document") -> np.ndarray:
        if purpose not in INPUT_TYPES:
            raise ValueError(f"purpose must be one of {sorted(INPUT_TYPES)}, got {purpose!r}")
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)
        input_type = INPUT_TYPES[purpose]
        total = math.ceil(len(texts) / self.batch_size)
        vectors: List[List[float]] = []
        for n, start in enumerate(range(0, len(texts), self.batch_size), 1):
            batch = list(texts[start:start + self.batch_size])
            if purpose == "document":
                logger.info("Embedding batch %d of %d...", n, total)
            outcome = await self.policy.run(self.provider.embed, batch, model=self.model, input_type=input_type)
            if not outcome.ok:
                raise EmbeddingError(
                    f"embedding batch {n}/{total} failed after {outcome.attempts} attempt(s): {outcome.error}"
                ) from outcome.error
            got = outcome.value
            if len(got) != len(batch):
                raise EmbeddingError(f"provider returned {len(got)} embeddings for {len(batch)} texts")
            vectors.extend(got)
            if n < total and self.batch_delay_s > 0:
                await self._sleep(self.batch_delay_s)
        try:
            out = np.array(vectors, dtype=np.float32)
        except ValueError as e:
            raise EmbeddingError("provider returned embeddings of differing dimensionality") from e
        if out.ndim != 2 or out.shape[1] == 0:
            raise EmbeddingError("provider returned empty or malformed embeddings")
        return out

    async def embed_query(self, prompt: str) -> np.ndarray:
        return (await self.embed([prompt], purpose="query"))[0]

    async def embed_documents(self, docs: Sequence[Document]) -> List[EmbeddedDocument]:
        embs = await self.embed([document_text(d) for d in docs], purpose="document")
        return [
            EmbeddedDocument(id=d.id, title=d.title, text=d.text, sha256=d.sha256, embedding=embs[i].tolist())
            for i, d in enumerate(docs)
        ]
