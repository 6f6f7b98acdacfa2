from typing import List, Sequence, Tuple
import numpy as np
from ragchat.models.types import Document, EmbeddedDocument
from ragchat.services.similarity import VectorLike, cosine_scores, row_norms

DEFAULT_TOP_K = 5


class Corpus:
    """Read-only set of embedded documents with a precomputed (N, D) matrix."""

    def __init__(self, documents: Sequence[EmbeddedDocument]):
        self.documents: Tuple[EmbeddedDocument, ...] = tuple(documents)
        if self.documents:
            dims = {len(d.embedding) for d in self.documents}
            if len(dims) != 1:
                raise ValueError(f"embeddings have mixed dimensionality: {sorted(dims)}")
            self.embeddings = np.array([d.embedding for d in self.documents], dtype=np.float32)
        else:
            self.embeddings = np.zeros((0, 0), dtype=np.float32)
        self.embeddings.setflags(write=False)
        self.norms = row_norms(self.embeddings) if len(self.documents) else np.zeros(0, dtype=np.float32)

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self):
        return iter(self.documents)

    @property
    def dimension(self):
        return int(self.embeddings.shape[1]) if len(self.documents) else None

    def search(self, query_vec: VectorLike, top_k: int = DEFAULT_TOP_K) -> List[Tuple[EmbeddedDocument, float]]:
        if top_k <= 0 or not self.documents:
            return []
        sims = cosine_scores(query_vec, self.embeddings, self.norms)
        # NaN (zero-magnitude rows) ranks last; stable sort keeps corpus order on ties
        keys = np.where(np.isnan(sims), np.inf, -sims)
        idx = np.argsort(keys, kind="stable")[:top_k]
        return [(self.documents[i], float(sims[i])) for i in idx]


def build_corpus(documents: Sequence[EmbeddedDocument]) -> Corpus:
    return Corpus(documents)


def search(query_vec: VectorLike, corpus: Corpus, k: int = DEFAULT_TOP_K) -> List[Tuple[EmbeddedDocument, float]]:
    return corpus.search(query_vec, top_k=k)


def top_k(query_vec: VectorLike, corpus: Corpus, k: int = DEFAULT_TOP_K) -> List[Document]:
    """The k documents most similar to query_vec, best first."""
    return [doc for doc, _ in corpus.search(query_vec, top_k=k)]
