from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ragchat.config import Settings
from ragchat.memory.store import CorpusState
from ragchat.models.types import EmbeddedDocument
from ragchat.services.documents import discover_document_paths, load_documents
from ragchat.services.embedder import Embedder
from ragchat.services.embedding_cache import EmbeddingCache, is_stale
from ragchat.services.metrics import begin_run, end_run, now, elapsed_ms
from ragchat.services.retriever import Corpus, build_corpus

logger = logging.getLogger(__name__)


def source_paths(settings: Settings) -> List[Path]:
    if settings.document_paths:
        return [Path(p) for p in settings.document_paths]
    return discover_document_paths(settings.documents_dir)


async def build_embedded_corpus(
    paths: Sequence[Path],
    cache: EmbeddingCache,
    embedder: Embedder,
    *,
    validate: bool = True,
) -> List[EmbeddedDocument]:
    """Cached corpus when usable; otherwise load, embed and re-cache the sources."""
    cached = cache.load()
    sources = None
    if cached is not None and validate:
        sources = load_documents(paths)
        if is_stale(cached, sources):
            logger.warning("cache: %s is out of date with the source documents; re-embedding", cache.path)
            cached = None
    if cached is not None:
        return cached

    if sources is None:
        sources = load_documents(paths)
    logger.info("Embedding %d documents...", len(sources))
    embedded = await embedder.embed_documents(sources)
    cache.save(embedded)
    logger.info("Embeddings ready.")
    return embedded


async def initialize_corpus(
    state: CorpusState,
    settings: Settings,
    cache: EmbeddingCache,
    embedder: Embedder,
) -> Optional[Corpus]:
    """Populate `state` once. Failures are logged and recorded on the state, not raised."""
    t0 = now()
    token = begin_run()
    try:
        docs = await build_embedded_corpus(source_paths(settings), cache, embedder, validate=settings.cache_validate)
        corpus = build_corpus(docs)
    except Exception as e:
        summary = end_run(token)
        logger.exception("corpus: initialization failed after %d ms", elapsed_ms(t0))
        state.set_failed(f"{e.__class__.__name__}: {e}", metrics=summary)
        return None
    summary = end_run(token)
    state.set_ready(corpus, metrics=summary)
    logger.info(
        "corpus: ready with %d documents (dim=%s) in %d ms; provider calls=%s",
        len(corpus), corpus.dimension, elapsed_ms(t0), summary.get("llm"),
    )
    return corpus
