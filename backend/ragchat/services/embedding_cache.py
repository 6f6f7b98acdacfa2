"""Flat-file cache of embedded documents.

The cache is a single JSON array of records ``{id, title, snippet, embedding,
sha256}``. It is always written whole; a partial update is never attempted.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import ValidationError

from ragchat.models.types import CacheRecord, Document, EmbeddedDocument

logger = logging.getLogger(__name__)


class EmbeddingCache:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[List[EmbeddedDocument]]:
        """Cached corpus, or None when the file is missing or unusable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("cache: no embeddings file at %s; embeddings will be computed", self.path)
            return None
        except OSError as e:
            logger.warning("cache: could not read %s: %s", self.path, e)
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("cache: %s is not valid JSON (%s); ignoring it", self.path, e)
            return None
        if not isinstance(data, list):
            logger.warning("cache: %s does not hold a list of records; ignoring it", self.path)
            return None
        try:
            docs = [CacheRecord.model_validate(item).to_document() for item in data]
        except ValidationError as e:
            logger.warning("cache: malformed record in %s: %s", self.path, e.errors()[:1])
            return None
        dims = {len(d.embedding) for d in docs}
        if len(dims) > 1 or 0 in dims:
            logger.warning("cache: inconsistent embedding dimensions %s in %s; ignoring it", sorted(dims), self.path)
            return None
        logger.info("Loaded %d embeddings from %s", len(docs), self.path)
        return docs

    def save(self, corpus: Sequence[EmbeddedDocument]) -> None:
        records = [CacheRecord.from_document(d).model_dump() for d in corpus]
        payload = json.dumps(records, indent=2, ensure_ascii=False)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise
        logger.info("Embeddings saved to %s", self.path)


def is_stale(cached: Sequence[EmbeddedDocument], sources: Sequence[Document]) -> bool:
    """True when the cached corpus no longer matches the source documents.

    Records written without a content hash are trusted as-is.
    """
    cached_ids = [d.id for d in cached]
    if sorted(cached_ids) != sorted(d.id for d in sources):
        return True
    hashes = {d.id: d.sha256 for d in sources}
    return any(d.sha256 is not None and d.sha256 != hashes.get(d.id) for d in cached)
