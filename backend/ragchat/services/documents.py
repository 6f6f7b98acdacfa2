from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from ragchat.models.types import Document

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_PATTERNS = ("*.txt", "*.md")
_EXT_RE = re.compile(r"\.(md|txt)$", re.IGNORECASE)
_WORD_START_RE = re.compile(r"\b\w")


def document_id(path: PathLike) -> str:
    """Filename with a trailing .txt/.md removed."""
    return _EXT_RE.sub("", Path(path).name)


def document_title(doc_id: str) -> str:
    # Upper-cases word starts only; the rest of each word is left as written.
    spaced = doc_id.replace("_", " ")
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), spaced)


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def discover_document_paths(directory: PathLike, patterns: Iterable[str] = DEFAULT_PATTERNS) -> List[Path]:
    root = Path(directory)
    if not root.is_dir():
        logger.warning("documents: directory %s does not exist", root)
        return []
    found = set()
    for pattern in patterns:
        found.update(p for p in root.glob(pattern) if p.is_file())
    return sorted(found)


def load_documents(paths: Sequence[PathLike]) -> List[Document]:
    """Read every path into a Document. Unreadable files are logged and skipped."""
    documents: List[Document] = []
    seen: set[str] = set()
    for path in paths:
        try:
            content = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("documents: error reading %s: %s", path, e)
            continue
        doc_id = document_id(path)
        if doc_id in seen:
            logger.warning("documents: duplicate id %r from %s; skipping", doc_id, path)
            continue
        seen.add(doc_id)
        text = content.strip()
        documents.append(Document(
            id=doc_id,
            title=document_title(doc_id),
            text=text,
            sha256=content_hash(text),
        ))
    logger.info("Loaded %d documents", len(documents))
    return documents
