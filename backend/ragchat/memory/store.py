from typing import Any, Dict, Optional

from ragchat.errors import CorpusNotReady
from ragchat.services.retriever import Corpus

PENDING = "pending"
READY = "ready"
FAILED = "failed"


class CorpusState:
    """Process-wide holder for the corpus; written once by the init task, read by handlers."""

    def __init__(self) -> None:
        self.status: str = PENDING
        self.corpus: Optional[Corpus] = None
        self.error: Optional[str] = None
        self.init_metrics: Optional[Dict[str, Any]] = None

    def set_ready(self, corpus: Corpus, metrics: Optional[Dict[str, Any]] = None) -> None:
        self.corpus = corpus
        self.init_metrics = metrics
        self.status = READY

    def set_failed(self, error: str, metrics: Optional[Dict[str, Any]] = None) -> None:
        self.error = error
        self.init_metrics = metrics
        self.status = FAILED

    @property
    def ready(self) -> bool:
        return self.status == READY

    def require(self) -> Corpus:
        if self.status == READY and self.corpus is not None:
            return self.corpus
        if self.status == FAILED:
            raise CorpusNotReady("Document corpus failed to initialize")
        raise CorpusNotReady("Document corpus is still initializing")
