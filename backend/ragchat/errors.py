from __future__ import annotations

from typing import Optional


class RagChatError(Exception):
    """Base class for errors raised by the chat backend."""


class ProviderError(RagChatError):
    """An outbound provider call failed.

    status_code is None for transport failures (connect/read errors, timeouts).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, provider: str = "cohere"):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider


class EmbeddingError(RagChatError):
    pass


class UpstreamError(RagChatError):
    """Generic failure surfaced to HTTP callers; never carries provider internals."""


class CorpusNotReady(RagChatError):
    pass
