from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request

from ragchat.config import Settings
from ragchat.memory.store import CorpusState
from ragchat.services.embedder import Embedder
from ragchat.services.embedding_cache import EmbeddingCache
from ragchat.services.providers.base import Provider
from ragchat.services.qa import ChatOrchestrator
from ragchat.services.retriever import Corpus


@dataclass
class Services:
    settings: Settings
    provider: Provider
    embedder: Embedder
    orchestrator: ChatOrchestrator
    holiday: ChatOrchestrator
    cache: EmbeddingCache
    corpus_state: CorpusState


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_corpus(request: Request) -> Corpus:
    # Raises CorpusNotReady (503) until initialization has finished
    return get_services(request).corpus_state.require()


async def json_body(request: Request) -> Optional[Dict[str, Any]]:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
