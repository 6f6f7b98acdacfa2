import logging
from typing import Any, Dict, List, Optional, Sequence

from ragchat.errors import UpstreamError
from ragchat.models.types import ChatReply, Document
from ragchat.services.embedder import Embedder, document_text
from ragchat.services.metrics import begin_run, current, elapsed_ms, end_run, now, record_stage
from ragchat.services.providers.base import Provider
from ragchat.services.retriever import Corpus, DEFAULT_TOP_K
from ragchat.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

PREAMBLE = (
    "You are a warm, highly knowledgeable literary critic and librarian named 'Bookworm Bot'. "
    "Your specialization is summarizing, analyzing themes, identifying characters, and recommending "
    "books across all genres and historical periods. When answering, provide insightful literary "
    "context and cite your sources (books, journals, or online articles) when possible. "
    "Ground your answer in the supplied documents and cite them."
)
TEMPERATURE = 0.3
HOLIDAY_PREAMBLE = (
    "You are 'Bookworm Bot', a cheerful librarian. Suggest cozy, festive books for the holiday "
    "season, with one sentence on why each is a good holiday read."
)
UPSTREAM_FAILURE = "Cohere request failed"


def documents_for_chat(docs: Sequence[Document]) -> List[Dict[str, Any]]:
    return [{"id": d.id, "title": d.title, "text": document_text(d)} for d in docs]


class ChatOrchestrator:
    """Turns a prompt + retrieved documents into one chat-provider call."""

    def __init__(
        self,
        provider: Provider,
        model: str,
        *,
        preamble: str = PREAMBLE,
        temperature: float = TEMPERATURE,
        policy: Optional[RetryPolicy] = None,
    ):
        self.provider = provider
        self.model = model
        self.preamble = preamble
        self.temperature = temperature
        self.policy = policy or RetryPolicy(max_attempts=1)

    async def answer(self, prompt: str, documents: Sequence[Document]) -> ChatReply:
        outcome = await self.policy.run(
            self.provider.chat,
            prompt,
            model=self.model,
            preamble=self.preamble,
            temperature=self.temperature,
            documents=documents_for_chat(documents),
        )
        if not outcome.ok:
            logger.error("chat: provider call failed after %d attempt(s): %r", outcome.attempts, outcome.error)
            raise UpstreamError(UPSTREAM_FAILURE) from outcome.error
        return outcome.value

    async def generate(self, prompt: str, corpus: Corpus, embedder: Embedder, k: int = DEFAULT_TOP_K) -> ChatReply:
        """received -> embedding_query -> retrieving -> generating -> responded; any failure -> failed.

        Stage timings go into the active metrics run; a request-scoped run is opened when none is.
        """
        t0 = now()
        token = begin_run() if current() is None else None
        state = "received"
        try:
            state, ts = "embedding_query", now()
            logger.info("generate: embedding user prompt: %r", prompt[:30])
            query_vec = await embedder.embed_query(prompt)
            record_stage(state, elapsed_ms(ts))

            state, ts = "retrieving", now()
            hits = corpus.search(query_vec, top_k=k)
            record_stage(state, elapsed_ms(ts))
            logger.info("generate: retrieved top %d documents scores=%s", len(hits), [round(s, 3) for _, s in hits])

            state, ts = "generating", now()
            reply = await self.answer(prompt, [d for d, _ in hits])
            record_stage(state, elapsed_ms(ts))
        except UpstreamError:
            logger.warning("generate: failed in state %s after %d ms", state, elapsed_ms(t0))
            raise
        except Exception as e:
            logger.exception("generate: failed in state %s after %d ms", state, elapsed_ms(t0))
            raise UpstreamError(UPSTREAM_FAILURE) from e
        finally:
            if token is not None:
                summary = end_run(token)
                logger.info("generate: stages_ms=%s", summary.get("stages_ms"))
        logger.info("generate: responded in %d ms (citations=%d)", elapsed_ms(t0), len(reply.citations))
        return reply
