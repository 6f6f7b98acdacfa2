import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ragchat.config import Settings, configure_logging, load_settings
from ragchat.errors import CorpusNotReady, UpstreamError
from ragchat.memory.store import CorpusState
from ragchat.routes import generate, health
from ragchat.routes.deps import Services
from ragchat.services.corpus import initialize_corpus
from ragchat.services.embedder import Embedder
from ragchat.services.embedding_cache import EmbeddingCache
from ragchat.services.providers import Provider, get_provider
from ragchat.services.qa import HOLIDAY_PREAMBLE, ChatOrchestrator
from ragchat.services.retry import RetryPolicy

logger = logging.getLogger(__name__)


def build_services(settings: Settings, provider: Optional[Provider] = None) -> Services:
    provider = provider or get_provider(settings)
    policy = RetryPolicy(
        max_attempts=settings.provider_max_attempts,
        base_delay_s=settings.provider_base_delay_s,
    )
    embedder = Embedder(
        provider,
        settings.embed_model,
        batch_size=settings.embed_batch_size,
        batch_delay_s=settings.embed_batch_delay_s,
        policy=policy,
    )
    return Services(
        settings=settings,
        provider=provider,
        embedder=embedder,
        orchestrator=ChatOrchestrator(provider, settings.chat_model, temperature=settings.chat_temperature, policy=policy),
        holiday=ChatOrchestrator(provider, settings.chat_model, preamble=HOLIDAY_PREAMBLE, temperature=0.7, policy=policy),
        cache=EmbeddingCache(settings.embeddings_file),
        corpus_state=CorpusState(),
    )


async def _initialize(services: Services) -> None:
    await initialize_corpus(services.corpus_state, services.settings, services.cache, services.embedder)


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: Services = app.state.services
    task = None
    if services.settings.background_init:
        task = asyncio.create_task(_initialize(services))
    else:
        await _initialize(services)
    try:
        yield
    finally:
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await services.provider.aclose()


def create_app(settings: Optional[Settings] = None, provider: Optional[Provider] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Bookworm RAG Chat Backend", lifespan=lifespan)
    app.state.services = build_services(settings, provider)
    logger.info("app: provider=%s embed_model=%s chat_model=%s", app.state.services.provider.name,
                settings.embed_model, settings.chat_model)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CorpusNotReady)
    async def _corpus_not_ready(request: Request, exc: CorpusNotReady):
        return JSONResponse(status_code=503, content={"error": str(exc)}, headers={"Retry-After": "5"})

    @app.exception_handler(UpstreamError)
    async def _upstream_failed(request: Request, exc: UpstreamError):
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(health.router)
    app.include_router(generate.router)

    @app.get("/")
    def root():
        return {"message": "Bookworm RAG chat backend running"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.services.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
