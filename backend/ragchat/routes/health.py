from fastapi import APIRouter, Depends

from ragchat.models.types import CorpusHealth, HealthResponse
from ragchat.routes.deps import Services, get_services

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health(services: Services = Depends(get_services)):
    state = services.corpus_state
    corpus = state.corpus
    return HealthResponse(
        status="ok" if state.ready else state.status,
        provider=services.provider.name,
        cache_file=str(services.cache.path),
        cache_present=services.cache.exists(),
        corpus=CorpusHealth(
            status=state.status,
            documents=len(corpus) if corpus is not None else 0,
            dimension=corpus.dimension if corpus is not None else None,
            error=state.error,
        ),
        last_init_metrics=state.init_metrics,
    )
