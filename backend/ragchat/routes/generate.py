from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ragchat.models.types import ChatReply, ErrorResponse, HolidayResponse
from ragchat.routes.deps import Services, get_corpus, get_services, json_body

router = APIRouter()

PROMPT_REQUIRED = "Prompt is required"

HOLIDAY_PROMPT = "Recommend three books to read over the holidays."

_ERRORS = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _prompt(body) -> Optional[str]:
    """The prompt exactly as sent, or None when it is missing, blank or not a string."""
    value = (body or {}).get("prompt")
    if isinstance(value, str) and value.strip():
        return value
    return None


@router.post("/generate", response_model=ChatReply, responses=_ERRORS)
async def generate(request: Request, services: Services = Depends(get_services)):
    prompt = _prompt(await json_body(request))
    if prompt is None:
        return JSONResponse(status_code=400, content={"error": PROMPT_REQUIRED})
    corpus = get_corpus(request)
    return await services.orchestrator.generate(prompt, corpus, services.embedder, k=services.settings.top_k)


@router.post("/holiday", response_model=HolidayResponse, responses=_ERRORS)
async def holiday(request: Request, services: Services = Depends(get_services)):
    """Single-shot generation without retrieval."""
    prompt = _prompt(await json_body(request)) or HOLIDAY_PROMPT
    reply = await services.holiday.answer(prompt, [])
    return HolidayResponse(text=reply.text)
