from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_COHERE_BASE_URL = "https://api.cohere.com"
DEFAULT_EMBED_MODEL = "embed-multilingual-v3.0"
DEFAULT_CHAT_MODEL = "command-r-plus"


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("config: %s=%r is not an integer; using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("config: %s=%r is not a number; using %s", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    cohere_api_key: Optional[str] = None
    cohere_base_url: str = DEFAULT_COHERE_BASE_URL
    embed_model: str = DEFAULT_EMBED_MODEL
    chat_model: str = DEFAULT_CHAT_MODEL
    chat_temperature: float = 0.3
    top_k: int = 5
    embed_batch_size: int = 96
    embed_batch_delay_s: float = 10.0
    documents_dir: str = "./documents"
    document_paths: Tuple[str, ...] = ()
    embeddings_file: str = "./documents/embeddings.json"
    cache_validate: bool = True
    provider_max_attempts: int = 3
    provider_base_delay_s: float = 0.5
    provider_timeout_s: float = 60.0
    background_init: bool = True
    allow_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000

    @property
    def offline(self) -> bool:
        return not self.cohere_api_key

    def origins(self) -> List[str]:
        return list(self.allow_origins) or ["*"]


def load_settings() -> Settings:
    """Read settings from the environment (and a local .env file, if present)."""
    load_dotenv()
    return Settings(
        cohere_api_key=_env_str("COHERE_API_KEY") or None,
        cohere_base_url=_env_str("COHERE_BASE_URL", DEFAULT_COHERE_BASE_URL).rstrip("/"),
        embed_model=_env_str("EMBED_MODEL", DEFAULT_EMBED_MODEL),
        chat_model=_env_str("CHAT_MODEL", DEFAULT_CHAT_MODEL),
        chat_temperature=_env_float("CHAT_TEMPERATURE", 0.3),
        top_k=max(1, _env_int("TOP_K", 5)),
        embed_batch_size=max(1, _env_int("EMBED_BATCH_SIZE", 96)),
        embed_batch_delay_s=max(0.0, _env_float("EMBED_BATCH_DELAY_S", 10.0)),
        documents_dir=_env_str("DOCUMENTS_DIR", "./documents"),
        document_paths=_env_list("DOCUMENT_PATHS"),
        embeddings_file=_env_str("EMBEDDINGS_FILE", "./documents/embeddings.json"),
        cache_validate=_env_bool("CACHE_VALIDATE", True),
        provider_max_attempts=max(1, _env_int("PROVIDER_MAX_ATTEMPTS", 3)),
        provider_base_delay_s=max(0.0, _env_float("PROVIDER_BASE_DELAY_S", 0.5)),
        provider_timeout_s=_env_float("PROVIDER_TIMEOUT_S", 60.0),
        background_init=_env_bool("BACKGROUND_INIT", True),
        allow_origins=_env_list("ALLOW_ORIGINS") or ("*",),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        host=_env_str("HOST", "0.0.0.0"),
        port=_env_int("PORT", 5000),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
