from ragchat.config import Settings
from ragchat.services.providers.base import Provider, INPUT_TYPES
from ragchat.services.providers.cohere import CohereProvider
from ragchat.services.providers.offline import OfflineProvider


def get_provider(settings: Settings) -> Provider:
    if settings.offline:
        return OfflineProvider()
    return CohereProvider(
        api_key=settings.cohere_api_key,
        base_url=settings.cohere_base_url,
        timeout=settings.provider_timeout_s,
    )


__all__ = ["Provider", "CohereProvider", "OfflineProvider", "INPUT_TYPES", "get_provider"]
