from __future__ import annotations

from ..config import DEFAULT_TIMEOUT
from ..exceptions import ConfigurationError
from .base import LLMProvider
from .deepseek import DeepSeekProvider
from .gemini import GeminiProvider
from .openai import OpenAIProvider

PROVIDERS: dict[str, type[LLMProvider]] = {
    OpenAIProvider.provider_id: OpenAIProvider,
    DeepSeekProvider.provider_id: DeepSeekProvider,
    GeminiProvider.provider_id: GeminiProvider,
}

DISPLAY_NAMES: dict[str, str] = {
    "openai": "OpenAI",
    "deepseek": "DeepSeek",
    "gemini": "Gemini",
}


def display_name(provider_id: str) -> str:
    return DISPLAY_NAMES.get(provider_id, provider_id)


def ensure_known(provider_id: str) -> type[LLMProvider]:
    try:
        return PROVIDERS[provider_id]
    except KeyError:
        raise ConfigurationError(
            f"Unknown provider: {provider_id}. "
            f"Available providers: {', '.join(PROVIDERS)}."
        ) from None


def create_provider(
    provider_id: str,
    api_key: str,
    model: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> LLMProvider:
    provider_cls = ensure_known(provider_id)
    return provider_cls(api_key=api_key, model=model, timeout=timeout)
