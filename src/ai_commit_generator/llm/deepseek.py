from __future__ import annotations

import logging

import httpx

from ..config import DEFAULT_TIMEOUT
from ..exceptions import ProviderError
from ..prompts import SYSTEM_INSTRUCTION, build_commit_prompt
from .base import GenerateRequest, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_MODEL = "deepseek-chat"
TEMPERATURE = 0.3


class DeepSeekProvider(LLMProvider):
    provider_id = "deepseek"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._model = model or DEFAULT_MODEL
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    async def generate_commit_message(self, request: GenerateRequest) -> str:
        prompt = build_commit_prompt(request.diff)
        logger.debug("DeepSeek request: model=%s prompt_chars=%d", self._model, len(prompt))
        try:
            resp = await self._client.post(
                f"{self._base_url}/v1/chat/completions",
                json={
                    "model": self._model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_INSTRUCTION},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": TEMPERATURE,
                },
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"DeepSeek API request failed: {e}") from e

        if not resp.is_success:
            raise ProviderError(f"DeepSeek API error: {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError("DeepSeek API returned an unexpected response.") from e
        return (content or "").strip()

    async def aclose(self) -> None:
        await self._client.aclose()
