from __future__ import annotations

import logging

import httpx
import openai
from openai import AsyncOpenAI

from ..config import DEFAULT_TIMEOUT
from ..exceptions import ProviderError
from ..prompts import build_commit_prompt
from .base import GenerateRequest, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
TEMPERATURE = 0.3


class OpenAIProvider(LLMProvider):
    provider_id = "openai"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._model = model or DEFAULT_MODEL
        # max_retries=0: one request per generation, failures surface immediately.
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=httpx.AsyncClient(timeout=timeout),
        )

    async def generate_commit_message(self, request: GenerateRequest) -> str:
        prompt = build_commit_prompt(request.diff)
        logger.debug("OpenAI request: model=%s prompt_chars=%d", self._model, len(prompt))
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                temperature=TEMPERATURE,
            )
        except openai.APIStatusError as e:
            raise ProviderError(f"OpenAI API error: {e.status_code}") from e
        except openai.APIError as e:
            raise ProviderError(f"OpenAI API request failed: {e}") from e

        try:
            content = response.choices[0].message.content
        except (IndexError, AttributeError, TypeError) as e:
            raise ProviderError("OpenAI API returned an unexpected response.") from e
        return (content or "").strip()

    async def aclose(self) -> None:
        await self._client.close()
