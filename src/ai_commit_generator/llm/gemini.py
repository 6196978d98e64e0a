from __future__ import annotations

import logging

import httpx
from google import genai
from google.genai import errors, types

from ..config import DEFAULT_TIMEOUT
from ..exceptions import ProviderError
from ..prompts import build_commit_prompt
from .base import GenerateRequest, LLMProvider

logger = logging.getLogger(__name__)

GENERATE_ACTION = "generateContent"


class GeminiProvider(LLMProvider):
    """Gemini backend; picks a model from the account's model list on every call.

    The model list is paginated by the SDK. It is drained in full before
    concluding that no model supports content generation.
    """

    provider_id = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        # Pinning a model skips discovery.
        self._model = model
        self._timeout = timeout
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self._timeout * 1000)),
            )
        return self._client

    async def _select_model(self) -> str:
        client = self._get_client()
        models = []
        async for model in await client.aio.models.list():
            logger.debug("Discovered Gemini model: %s", model.name)
            models.append(model)

        for model in models:
            if model.name and GENERATE_ACTION in (model.supported_actions or []):
                return model.name
        raise ProviderError("No Gemini models available for this API key.")

    async def generate_commit_message(self, request: GenerateRequest) -> str:
        prompt = build_commit_prompt(request.diff)
        client = self._get_client()
        try:
            model_id = self._model or await self._select_model()
            logger.debug("Gemini request: model=%s prompt_chars=%d", model_id, len(prompt))
            response = await client.aio.models.generate_content(
                model=model_id,
                contents=[
                    types.Content(role="user", parts=[types.Part(text=prompt)]),
                ],
            )
        except errors.UnknownApiResponseError as e:
            raise ProviderError("Gemini returned an unexpected response.") from e
        except errors.APIError as e:
            raise ProviderError(f"Gemini API error: {e.code}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Gemini API request failed: {e}") from e

        text = getattr(response, "text", None)
        if not text:
            raise ProviderError("Gemini returned empty response.")
        return text.strip()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aio.aclose()
