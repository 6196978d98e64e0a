from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .config import Config, CredentialStore
from .exceptions import ConfigurationError, ProviderError, RepositoryError
from .git import get_staged_diff
from .llm.base import GenerateRequest, LLMProvider, credential_key
from .llm.registry import create_provider, display_name, ensure_known

logger = logging.getLogger(__name__)

NO_STAGED_CHANGES = "No staged changes found."


class Outcome(Enum):
    SUCCEEDED = "succeeded"
    DIFF_EMPTY = "diff_empty"
    DIFF_ERROR = "diff_error"
    CREDENTIAL_MISSING = "credential_missing"
    PROVIDER_FAILED = "provider_failed"


@dataclass(frozen=True)
class GenerationResult:
    outcome: Outcome
    message: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        """True for outcomes that are not failures (success or nothing staged)."""
        return self.outcome in (Outcome.SUCCEEDED, Outcome.DIFF_EMPTY)


class CommitMessageGenerator:
    """Turns the staged diff of a workspace into a commit message.

    Every invocation is independent: it reads the diff, resolves the
    credential, builds a fresh provider and closes it again. Failures are
    returned as a ``GenerationResult`` and never raised.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        config: Config,
        diff_source: Callable[[str | Path], str] = get_staged_diff,
        provider_factory: Callable[..., LLMProvider] = create_provider,
    ) -> None:
        self._credentials = credentials
        self._config = config
        self._diff_source = diff_source
        self._provider_factory = provider_factory

    def resolve_credential(self, provider_id: str) -> str | None:
        return self._credentials.get(credential_key(provider_id)) or self._config.resolve_token(
            provider_id
        )

    def _missing_credential(self, provider_id: str) -> ConfigurationError:
        return ConfigurationError(
            f"{display_name(provider_id)} API key not set. "
            f"Run: ai-commit set-key {provider_id} "
            f"(or set env var {self._config.token_env_var(provider_id)})"
        )

    async def generate(
        self,
        provider_id: str,
        workspace: str | Path = ".",
        model: str | None = None,
    ) -> GenerationResult:
        try:
            diff = await asyncio.to_thread(self._diff_source, workspace)
        except RepositoryError as e:
            return GenerationResult(Outcome.DIFF_ERROR, error=str(e))

        if not diff.strip():
            return GenerationResult(Outcome.DIFF_EMPTY, message=NO_STAGED_CHANGES)

        try:
            ensure_known(provider_id)
        except ConfigurationError as e:
            return GenerationResult(Outcome.CREDENTIAL_MISSING, error=str(e))

        api_key = self.resolve_credential(provider_id)
        if not api_key:
            error = self._missing_credential(provider_id)
            return GenerationResult(Outcome.CREDENTIAL_MISSING, error=str(error))

        try:
            timeout = self._config.resolve_timeout(provider_id)
        except ConfigurationError as e:
            return GenerationResult(Outcome.CREDENTIAL_MISSING, error=str(e))

        provider = self._provider_factory(
            provider_id,
            api_key=api_key,
            model=self._config.resolve_model(provider_id, model),
            timeout=timeout,
        )
        logger.debug("Generating commit message with %s (%d diff chars)", provider.identity(), len(diff))
        try:
            message = await provider.generate_commit_message(GenerateRequest(diff=diff))
        except ProviderError as e:
            logger.debug("Provider %s failed: %s", provider_id, e)
            return GenerationResult(Outcome.PROVIDER_FAILED, error=str(e))
        finally:
            await provider.aclose()
        return GenerationResult(Outcome.SUCCEEDED, message=message)
