from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class GenerateRequest:
    diff: str
    # Advisory only; no provider enforces it yet.
    max_length: int | None = None


def credential_key(provider_id: str) -> str:
    return f"{provider_id}.apiKey"


class LLMProvider(ABC):
    """One LLM backend behind the commit-message contract.

    Implementations raise ``ProviderError`` for every failure: transport
    errors, non-2xx statuses, unparsable bodies and empty result sets.
    """

    provider_id: ClassVar[str]

    def identity(self) -> str:
        return self.provider_id

    @abstractmethod
    async def generate_commit_message(self, request: GenerateRequest) -> str: ...

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
