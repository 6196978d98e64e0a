from __future__ import annotations


class AICommitError(Exception):
    """Base exception for ai-commit-generator."""


class RepositoryError(AICommitError):
    """Staged changes could not be read (not a repository, git failure)."""


class ConfigurationError(AICommitError):
    """Provider selection or credential is missing or invalid."""


class ProviderError(AICommitError):
    """LLM provider failed (connection, status, response shape)."""
