from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from .exceptions import ConfigurationError

_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ai-commit-generator"
_CONFIG_FILENAME = "config.toml"
_CREDENTIALS_FILENAME = "credentials.toml"

DEFAULT_TIMEOUT = 120.0

# Fallback env var per provider when [<provider>] api_key_env is not configured.
_DEFAULT_TOKEN_ENV: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


def _load_toml(path: Path) -> dict:
    if path.exists():
        return tomllib.loads(path.read_text(encoding="utf-8"))
    return {}


class Config:
    def __init__(self, config_dir: Path | None = None) -> None:
        self._dir = config_dir or _DEFAULT_CONFIG_DIR
        self._path = self._dir / _CONFIG_FILENAME
        self._data: dict = _load_toml(self._path)

    @property
    def data(self) -> dict:
        return self._data

    def _save(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        self._path.write_bytes(tomli_w.dumps(self._data).encode())

    def get(self, section: str, key: str) -> str | None:
        return self._data.get(section, {}).get(key)

    def set(self, section: str, key: str, value: str) -> None:
        self._data.setdefault(section, {})[key] = value
        self._save()

    def resolve_provider(self, cli_provider: str | None) -> str | None:
        if cli_provider:
            return cli_provider
        return self.get("provider", "default")

    def resolve_model(self, provider: str, cli_model: str | None) -> str | None:
        return cli_model or self.get(provider, "model")

    def resolve_timeout(self, provider: str) -> float:
        raw = self.get(provider, "timeout")
        if not raw:
            return DEFAULT_TIMEOUT
        try:
            timeout = float(raw)
        except (TypeError, ValueError):
            timeout = 0.0
        if timeout <= 0:
            raise ConfigurationError(
                f"Invalid timeout for {provider}: {raw!r}. "
                f"Run: ai-commit config set {provider} timeout <seconds>"
            )
        return timeout

    def token_env_var(self, provider: str) -> str:
        return self.get(provider, "api_key_env") or _DEFAULT_TOKEN_ENV.get(
            provider, f"{provider.upper()}_API_KEY"
        )

    def resolve_token(self, provider: str) -> str | None:
        return os.environ.get(self.token_env_var(provider)) or None


class CredentialStore:
    """API keys keyed by ``"<provider>.apiKey"``, kept in an owner-only TOML file."""

    def __init__(self, config_dir: Path | None = None) -> None:
        self._dir = config_dir or _DEFAULT_CONFIG_DIR
        self._path = self._dir / _CREDENTIALS_FILENAME

    def get(self, key: str) -> str | None:
        return _load_toml(self._path).get(key) or None

    def store(self, key: str, secret: str) -> None:
        secret = secret.strip()
        if not secret:
            raise ConfigurationError(f"Refusing to store an empty secret for {key}.")
        data = _load_toml(self._path)
        data[key] = secret
        self._dir.mkdir(parents=True, exist_ok=True)
        self._path.write_bytes(tomli_w.dumps(data).encode())
        os.chmod(self._path, stat.S_IRUSR | stat.S_IWUSR)
