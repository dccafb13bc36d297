from __future__ import annotations

import os
from dataclasses import dataclass, replace

GPT_BRIDGE_API_KEY = "GPT_BRIDGE_API_KEY"
OPENAI_API_KEY = "OPENAI_API_KEY"
GPT_BRIDGE_BASE_URL = "GPT_BRIDGE_BASE_URL"
GPT_BRIDGE_TIMEOUT = "GPT_BRIDGE_TIMEOUT"
GPT_BRIDGE_DEBUG = "GPT_BRIDGE_DEBUG"

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 60.0

_TRUTHY = {"1", "true", "yes", "on"}


def first_env(*names: str) -> str | None:
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


def _parse_timeout(raw: str | None) -> float | None:
    if raw is None:
        return DEFAULT_TIMEOUT
    if raw.lower() == "none":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {GPT_BRIDGE_TIMEOUT} value: {raw!r}") from exc


@dataclass(frozen=True)
class ClientConfig:
    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float | None = DEFAULT_TIMEOUT
    debug: bool = False

    @property
    def has_credential(self) -> bool:
        return bool((self.api_key or "").strip())

    def with_api_key(self, api_key: str) -> ClientConfig:
        return replace(self, api_key=api_key)


def load_config(**overrides) -> ClientConfig:
    """Build a config from the environment; keyword overrides take precedence."""
    config = ClientConfig(
        api_key=first_env(GPT_BRIDGE_API_KEY, OPENAI_API_KEY),
        base_url=first_env(GPT_BRIDGE_BASE_URL) or DEFAULT_BASE_URL,
        timeout=_parse_timeout(first_env(GPT_BRIDGE_TIMEOUT)),
        debug=(first_env(GPT_BRIDGE_DEBUG) or "").lower() in _TRUTHY,
    )
    return replace(config, **overrides) if overrides else config
