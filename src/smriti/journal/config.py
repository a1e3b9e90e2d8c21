"""Configuration dataclasses for journal search.

These are pure data containers with sensible defaults.
Override them from YAML config, env vars, or constructor args; use
``from_config()`` to build one from a :class:`smriti.core.config.Config`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from smriti.core.config import Config
from smriti.core.exceptions import ConfigurationError

from .filters import resolve_timezone

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _as_int(value: Any, key: str, minimum: int) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer >= {minimum}. Received {value!r}.")
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be an integer >= {minimum}. Received {value!r}.") from None
    if result < minimum:
        raise ConfigurationError(f"{key} must be an integer >= {minimum}. Received {value!r}.")
    return result


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_STRINGS:
        return True
    if normalized in _FALSE_STRINGS:
        return False
    raise ConfigurationError(f"{key} must be a boolean (true/false). Received {value!r}.")


@dataclass
class SearchConfig:
    """Settings for hybrid search and similarity lookup.

    Attributes:
        candidate_pool_size: Candidates taken from each channel before fusion.
            Independent of the caller's limit.
        rrf_k: Reciprocal Rank Fusion smoothing constant.
        default_limit: Results returned by ``search`` when no limit is given.
        max_limit: Largest limit ``search`` accepts.
        similar_default_limit: Results returned by ``find_similar`` by default.
        similar_max_limit: Largest limit ``find_similar`` accepts.
        concurrent_channels: Run the semantic and lexical retrievals concurrently.
        timezone: Zone whose calendar days ``date_from``/``date_to`` refer to.
    """

    candidate_pool_size: int = 20
    rrf_k: int = 60
    default_limit: int = 10
    max_limit: int = 50
    similar_default_limit: int = 5
    similar_max_limit: int = 20
    concurrent_channels: bool = True
    timezone: str = "UTC"

    def __post_init__(self):
        if self.candidate_pool_size < 1:
            raise ConfigurationError("candidate_pool_size must be >= 1")
        if self.rrf_k < 1:
            raise ConfigurationError("rrf_k must be >= 1")
        if not 1 <= self.default_limit <= self.max_limit:
            raise ConfigurationError("default_limit must be between 1 and max_limit")
        if not 1 <= self.similar_default_limit <= self.similar_max_limit:
            raise ConfigurationError("similar_default_limit must be between 1 and similar_max_limit")
        resolve_timezone(self.timezone)

    @classmethod
    def from_config(cls, config: Config) -> SearchConfig:
        section = config.get("search", {}) or {}
        defaults = cls()
        return cls(
            candidate_pool_size=_as_int(
                section.get("candidate_pool_size", defaults.candidate_pool_size), "search.candidate_pool_size", 1
            ),
            rrf_k=_as_int(section.get("rrf_k", defaults.rrf_k), "search.rrf_k", 1),
            default_limit=_as_int(section.get("default_limit", defaults.default_limit), "search.default_limit", 1),
            max_limit=_as_int(section.get("max_limit", defaults.max_limit), "search.max_limit", 1),
            similar_default_limit=_as_int(
                section.get("similar_default_limit", defaults.similar_default_limit),
                "search.similar_default_limit",
                1,
            ),
            similar_max_limit=_as_int(
                section.get("similar_max_limit", defaults.similar_max_limit), "search.similar_max_limit", 1
            ),
            concurrent_channels=_as_bool(
                section.get("concurrent_channels", defaults.concurrent_channels), "search.concurrent_channels"
            ),
            timezone=str(section.get("timezone") or defaults.timezone),
        )


@dataclass
class EmbeddingConfig:
    """Settings for the embedding provider.

    Attributes:
        model: litellm model name (``"text-embedding-3-small"``, ``"ollama/nomic-embed-text"``).
        dimensions: Vector length requested from the provider and expected back.
        timeout: Seconds before a provider call is abandoned.
        api_key: Optional explicit key; otherwise litellm reads the provider env var.
    """

    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    timeout: int = 30
    api_key: str | None = None

    @classmethod
    def from_config(cls, config: Config) -> EmbeddingConfig:
        section = config.get("embedding", {}) or {}
        defaults = cls()
        return cls(
            model=str(section.get("model") or defaults.model),
            dimensions=_as_int(section.get("dimensions", defaults.dimensions), "embedding.dimensions", 1),
            timeout=_as_int(section.get("timeout", defaults.timeout), "embedding.timeout", 1),
            api_key=section.get("api_key") or None,
        )


@dataclass
class DatabaseConfig:
    """Settings for the PostgreSQL connection pool."""

    dsn: str = ""
    min_connections: int = 1
    max_connections: int = 5
    command_timeout: int = 30

    def __post_init__(self):
        if self.max_connections < 1:
            raise ConfigurationError("max_connections must be >= 1")
        if not 0 <= self.min_connections <= self.max_connections:
            raise ConfigurationError("min_connections must be between 0 and max_connections")

    @classmethod
    def from_config(cls, config: Config) -> DatabaseConfig:
        section = config.get("database", {}) or {}
        defaults = cls()
        return cls(
            dsn=str(section.get("dsn") or ""),
            min_connections=_as_int(
                section.get("min_connections", defaults.min_connections), "database.min_connections", 0
            ),
            max_connections=_as_int(
                section.get("max_connections", defaults.max_connections), "database.max_connections", 1
            ),
            command_timeout=_as_int(
                section.get("command_timeout", defaults.command_timeout), "database.command_timeout", 1
            ),
        )
