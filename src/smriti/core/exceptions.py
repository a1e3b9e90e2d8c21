"""
Smriti exception hierarchy.

All smriti exceptions inherit from SmritiError, making it easy for callers
to catch library-level errors while still distinguishing specific failure modes.

An empty search is not an error: see ``SearchOutcome.is_empty``.
"""


class SmritiError(Exception):
    """Base exception class for all smriti errors."""


class ConfigurationError(SmritiError):
    """Raised for configuration errors (missing keys, invalid values)."""


class EmbeddingUnavailable(SmritiError):
    """Raised when the embedding provider fails or returns a malformed response."""


class InvalidQuery(SmritiError):
    """Raised for a search request that cannot be executed (empty text, bad limit)."""


class InvalidFilter(InvalidQuery):
    """Raised for a malformed filter (bad date, unknown key, wrong value type)."""


class StoreError(SmritiError):
    """Raised when the entry store fails a read."""
