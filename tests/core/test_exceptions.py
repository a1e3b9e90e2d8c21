"""Tests for smriti.core.exceptions."""

from smriti.core.exceptions import (
    ConfigurationError,
    EmbeddingUnavailable,
    InvalidFilter,
    InvalidQuery,
    SmritiError,
    StoreError,
)


def test_hierarchy():
    """All exceptions should inherit from SmritiError."""
    for exc_cls in [ConfigurationError, EmbeddingUnavailable, InvalidQuery, InvalidFilter, StoreError]:
        assert issubclass(exc_cls, SmritiError)


def test_invalid_filter_is_invalid_query():
    assert issubclass(InvalidFilter, InvalidQuery)
    assert not issubclass(EmbeddingUnavailable, InvalidQuery)


def test_exception_message():
    err = InvalidFilter("date_from must be a date in YYYY-MM-DD format")
    assert "date_from" in str(err)


def test_catch_base():
    """Catching SmritiError should catch all subtypes."""
    try:
        raise EmbeddingUnavailable("rate limited")
    except SmritiError as e:
        assert "rate limited" in str(e)
