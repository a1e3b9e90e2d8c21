"""Journal tools: hybrid search and "find similar" for chat agents."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import date

from pydantic import BaseModel, Field

from smriti.core.utils.async_helpers import run_async_safely
from smriti.journal.formatting import format_search_results, format_similar_results
from smriti.journal.search import JournalSearcher

from . import ToolDefinition

SearcherFactory = Callable[[], AbstractAsyncContextManager[JournalSearcher]]

SEARCH_DESCRIPTION = (
    "Hybrid semantic + keyword search across journal entries using Reciprocal Rank Fusion "
    "(full-text relevance + vector cosine similarity). Finds entries by meaning even when exact "
    "words don't match. Supports optional filtering by date range, tags, city, and starred status."
)

SIMILAR_DESCRIPTION = (
    "Find entries semantically similar to a given entry using cosine similarity on embeddings. "
    "Useful for discovering recurring themes or related reflections."
)


class SearchEntriesArgs(BaseModel):
    query: str = Field(min_length=1, description="Natural language or keyword search query")
    date_from: date | None = Field(default=None, description="Entries from this date (YYYY-MM-DD), inclusive")
    date_to: date | None = Field(default=None, description="Entries up to this date (YYYY-MM-DD), inclusive")
    tags: list[str] | None = Field(default=None, description="Only entries with any of these tags")
    city: str | None = Field(default=None, description="Filter by city name")
    starred: bool | None = Field(default=None, description="Filter by starred status")
    limit: int = Field(default=10, ge=1, le=50, description="Maximum results")


class FindSimilarArgs(BaseModel):
    uuid: str = Field(min_length=1, description="UUID of the source entry")
    limit: int = Field(default=5, ge=1, le=20, description="Maximum results")


def create_journal_tools(open_searcher: SearcherFactory, timeout: float | None = None) -> list[ToolDefinition]:
    """Create ``search_entries`` and ``find_similar`` tools.

    Args:
        open_searcher: Zero-arg callable returning an async context manager that
            yields a JournalSearcher, e.g. ``lambda: open_journal_searcher(config)``.
            A fresh one is opened per call so the tools work from any event loop.
        timeout: Seconds a single call may take before it is cancelled and the
            model gets an error string. None waits indefinitely.
    """

    async def _search(query: str, limit: int, **filters) -> str:
        async with open_searcher() as searcher:
            outcome = await searcher.search(query, filters, limit=limit)
        return format_search_results(outcome)

    async def _similar(uuid: str, limit: int) -> str:
        async with open_searcher() as searcher:
            outcome = await searcher.find_similar(uuid, limit=limit)
        return format_similar_results(outcome)

    def search_entries(query: str, limit: int = 10, **filters) -> str:
        return run_async_safely(_search(query, limit, **filters), timeout=timeout)

    def find_similar(uuid: str, limit: int = 5) -> str:
        return run_async_safely(_similar(uuid, limit), timeout=timeout)

    return [
        ToolDefinition.from_function(
            search_entries,
            name="search_entries",
            description=SEARCH_DESCRIPTION,
            args_schema=SearchEntriesArgs,
        ),
        ToolDefinition.from_function(
            find_similar,
            name="find_similar",
            description=SIMILAR_DESCRIPTION,
            args_schema=FindSimilarArgs,
        ),
    ]
