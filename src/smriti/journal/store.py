"""EntryStore protocol: the read-only contract for journal backends.

A backend must be able to rank entries by vector distance and by text
relevance, both restricted by the same compiled :class:`Predicate`, and to
load entries with their tags and media for display. Backends never write.

Shipped implementations:

- :class:`smriti.journal.postgres_store.PostgresEntryStore` (pgvector + tsvector)
- :class:`smriti.journal.memory_store.InMemoryEntryStore` (numpy + TF-IDF)
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from .filters import Predicate
from .models import CandidateRank, EntryRecord


@runtime_checkable
class EntryStore(Protocol):
    """Protocol for ranked, filtered reads over journal entries."""

    def read_scope(self) -> AbstractAsyncContextManager[None]:
        """Async context manager under which every read sees one consistent snapshot.

        ``JournalSearcher`` opens one per query and issues both channel reads
        and hydration inside it.
        """
        ...

    async def semantic_candidates(
        self,
        vector: Sequence[float],
        predicate: Predicate,
        pool_size: int,
    ) -> list[CandidateRank]:
        """Rank entries that have an embedding by ascending cosine distance to ``vector``.

        The predicate is applied before ranking and the list is capped at
        ``pool_size``. Ranks are 1-based; equal distances order by entry id.
        """
        ...

    async def lexical_candidates(
        self,
        query_text: str,
        predicate: Predicate,
        pool_size: int,
    ) -> list[CandidateRank]:
        """Rank entries with non-zero text relevance to ``query_text``, most relevant first.

        Same filtering, capping and tie-breaking rules as ``semantic_candidates``.
        """
        ...

    async def nearest_to_entry(self, source_uuid: str, limit: int) -> list[tuple[int, float]]:
        """Return ``(entry_id, cosine_distance)`` for the entries closest to the source entry.

        The source itself is never included. Returns an empty list when the
        source doesn't exist or has no embedding.
        """
        ...

    async def fetch_entries(self, entry_ids: Sequence[int]) -> dict[int, EntryRecord]:
        """Load entries with their tag names and media rows (media ordered by id)."""
        ...
