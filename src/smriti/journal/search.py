"""Hybrid journal search and "more like this" lookup.

``JournalSearcher.search`` embeds the query, pulls a fixed-size candidate
pool from the semantic and lexical channels under one compiled filter,
fuses them with Reciprocal Rank Fusion, truncates to the caller's limit and
hydrates the survivors in rank order.

``JournalSearcher.find_similar`` is a plain nearest-neighbour query on a
stored entry's embedding; there is no lexical channel and no fusion.

Example::

    searcher = JournalSearcher(store, LiteLLMEmbedder())
    outcome = await searcher.search("feeling overwhelmed by work", {"date_from": "2024-01-01"}, limit=5)
    if outcome.is_empty:
        ...
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger

from smriti.core.config import Config
from smriti.core.exceptions import InvalidQuery

from .config import DatabaseConfig, EmbeddingConfig, SearchConfig
from .embeddings import EmbeddingProvider, LiteLLMEmbedder
from .filters import Predicate, SearchFilters, compile_filters
from .fusion import reciprocal_rank_fusion
from .hydrate import hydrate
from .models import CandidateRank, SearchHit, SearchOutcome, SimilarHit, SimilarOutcome
from .store import EntryStore


def _check_limit(limit: int | None, default: int, maximum: int) -> int:
    if limit is None:
        return default
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= maximum:
        raise InvalidQuery(f"limit must be an integer between 1 and {maximum}. Received {limit!r}.")
    return limit


class JournalSearcher:
    """Read-only retrieval over a journal.

    Args:
        store: Backend that ranks and loads entries.
        embedder: Provider used to embed query text.
        config: Tunables (candidate pool size, RRF k, limits).
    """

    def __init__(
        self,
        store: EntryStore,
        embedder: EmbeddingProvider,
        config: SearchConfig | None = None,
    ):
        self.store = store
        self.embedder = embedder
        self.config = config or SearchConfig()

    async def search(
        self,
        query: str,
        filters: SearchFilters | Mapping[str, Any] | None = None,
        limit: int | None = None,
    ) -> SearchOutcome:
        """Hybrid semantic + keyword search.

        Args:
            query: Free-text query.
            filters: Optional date range, city, starred and tag filters.
            limit: Number of results. Defaults to ``config.default_limit``.

        Returns:
            A SearchOutcome, possibly empty.

        Raises:
            InvalidQuery: Empty query or limit out of range.
            InvalidFilter: Malformed filters (raised before any provider call).
            EmbeddingUnavailable: The query could not be embedded.
            StoreError: A channel query failed.
        """
        query_text = query.strip() if isinstance(query, str) else ""
        if not query_text:
            raise InvalidQuery("query must be a non-empty string")
        limit = _check_limit(limit, self.config.default_limit, self.config.max_limit)
        predicate = compile_filters(filters, tz=self.config.timezone)

        vector = await self.embedder.embed(query_text)

        async with self.store.read_scope():
            semantic, lexical = await self._retrieve(vector, query_text, predicate)

            fused = reciprocal_rank_fusion(semantic, lexical, limit=limit, k=self.config.rrf_k)
            logger.debug(
                f"search {query_text!r}: semantic={len(semantic)} lexical={len(lexical)} "
                f"fused={len(fused)} (limit {limit})"
            )
            if not fused:
                return SearchOutcome(query=query_text)

            by_id = {result.entry_id: result for result in fused}
            records = await self.store.fetch_entries(list(by_id))

        hits = [
            SearchHit(entry=entry, rrf_score=by_id[eid].score, match_sources=by_id[eid].match_sources)
            for eid, entry in hydrate(list(by_id), records)
        ]
        return SearchOutcome(query=query_text, hits=hits)

    async def _retrieve(
        self,
        vector: list[float],
        query_text: str,
        predicate: Predicate,
    ) -> tuple[list[CandidateRank], list[CandidateRank]]:
        pool_size = self.config.candidate_pool_size

        if not self.config.concurrent_channels:
            semantic = await self.store.semantic_candidates(vector, predicate, pool_size)
            lexical = await self.store.lexical_candidates(query_text, predicate, pool_size)
            return semantic, lexical

        tasks = [
            asyncio.ensure_future(self.store.semantic_candidates(vector, predicate, pool_size)),
            asyncio.ensure_future(self.store.lexical_candidates(query_text, predicate, pool_size)),
        ]
        try:
            semantic, lexical = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancelled reads finish before the read scope is released
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return semantic, lexical

    async def find_similar(self, source_uuid: str, limit: int | None = None) -> SimilarOutcome:
        """Entries closest to ``source_uuid`` by embedding, excluding the source.

        Returns an empty outcome when the source is unknown or has no embedding.

        Raises:
            InvalidQuery: Empty uuid or limit out of range.
            StoreError: The store query failed.
        """
        uuid = source_uuid.strip() if isinstance(source_uuid, str) else ""
        if not uuid:
            raise InvalidQuery("uuid must be a non-empty string")
        limit = _check_limit(limit, self.config.similar_default_limit, self.config.similar_max_limit)

        async with self.store.read_scope():
            neighbours = await self.store.nearest_to_entry(uuid, limit)
            logger.debug(f"find_similar {uuid}: {len(neighbours)} neighbour(s)")
            if not neighbours:
                return SimilarOutcome(source_uuid=uuid)

            distances = dict(neighbours)
            records = await self.store.fetch_entries(list(distances))

        hits = [
            SimilarHit(entry=entry, similarity_score=1.0 - distances[eid])
            for eid, entry in hydrate(list(distances), records)
            if entry.uuid != uuid
        ]
        return SimilarOutcome(source_uuid=uuid, hits=hits)


@asynccontextmanager
async def open_journal_searcher(config: Config) -> AsyncIterator[JournalSearcher]:
    """Build a Postgres-backed searcher from configuration and close its pool afterwards.

    Usage::

        async with open_journal_searcher(Config(config_file="config.yaml")) as searcher:
            outcome = await searcher.search("barcelona")
    """
    from .postgres_store import PostgresEntryStore, create_pool

    search_config = SearchConfig.from_config(config)
    embedder = LiteLLMEmbedder(EmbeddingConfig.from_config(config))
    pool = await create_pool(DatabaseConfig.from_config(config))
    try:
        yield JournalSearcher(PostgresEntryStore(pool), embedder, search_config)
    finally:
        await pool.close()
