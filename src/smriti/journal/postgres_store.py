"""PostgreSQL EntryStore using pgvector and a generated tsvector column.

The connection pool is created by the caller and passed in; the store keeps
no global state. Every method is a read.

Expected schema (owned by the ingestion side)::

    entries(id, uuid, text, created_at, ..., embedding vector(N),
            text_search tsvector GENERATED ALWAYS AS (to_tsvector('english', text)))
    tags(id, name)
    entry_tags(entry_id, tag_id)
    media(id, entry_id, type, url, dimensions jsonb)

Usage::

    pool = await create_pool(DatabaseConfig(dsn="postgresql://localhost/journal"))
    store = PostgresEntryStore(pool)
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import asyncpg
import numpy as np
from loguru import logger

from smriti.core.exceptions import ConfigurationError, StoreError

from .config import DatabaseConfig
from .filters import Predicate
from .models import CandidateRank, Channel, EntryRecord, JournalEntry, Media

# $1 = query (vector or text), $2 = pool size; filter params start at $3
_FILTER_FIRST_PARAM = 3

# asyncio.TimeoutError is only an OSError from Python 3.11 on
_DRIVER_ERRORS = (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError)

_ENTRY_COLUMNS = (
    "id",
    "uuid",
    "text",
    "created_at",
    "modified_at",
    "timezone",
    "starred",
    "is_pinned",
    "is_all_day",
    "city",
    "country",
    "place_name",
    "admin_area",
    "latitude",
    "longitude",
    "temperature",
    "weather_conditions",
    "humidity",
    "user_activity",
    "step_count",
    "template_name",
    "editing_time",
)

SEMANTIC_SQL = """
SELECT e.id
FROM entries e
WHERE e.embedding IS NOT NULL
  AND {where}
ORDER BY e.embedding <=> $1, e.id
LIMIT $2
"""

LEXICAL_SQL = """
SELECT e.id
FROM entries e, plainto_tsquery('english', $1) AS q
WHERE e.text_search @@ q
  AND {where}
ORDER BY ts_rank(e.text_search, q) DESC, e.id
LIMIT $2
"""

NEAREST_SQL = """
WITH source AS (
    SELECT id, embedding FROM entries WHERE uuid = $1 AND embedding IS NOT NULL
)
SELECT e.id, (e.embedding <=> s.embedding) AS distance
FROM entries e, source s
WHERE e.id <> s.id
  AND e.embedding IS NOT NULL
ORDER BY distance, e.id
LIMIT $2
"""

ENTRIES_SQL = f"SELECT {', '.join('e.' + c for c in _ENTRY_COLUMNS)} FROM entries e WHERE e.id = ANY($1::int[])"

TAGS_SQL = """
SELECT et.entry_id, t.name
FROM entry_tags et
JOIN tags t ON t.id = et.tag_id
WHERE et.entry_id = ANY($1::int[])
"""

MEDIA_SQL = """
SELECT m.id, m.entry_id, m.type, m.url, m.dimensions
FROM media m
WHERE m.entry_id = ANY($1::int[])
ORDER BY m.id
"""


async def init_connection(conn: asyncpg.Connection) -> None:
    """Register pgvector and JSONB codecs on a new pool connection."""
    from pgvector.asyncpg import register_vector

    await register_vector(conn)
    await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


async def create_pool(config: DatabaseConfig) -> asyncpg.Pool:
    """Create a connection pool with the codecs the store needs.

    Raises:
        ConfigurationError: If no DSN is configured.
        StoreError: If the database can't be reached.
    """
    if not config.dsn:
        raise ConfigurationError("database.dsn is not set (config file or SMRITI_DATABASE__DSN)")
    try:
        pool = await asyncpg.create_pool(
            config.dsn,
            min_size=config.min_connections,
            max_size=config.max_connections,
            command_timeout=config.command_timeout,
            init=init_connection,
        )
    except (OSError, asyncio.TimeoutError, asyncpg.PostgresError) as e:
        logger.error(f"Failed to create database pool: {e}")
        raise StoreError(f"Could not connect to the journal database: {e}") from e
    logger.debug(f"Database pool created: {config.min_connections}-{config.max_connections} connections")
    return pool


def _entry_from_row(row: Any) -> JournalEntry:
    values = {c: row[c] for c in _ENTRY_COLUMNS}
    values["text"] = values["text"] or ""
    values["starred"] = bool(values["starred"])
    values["is_pinned"] = bool(values["is_pinned"])
    values["is_all_day"] = bool(values["is_all_day"])
    return JournalEntry(**values)


@dataclass
class _ReadScope:
    conn: asyncpg.Connection
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class PostgresEntryStore:
    """EntryStore over PostgreSQL + pgvector.

    Outside a :meth:`read_scope` every query borrows its own pool connection.
    Inside one, all queries share a single connection and a read-only
    REPEATABLE READ transaction, so both channels and hydration see the
    same snapshot.

    Args:
        pool: An asyncpg pool (see :func:`create_pool`). Connections must have
            the pgvector codec registered.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool
        self._scope: ContextVar[_ReadScope | None] = ContextVar(f"smriti_read_scope_{id(self)}", default=None)

    @asynccontextmanager
    async def read_scope(self) -> AsyncIterator[None]:
        """Pin the queries issued inside the block to one snapshot.

        Tasks spawned inside the block inherit the scope; their queries are
        serialized on the shared connection. Nested scopes reuse the outer one.
        """
        if self._scope.get() is not None:
            yield
            return

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction(isolation="repeatable_read", readonly=True):
                    token = self._scope.set(_ReadScope(conn))
                    try:
                        yield
                    finally:
                        self._scope.reset(token)
        except _DRIVER_ERRORS as e:
            logger.error(f"Journal read transaction failed: {e}")
            raise StoreError(f"Journal read transaction failed: {e}") from e

    async def _fetch(self, sql: str, *args: Any) -> list[Any]:
        scope = self._scope.get()
        try:
            if scope is not None:
                async with scope.lock:
                    return await scope.conn.fetch(sql, *args)
            async with self.pool.acquire() as conn:
                return await conn.fetch(sql, *args)
        except _DRIVER_ERRORS as e:
            logger.error(f"Journal query failed: {e}")
            raise StoreError(f"Journal query failed: {e}") from e

    async def _ranked(
        self,
        template: str,
        query: Any,
        predicate: Predicate,
        pool_size: int,
        channel: Channel,
    ) -> list[CandidateRank]:
        if pool_size < 1:
            return []
        where, params = predicate.to_sql(first_param=_FILTER_FIRST_PARAM)
        rows = await self._fetch(template.format(where=where), query, pool_size, *params)
        return [CandidateRank(entry_id=row["id"], rank=pos, channel=channel) for pos, row in enumerate(rows, start=1)]

    async def semantic_candidates(
        self,
        vector: Sequence[float],
        predicate: Predicate,
        pool_size: int,
    ) -> list[CandidateRank]:
        query = np.asarray(vector, dtype=np.float32)
        return await self._ranked(SEMANTIC_SQL, query, predicate, pool_size, Channel.SEMANTIC)

    async def lexical_candidates(
        self,
        query_text: str,
        predicate: Predicate,
        pool_size: int,
    ) -> list[CandidateRank]:
        if not query_text.strip():
            return []
        return await self._ranked(LEXICAL_SQL, query_text, predicate, pool_size, Channel.LEXICAL)

    async def nearest_to_entry(self, source_uuid: str, limit: int) -> list[tuple[int, float]]:
        if limit < 1:
            return []
        rows = await self._fetch(NEAREST_SQL, source_uuid, limit)
        return [(row["id"], float(row["distance"])) for row in rows]

    async def fetch_entries(self, entry_ids: Sequence[int]) -> dict[int, EntryRecord]:
        ids = list(dict.fromkeys(entry_ids))
        if not ids:
            return {}

        entry_rows = await self._fetch(ENTRIES_SQL, ids)
        tag_rows = await self._fetch(TAGS_SQL, ids)
        media_rows = await self._fetch(MEDIA_SQL, ids)

        tags: dict[int, list[str]] = defaultdict(list)
        for row in tag_rows:
            tags[row["entry_id"]].append(row["name"])

        media: dict[int, list[Media]] = defaultdict(list)
        for row in media_rows:
            media[row["entry_id"]].append(
                Media(
                    id=row["id"],
                    entry_id=row["entry_id"],
                    type=row["type"],
                    url=row["url"],
                    dimensions=row["dimensions"],
                )
            )

        records = {}
        for row in entry_rows:
            entry = _entry_from_row(row)
            records[entry.id] = EntryRecord(entry=entry, tags=tags.get(entry.id, []), media=media.get(entry.id, []))
        return records
