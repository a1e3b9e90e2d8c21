"""In-process EntryStore over a snapshot of entries.

Semantic ranking uses numpy cosine distance; the lexical representation of
each entry is a TF-IDF row built once with scikit-learn. Useful for tests,
notebooks and small exported journals where a database is overkill.

Example::

    store = InMemoryEntryStore(entries, tags={1: ["travel"]}, media=media_rows)
    ranks = await store.lexical_candidates("barcelona", Predicate(), pool_size=20)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager

import numpy as np
from loguru import logger

from smriti.core.exceptions import StoreError

from .filters import Predicate
from .models import CandidateRank, Channel, EntryRecord, JournalEntry, Media


def _require_sklearn():
    """Lazy import with clear error message."""
    try:
        from sklearn.feature_extraction.text import TfidfVectorizer
        from sklearn.metrics.pairwise import cosine_similarity

        return TfidfVectorizer, cosine_similarity
    except ImportError:
        raise ImportError("scikit-learn is required for the in-memory store. Install with: pip install smriti") from None


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    # Zero vectors stay zero, giving distance 1 to everything
    return np.divide(matrix, norms, out=np.zeros_like(matrix), where=norms > 0)


class InMemoryEntryStore:
    """Read-only EntryStore backed by Python objects.

    Args:
        entries: The journal entries. Ids and uuids must be unique.
        tags: Tag names per entry id.
        media: Media rows; grouped by ``entry_id`` and ordered by ``id``.
        ngram_range: N-gram range for the TF-IDF vocabulary.
    """

    def __init__(
        self,
        entries: Iterable[JournalEntry],
        tags: Mapping[int, Iterable[str]] | None = None,
        media: Iterable[Media] | None = None,
        ngram_range: tuple[int, int] = (1, 2),
    ):
        self._entries: dict[int, JournalEntry] = {}
        self._by_uuid: dict[str, int] = {}
        for entry in entries:
            if entry.id in self._entries or entry.uuid in self._by_uuid:
                raise ValueError(f"Duplicate entry id/uuid: {entry.id}/{entry.uuid}")
            self._entries[entry.id] = entry
            self._by_uuid[entry.uuid] = entry.id

        self._tags: dict[int, list[str]] = {eid: list(names) for eid, names in (tags or {}).items()}

        grouped: dict[int, list[Media]] = defaultdict(list)
        for row in media or ():
            grouped[row.entry_id].append(row)
        self._media = {eid: sorted(rows, key=lambda m: m.id) for eid, rows in grouped.items()}

        self._ngram_range = ngram_range
        self._build_vector_index()
        self._build_lexical_index()

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Index construction
    # ------------------------------------------------------------------

    def _build_vector_index(self) -> None:
        embedded = [e for e in self._entries.values() if e.embedding is not None]
        self._vector_ids = np.array([e.id for e in embedded], dtype=np.int64)
        if not embedded:
            self._vectors = np.zeros((0, 0), dtype=np.float64)
            return

        dims = {len(e.embedding) for e in embedded}
        if len(dims) > 1:
            raise ValueError(f"Entries have embeddings of differing dimensions: {sorted(dims)}")
        self._vectors = _normalize_rows(np.array([e.embedding for e in embedded], dtype=np.float64))

    def _build_lexical_index(self) -> None:
        self._vectorizer = None
        self._tfidf_matrix = None
        documents = [e for e in self._entries.values() if e.text and e.text.strip()]
        self._lexical_ids = np.array([e.id for e in documents], dtype=np.int64)
        if not documents:
            return

        TfidfVectorizer, _ = _require_sklearn()
        vectorizer = TfidfVectorizer(stop_words="english", ngram_range=self._ngram_range, min_df=1, max_df=1.0)
        try:
            self._tfidf_matrix = vectorizer.fit_transform([e.text for e in documents])
        except ValueError as e:
            # Only stop words in the corpus: nothing can ever match lexically
            logger.warning(f"Lexical index is empty: {e}")
            return
        self._vectorizer = vectorizer

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _eligible(self, ids: np.ndarray, predicate: Predicate) -> np.ndarray:
        if predicate.is_empty:
            return np.ones(len(ids), dtype=bool)
        return np.array(
            [predicate.matches(self._entries[int(eid)], self._tags.get(int(eid), ())) for eid in ids],
            dtype=bool,
        )

    def _distances_to(self, vector: Sequence[float]) -> np.ndarray:
        query = np.asarray(vector, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != self._vectors.shape[1]:
            raise StoreError(f"Query vector has {query.size} dimensions, stored vectors have {self._vectors.shape[1]}")
        norm = np.linalg.norm(query)
        if norm == 0:
            return np.ones(len(self._vector_ids))
        return 1.0 - self._vectors @ (query / norm)

    @staticmethod
    def _ranked(ids: np.ndarray, keys: np.ndarray, limit: int, channel: Channel) -> list[CandidateRank]:
        # np.lexsort sorts by the last key first: primary = keys, secondary = entry id
        order = np.lexsort((ids, keys))[:limit]
        return [CandidateRank(entry_id=int(ids[i]), rank=pos, channel=channel) for pos, i in enumerate(order, start=1)]

    # ------------------------------------------------------------------
    # EntryStore
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def read_scope(self) -> AsyncIterator[None]:
        # The snapshot is immutable; every read is already consistent
        yield

    async def semantic_candidates(
        self,
        vector: Sequence[float],
        predicate: Predicate,
        pool_size: int,
    ) -> list[CandidateRank]:
        if len(self._vector_ids) == 0 or pool_size < 1:
            return []

        distances = self._distances_to(vector)
        mask = self._eligible(self._vector_ids, predicate)
        return self._ranked(self._vector_ids[mask], distances[mask], pool_size, Channel.SEMANTIC)

    async def lexical_candidates(
        self,
        query_text: str,
        predicate: Predicate,
        pool_size: int,
    ) -> list[CandidateRank]:
        if self._vectorizer is None or pool_size < 1 or not query_text.strip():
            return []

        _, cosine_similarity = _require_sklearn()
        query_vec = self._vectorizer.transform([query_text])
        scores = cosine_similarity(query_vec, self._tfidf_matrix).flatten()

        mask = self._eligible(self._lexical_ids, predicate) & (scores > 0)
        return self._ranked(self._lexical_ids[mask], -scores[mask], pool_size, Channel.LEXICAL)

    async def nearest_to_entry(self, source_uuid: str, limit: int) -> list[tuple[int, float]]:
        source_id = self._by_uuid.get(source_uuid)
        if source_id is None or limit < 1:
            return []
        source = self._entries[source_id]
        if source.embedding is None:
            return []

        distances = self._distances_to(source.embedding)
        mask = self._vector_ids != source_id
        ids, dists = self._vector_ids[mask], distances[mask]
        order = np.lexsort((ids, dists))[:limit]
        return [(int(ids[i]), float(dists[i])) for i in order]

    async def fetch_entries(self, entry_ids: Sequence[int]) -> dict[int, EntryRecord]:
        records: dict[int, EntryRecord] = {}
        for eid in entry_ids:
            entry = self._entries.get(eid)
            if entry is None:
                continue
            records[eid] = EntryRecord(
                entry=entry,
                tags=list(self._tags.get(eid, ())),
                media=list(self._media.get(eid, ())),
            )
        return records
