"""Journal retrieval: hybrid search and "more like this".

Provides entry models, a pluggable EntryStore protocol with Postgres and
in-memory backends, a filter compiler shared by both retrieval channels,
Reciprocal Rank Fusion, and hydration into display records.
"""

from .config import DatabaseConfig, EmbeddingConfig, SearchConfig
from .embeddings import EmbeddingProvider, LiteLLMEmbedder
from .filters import Predicate, SearchFilters, compile_filters
from .fusion import reciprocal_rank_fusion
from .memory_store import InMemoryEntryStore
from .models import (
    CandidateRank,
    Channel,
    FusedResult,
    HydratedEntry,
    JournalEntry,
    Media,
    SearchHit,
    SearchOutcome,
    SimilarHit,
    SimilarOutcome,
)
from .search import JournalSearcher, open_journal_searcher
from .store import EntryStore

__all__ = [
    "CandidateRank",
    "Channel",
    "DatabaseConfig",
    "EmbeddingConfig",
    "EmbeddingProvider",
    "EntryStore",
    "FusedResult",
    "HydratedEntry",
    "InMemoryEntryStore",
    "JournalEntry",
    "JournalSearcher",
    "LiteLLMEmbedder",
    "Media",
    "Predicate",
    "SearchConfig",
    "SearchFilters",
    "SearchHit",
    "SearchOutcome",
    "SimilarHit",
    "SimilarOutcome",
    "compile_filters",
    "open_journal_searcher",
    "reciprocal_rank_fusion",
]
