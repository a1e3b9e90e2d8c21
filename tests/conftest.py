"""Shared test fixtures for smriti."""

import os
import tempfile
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest

from smriti.journal.memory_store import InMemoryEntryStore
from smriti.journal.models import JournalEntry, Media
from smriti.journal.search import JournalSearcher


class FakeEmbedder:
    """Deterministic embedder: looks texts up in a table, records every call."""

    def __init__(self, vectors=None, default=(1.0, 0.0, 0.0)):
        self.vectors = dict(vectors or {})
        self.default = list(default)
        self.calls: list[str] = []

    async def embed(self, text):
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))

    async def embed_batch(self, texts):
        return [await self.embed(t) for t in texts]


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "database": {"dsn": "postgresql://localhost/journal_test"},
        "search": {"candidate_pool_size": 30, "rrf_k": 60},
        "embedding": {"model": "text-embedding-3-small", "dimensions": 3},
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def sample_entries():
    return [
        JournalEntry(
            id=1,
            uuid="E1",
            text="Long walk along the beach in Barcelona, felt calm and rested",
            created_at=_utc(2024, 3, 5, 10, 0),
            embedding=[1.0, 0.0, 0.0],
            city="Barcelona",
            country="Spain",
            starred=True,
            temperature=18.5,
            weather_conditions="Sunny",
        ),
        JournalEntry(
            id=2,
            uuid="E2",
            text="Stressful day at the office, deadlines piling up",
            created_at=_utc(2024, 3, 6, 9, 15),
            embedding=[0.0, 1.0, 0.0],
            city="Austin",
            step_count=4200,
        ),
        JournalEntry(
            id=3,
            uuid="E3",
            text="Overwhelmed by the office and meetings again",
            created_at=_utc(2024, 3, 7, 23, 30),
            embedding=[0.0, 0.9, 0.1],
            city="austin",
        ),
        JournalEntry(
            id=4,
            uuid="E4",
            text="Dinner with friends in Barcelona, paella and laughter",
            created_at=_utc(2024, 3, 8, 20, 0),
            embedding=None,
            city="Barcelona",
        ),
        JournalEntry(
            id=5,
            uuid="E5",
            text="Morning run by the river, legs tired",
            created_at=_utc(2024, 4, 1, 7, 0),
            embedding=[0.1, 0.1, 1.0],
        ),
    ]


@pytest.fixture
def sample_tags():
    return {
        1: ["travel", "calm"],
        2: ["work"],
        3: ["work", "reflection", "work"],
        4: ["travel", "friends"],
    }


@pytest.fixture
def sample_media():
    return [
        Media(id=12, entry_id=1, type="video", url=None),
        Media(id=10, entry_id=1, type="photo", url="https://cdn.example/p1.jpg", dimensions={"width": 4, "height": 3}),
        Media(id=11, entry_id=1, type="photo", url="https://cdn.example/p2.jpg"),
        Media(id=13, entry_id=4, type="audio", url="https://cdn.example/a1.m4a"),
    ]


@pytest.fixture
def memory_store(sample_entries, sample_tags, sample_media):
    return InMemoryEntryStore(sample_entries, tags=sample_tags, media=sample_media)


@pytest.fixture
def embedder():
    return FakeEmbedder(
        {
            "deadlines": [0.0, 1.0, 0.0],
            "dinner": [0.0, 0.0, -1.0],
            "barcelona": [1.0, 0.0, 0.0],
        }
    )


@pytest.fixture
def searcher(memory_store, embedder):
    return JournalSearcher(memory_store, embedder)


@pytest.fixture
def searcher_factory(searcher):
    """Zero-arg factory yielding the in-memory searcher, shaped like open_journal_searcher."""

    @asynccontextmanager
    async def _open():
        yield searcher

    return _open
