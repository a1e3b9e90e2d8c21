"""Tests for smriti.journal.models."""

from datetime import datetime, timezone

from smriti.journal.models import (
    Channel,
    FusedResult,
    HydratedEntry,
    JournalEntry,
    MediaCounts,
    MediaItem,
    SearchHit,
    SearchOutcome,
    SimilarHit,
    SimilarOutcome,
)


def _entry(**kwargs):
    defaults = {"id": 1, "uuid": "E1", "text": "hello world", "created_at": datetime(2024, 3, 5, tzinfo=timezone.utc)}
    defaults.update(kwargs)
    return JournalEntry(**defaults)


def _hydrated(entry=None, tags=None):
    return HydratedEntry(entry=entry or _entry(), tags=tags or [], media_counts=MediaCounts(), media=[])


class TestJournalEntry:
    def test_has_embedding(self):
        assert _entry(embedding=[0.1]).has_embedding
        assert not _entry().has_embedding

    def test_repr_truncates(self):
        r = repr(_entry(text="a" * 100))
        assert "E1" in r
        assert "..." in r


class TestFusedResult:
    def test_both_channels(self):
        result = FusedResult(entry_id=1, score=2 / 61, semantic_rank=1, lexical_rank=1)
        assert result.match_sources == ("semantic", "lexical")

    def test_single_channel(self):
        result = FusedResult(entry_id=1, score=1 / 61, lexical_rank=1)
        assert not result.has_semantic
        assert result.has_lexical
        assert result.match_sources == (Channel.LEXICAL.value,)


class TestHydratedEntry:
    def test_minimal_dict(self):
        data = _hydrated().to_dict()
        assert data["uuid"] == "E1"
        assert data["created_at"] == "2024-03-05T00:00:00+00:00"
        assert data["word_count"] == 2
        assert data["media_counts"] == {"photos": 0, "videos": 0, "audios": 0}
        for key in ("city", "weather", "activity", "latitude"):
            assert key not in data

    def test_optional_attributes(self):
        entry = _entry(
            city="Barcelona",
            latitude=41.38,
            longitude=2.17,
            temperature=18.5,
            weather_conditions="Sunny",
            user_activity="Walking",
            step_count=0,
        )
        data = _hydrated(entry).to_dict()
        assert data["city"] == "Barcelona"
        assert data["latitude"] == 41.38
        assert data["weather"] == {"temperature": 18.5, "conditions": "Sunny"}
        assert data["activity"] == {"name": "Walking", "step_count": 0}

    def test_word_count_empty_text(self):
        assert _hydrated(_entry(text="")).word_count == 0

    def test_media_item_dict(self):
        item = MediaItem(type="photo", url="https://x/p.jpg", dimensions={"width": 4, "height": 3})
        assert item.to_dict() == {"type": "photo", "url": "https://x/p.jpg", "dimensions": {"width": 4, "height": 3}}


class TestHits:
    def test_search_hit(self):
        hit = SearchHit(entry=_hydrated(), rrf_score=1 / 61, match_sources=("lexical",))
        assert hit.has_lexical
        assert not hit.has_semantic
        data = hit.to_dict()
        assert data["match_sources"] == ["lexical"]
        assert data["rrf_score"] == 1 / 61
        assert "0.0164" in repr(hit)

    def test_similar_hit(self):
        hit = SimilarHit(entry=_hydrated(), similarity_score=0.75)
        assert hit.to_dict()["similarity_score"] == 0.75
        assert "0.750" in repr(hit)


class TestOutcomes:
    def test_empty_search_outcome(self):
        outcome = SearchOutcome(query="x")
        assert outcome.is_empty
        assert len(outcome) == 0
        assert list(outcome) == []

    def test_similar_outcome(self):
        hit = SimilarHit(entry=_hydrated(), similarity_score=0.5)
        outcome = SimilarOutcome(source_uuid="E2", hits=[hit])
        assert not outcome.is_empty
        assert list(outcome) == [hit]
