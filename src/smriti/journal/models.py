"""Core data models for journal retrieval.

Entries, tags and media are produced by the ingestion side and only read
here. Candidate ranks and fused results live for the duration of one query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

MEDIA_TYPES = ("photo", "video", "audio")


class Channel(Enum):
    """Retrieval channels that feed rank fusion."""

    SEMANTIC = "semantic"  # vector distance to the query embedding
    LEXICAL = "lexical"  # text relevance against the derived lexical index


@dataclass
class JournalEntry:
    """A journal entry as stored.

    ``embedding`` stays ``None`` until ingestion computes it; such an entry can
    still match lexically but never semantically. Descriptive attributes
    (location, weather, activity) are not interpreted, only carried through
    to hydration.
    """

    id: int
    uuid: str
    text: str
    created_at: datetime
    embedding: list[float] | None = None
    modified_at: datetime | None = None
    timezone: str | None = None
    starred: bool = False
    is_pinned: bool = False
    is_all_day: bool = False
    city: str | None = None
    country: str | None = None
    place_name: str | None = None
    admin_area: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    temperature: float | None = None
    weather_conditions: str | None = None
    humidity: float | None = None
    user_activity: str | None = None
    step_count: int | None = None
    template_name: str | None = None
    editing_time: float | None = None

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def __repr__(self) -> str:
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"JournalEntry(uuid='{self.uuid}', text='{preview}')"


@dataclass
class Media:
    """A media row attached to an entry. ``url`` is None until the file is uploaded."""

    entry_id: int
    type: str
    url: str | None = None
    dimensions: dict[str, int] | None = None
    id: int = 0


@dataclass(frozen=True)
class CandidateRank:
    """One entry's 1-based position in a single channel's result list."""

    entry_id: int
    rank: int
    channel: Channel


@dataclass(frozen=True)
class FusedResult:
    """An entry's fused score plus the rank it held in each channel (None = absent)."""

    entry_id: int
    score: float
    semantic_rank: int | None = None
    lexical_rank: int | None = None

    @property
    def has_semantic(self) -> bool:
        return self.semantic_rank is not None

    @property
    def has_lexical(self) -> bool:
        return self.lexical_rank is not None

    @property
    def match_sources(self) -> tuple[str, ...]:
        sources = []
        if self.has_semantic:
            sources.append(Channel.SEMANTIC.value)
        if self.has_lexical:
            sources.append(Channel.LEXICAL.value)
        return tuple(sources)


@dataclass
class EntryRecord:
    """Raw material for hydration: the entry, its tag names and its media rows."""

    entry: JournalEntry
    tags: list[str] = field(default_factory=list)
    media: list[Media] = field(default_factory=list)


@dataclass(frozen=True)
class MediaItem:
    """A displayable media attachment."""

    type: str
    url: str
    dimensions: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "url": self.url, "dimensions": self.dimensions}


@dataclass(frozen=True)
class MediaCounts:
    photos: int = 0
    videos: int = 0
    audios: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"photos": self.photos, "videos": self.videos, "audios": self.audios}


@dataclass
class HydratedEntry:
    """Display record for one entry.

    Attributes:
        entry: The stored entry.
        tags: Tag names, deduplicated.
        media_counts: Number of photos, videos and audio clips.
        media: Attachments that have a resolved URL, in attachment order.
    """

    entry: JournalEntry
    tags: list[str]
    media_counts: MediaCounts
    media: list[MediaItem]

    @property
    def uuid(self) -> str:
        return self.entry.uuid

    @property
    def word_count(self) -> int:
        return len(self.entry.text.split()) if self.entry.text else 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize for tool/JSON output, omitting attributes the entry doesn't have."""
        e = self.entry
        result: dict[str, Any] = {
            "uuid": e.uuid,
            "created_at": e.created_at.isoformat(),
            "text": e.text,
            "starred": e.starred,
            "is_pinned": e.is_pinned,
            "tags": list(self.tags),
            "media_counts": self.media_counts.to_dict(),
            "media": [m.to_dict() for m in self.media],
            "word_count": self.word_count,
        }

        for key in ("city", "country", "place_name", "admin_area", "timezone", "template_name"):
            value = getattr(e, key)
            if value:
                result[key] = value
        for key in ("latitude", "longitude", "editing_time"):
            value = getattr(e, key)
            if value is not None:
                result[key] = value

        weather: dict[str, Any] = {}
        if e.temperature is not None:
            weather["temperature"] = e.temperature
        if e.weather_conditions:
            weather["conditions"] = e.weather_conditions
        if e.humidity is not None:
            weather["humidity"] = e.humidity
        if weather:
            result["weather"] = weather

        activity: dict[str, Any] = {}
        if e.user_activity:
            activity["name"] = e.user_activity
        if e.step_count is not None:
            activity["step_count"] = e.step_count
        if activity:
            result["activity"] = activity

        return result


@dataclass
class SearchHit:
    """A hydrated search result with its fused score and channel provenance."""

    entry: HydratedEntry
    rrf_score: float
    match_sources: tuple[str, ...]

    @property
    def has_semantic(self) -> bool:
        return Channel.SEMANTIC.value in self.match_sources

    @property
    def has_lexical(self) -> bool:
        return Channel.LEXICAL.value in self.match_sources

    def to_dict(self) -> dict[str, Any]:
        return {**self.entry.to_dict(), "rrf_score": self.rrf_score, "match_sources": list(self.match_sources)}

    def __repr__(self) -> str:
        return f"SearchHit(uuid='{self.entry.uuid}', score={self.rrf_score:.4f}, sources={list(self.match_sources)})"


@dataclass
class SimilarHit:
    """A hydrated "more like this" result. ``similarity_score`` is 1 - cosine distance."""

    entry: HydratedEntry
    similarity_score: float

    def to_dict(self) -> dict[str, Any]:
        return {**self.entry.to_dict(), "similarity_score": self.similarity_score}

    def __repr__(self) -> str:
        return f"SimilarHit(uuid='{self.entry.uuid}', similarity={self.similarity_score:.3f})"


@dataclass
class SearchOutcome:
    """Result of ``JournalSearcher.search``. Empty is a valid answer, not a failure."""

    query: str
    hits: list[SearchHit] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.hits

    def __len__(self) -> int:
        return len(self.hits)

    def __iter__(self):
        return iter(self.hits)


@dataclass
class SimilarOutcome:
    """Result of ``JournalSearcher.find_similar``."""

    source_uuid: str
    hits: list[SimilarHit] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.hits

    def __len__(self) -> int:
        return len(self.hits)

    def __iter__(self):
        return iter(self.hits)
