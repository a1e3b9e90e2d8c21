"""Expand ranked entry ids into display records.

Hydration is presentation only: output order is exactly the input order.
Ids the store no longer knows are dropped.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .models import MEDIA_TYPES, EntryRecord, HydratedEntry, MediaCounts, MediaItem


def hydrate_record(record: EntryRecord) -> HydratedEntry:
    """Build one display record: dedupe tags, count media per type, keep media with a URL."""
    counts = dict.fromkeys(MEDIA_TYPES, 0)
    items: list[MediaItem] = []
    for media in sorted(record.media, key=lambda m: m.id):
        if media.type in counts:
            counts[media.type] += 1
        if media.url:
            items.append(MediaItem(type=media.type, url=media.url, dimensions=media.dimensions))

    return HydratedEntry(
        entry=record.entry,
        tags=list(dict.fromkeys(record.tags)),
        media_counts=MediaCounts(photos=counts["photo"], videos=counts["video"], audios=counts["audio"]),
        media=items,
    )


def hydrate(entry_ids: Sequence[int], records: Mapping[int, EntryRecord]) -> list[tuple[int, HydratedEntry]]:
    """Hydrate ``entry_ids`` in order, pairing each with its id.

    Args:
        entry_ids: Ids in relevance order.
        records: Store output keyed by entry id.
    """
    return [(eid, hydrate_record(records[eid])) for eid in entry_ids if eid in records]
