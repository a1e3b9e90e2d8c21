"""Human-readable and JSON renderings of search outcomes.

The text forms are what a chat model or terminal user sees; the JSON form
is for programmatic callers.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from .models import HydratedEntry, SearchOutcome, SimilarOutcome

NO_RESULTS_MESSAGE = "No results found. Try broadening your search query or adjusting filters."
NO_SIMILAR_MESSAGE = "No similar entries found. The source entry may not have an embedding."

PREVIEW_CHARS = 200

_SOURCE_LABELS = {"semantic": "semantic", "lexical": "keyword"}


def format_date(value: datetime) -> str:
    """Render a timestamp as e.g. ``Mar 5, 2024`` (UTC)."""
    utc = value.astimezone(timezone.utc) if value.tzinfo else value
    return f"{utc:%b} {utc.day}, {utc.year}"


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Single-line preview, truncated with an ellipsis."""
    flat = " ".join(text.split()) if text else ""
    return flat[:limit] + "..." if len(flat) > limit else flat


def _entry_lines(position: int, entry: HydratedEntry, show_star: bool) -> list[str]:
    e = entry.entry
    header = [f"{position}.", f"\U0001f4c5 {format_date(e.created_at)}"]
    if e.city:
        header.append(f"\U0001f4cd {e.city}")
    if show_star and e.starred:
        header.append("⭐")

    lines = [" ".join(header)]
    if entry.tags:
        lines.append(f"   \U0001f3f7️ {', '.join(entry.tags)}")
    text = preview(e.text)
    if text:
        lines.append(f"   {text}")
    return lines


def format_search_results(outcome: SearchOutcome) -> str:
    """Numbered list of search hits with score and match sources."""
    if outcome.is_empty:
        return NO_RESULTS_MESSAGE

    count = len(outcome)
    lines = [f"Found {count} result{'s' if count > 1 else ''}:\n"]
    for i, hit in enumerate(outcome.hits, start=1):
        lines.extend(_entry_lines(i, hit.entry, show_star=True))
        sources = " + ".join(_SOURCE_LABELS.get(s, s) for s in hit.match_sources)
        lines.append(f"   Score: {hit.rrf_score:.4f} [{sources}] | ID: {hit.entry.uuid}")
        lines.append("")

    return "\n".join(lines).strip()


def format_similar_results(outcome: SimilarOutcome) -> str:
    """Numbered list of similar entries with similarity percentage."""
    if outcome.is_empty:
        return NO_SIMILAR_MESSAGE

    count = len(outcome)
    lines = [f"Found {count} similar entr{'ies' if count > 1 else 'y'}:\n"]
    for i, hit in enumerate(outcome.hits, start=1):
        lines.extend(_entry_lines(i, hit.entry, show_star=False))
        lines.append(f"   Similarity: {hit.similarity_score * 100:.1f}% | ID: {hit.entry.uuid}")
        lines.append("")

    return "\n".join(lines).strip()


def outcome_to_json(outcome: SearchOutcome | SimilarOutcome) -> str:
    """JSON array of hit dicts (``[]`` when empty)."""
    return json.dumps([hit.to_dict() for hit in outcome.hits], indent=2, ensure_ascii=False, default=str)
