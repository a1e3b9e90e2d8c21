"""Reciprocal Rank Fusion of the semantic and lexical candidate lists.

Each entry scores ``sum(1 / (k + rank))`` over the channels it appears in;
a channel that didn't return the entry adds nothing. With the default
``k = 60`` the best possible score (rank 1 in both channels) is 2/61 and a
rank-1 hit in a single channel scores 1/61.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import CandidateRank, Channel, FusedResult

DEFAULT_RRF_K = 60


def rrf_term(rank: int, k: int = DEFAULT_RRF_K) -> float:
    """Contribution of a single 1-based rank."""
    if rank < 1:
        raise ValueError(f"Ranks are 1-based, got {rank}")
    return 1.0 / (k + rank)


def reciprocal_rank_fusion(
    semantic: Iterable[CandidateRank],
    lexical: Iterable[CandidateRank],
    limit: int | None = None,
    k: int = DEFAULT_RRF_K,
) -> list[FusedResult]:
    """Merge two ranked candidate lists into one scored list.

    The result is the union of both inputs, sorted by score descending with
    entry id ascending as the tie-breaker, then truncated to ``limit``.

    Args:
        semantic: Candidates from the vector channel.
        lexical: Candidates from the text channel.
        limit: Maximum results to return. None keeps all.
        k: Smoothing constant; larger values flatten the rank curve.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")

    ranks: dict[int, dict[Channel, int]] = {}
    for candidate in (*semantic, *lexical):
        per_channel = ranks.setdefault(candidate.entry_id, {})
        # Keep the best rank if a channel repeats an entry
        previous = per_channel.get(candidate.channel)
        if previous is None or candidate.rank < previous:
            per_channel[candidate.channel] = candidate.rank

    fused = [
        FusedResult(
            entry_id=entry_id,
            score=sum(rrf_term(rank, k) for rank in per_channel.values()),
            semantic_rank=per_channel.get(Channel.SEMANTIC),
            lexical_rank=per_channel.get(Channel.LEXICAL),
        )
        for entry_id, per_channel in ranks.items()
    ]
    fused.sort(key=lambda r: (-r.score, r.entry_id))

    if limit is not None:
        fused = fused[: max(limit, 0)]
    return fused
