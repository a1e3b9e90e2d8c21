"""Tests for smriti.journal.fusion (Reciprocal Rank Fusion)."""

import pytest

from smriti.journal.fusion import reciprocal_rank_fusion, rrf_term
from smriti.journal.models import CandidateRank, Channel


def _sem(*entry_ids):
    return [CandidateRank(entry_id=e, rank=i, channel=Channel.SEMANTIC) for i, e in enumerate(entry_ids, start=1)]


def _lex(*entry_ids):
    return [CandidateRank(entry_id=e, rank=i, channel=Channel.LEXICAL) for i, e in enumerate(entry_ids, start=1)]


class TestRrfTerm:
    def test_rank_one(self):
        assert rrf_term(1) == pytest.approx(1 / 61)

    def test_strictly_decreasing(self):
        terms = [rrf_term(r) for r in range(1, 50)]
        assert all(a > b for a, b in zip(terms, terms[1:]))

    def test_rank_zero_rejected(self):
        with pytest.raises(ValueError):
            rrf_term(0)


class TestReciprocalRankFusion:
    def test_both_channels_rank_one_is_max(self):
        fused = reciprocal_rank_fusion(_sem(7), _lex(7))
        assert len(fused) == 1
        assert fused[0].score == pytest.approx(2 / 61)
        assert fused[0].match_sources == ("semantic", "lexical")

    def test_single_channel_contributes_only_its_term(self):
        fused = reciprocal_rank_fusion([], _lex(3))
        assert fused[0].score == pytest.approx(1 / 61)
        assert fused[0].score == pytest.approx(0.01639, abs=1e-5)
        assert not fused[0].has_semantic
        assert fused[0].has_lexical
        assert fused[0].lexical_rank == 1
        assert fused[0].semantic_rank is None

    def test_union_of_channels(self):
        fused = reciprocal_rank_fusion(_sem(1, 2, 3), _lex(3, 4))
        assert {r.entry_id for r in fused} == {1, 2, 3, 4}

    def test_sorted_descending(self):
        fused = reciprocal_rank_fusion(_sem(1, 2, 3, 4, 5), _lex(5, 4, 9))
        scores = [r.score for r in fused]
        assert scores == sorted(scores, reverse=True)
        assert fused[0].entry_id in (4, 5)

    def test_entry_in_both_beats_single_channel_leader(self):
        # 2 is second in both channels; 1 and 8 each lead only one channel
        fused = reciprocal_rank_fusion(_sem(1, 2), _lex(8, 2))
        assert fused[0].entry_id == 2
        assert fused[0].score == pytest.approx(2 / 62)

    def test_monotonic_in_each_rank(self):
        better = reciprocal_rank_fusion(_sem(1), _lex(1))[0].score
        worse_lexical = reciprocal_rank_fusion(_sem(1), _lex(9, 1))[0]
        worse_semantic = reciprocal_rank_fusion(_sem(9, 1), _lex(1))
        worse_semantic_score = next(r.score for r in worse_semantic if r.entry_id == 1)
        assert worse_lexical.entry_id == 1
        assert better > worse_lexical.score
        assert better > worse_semantic_score

    def test_scores_in_range(self):
        fused = reciprocal_rank_fusion(_sem(*range(1, 21)), _lex(*range(10, 30)))
        assert all(0 < r.score <= 2 / 61 for r in fused)

    def test_ties_broken_by_entry_id(self):
        # 5 is semantic-only at rank 1, 2 is lexical-only at rank 1: identical scores
        fused = reciprocal_rank_fusion(_sem(5), _lex(2))
        assert fused[0].score == fused[1].score
        assert [r.entry_id for r in fused] == [2, 5]

    def test_limit_truncates_after_sorting(self):
        fused = reciprocal_rank_fusion(_sem(1, 2, 3, 4, 5), _lex(5), limit=1)
        assert len(fused) == 1
        assert fused[0].entry_id == 5

    def test_limit_none_keeps_all(self):
        assert len(reciprocal_rank_fusion(_sem(1, 2, 3), [], limit=None)) == 3

    def test_empty_inputs(self):
        assert reciprocal_rank_fusion([], []) == []

    def test_custom_k(self):
        fused = reciprocal_rank_fusion(_sem(1), [], k=1)
        assert fused[0].score == pytest.approx(0.5)

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            reciprocal_rank_fusion(_sem(1), [], k=0)

    def test_duplicate_in_channel_keeps_best_rank(self):
        candidates = [
            CandidateRank(entry_id=1, rank=3, channel=Channel.SEMANTIC),
            CandidateRank(entry_id=1, rank=1, channel=Channel.SEMANTIC),
        ]
        fused = reciprocal_rank_fusion(candidates, [])
        assert fused[0].semantic_rank == 1
        assert fused[0].score == pytest.approx(1 / 61)
