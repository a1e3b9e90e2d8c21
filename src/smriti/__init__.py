"""Smriti: recall for a personal journal.

Hybrid semantic + keyword retrieval over journal entries, fused with
Reciprocal Rank Fusion, plus "more like this" nearest-neighbour lookup.
"""

__version__ = "0.1.0"
