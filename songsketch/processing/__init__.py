"""Processing layer - Pitch points to discrete notes.

Consecutive estimates with the same pitch class are merged into notes;
runs interrupted by long gaps are split and very short runs dropped.
"""

from .consolidate import NoteConsolidator, ConsolidationConfig, ConsolidationStats, consolidate

__all__ = [
    "NoteConsolidator",
    "ConsolidationConfig",
    "ConsolidationStats",
    "consolidate",
]
