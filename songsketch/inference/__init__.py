"""Inference layer - Musical understanding from discrete notes.

This layer builds higher-level musical understanding from a melody:
- Key detection (Krumhansl-Schmuckler profiles)
- Phrase segmentation
- Template-based chord progression suggestions

Pipeline: Notes → Key → Segments → Scored Progressions
"""

from .key import KeyDetector, KeyEstimate, KeyCandidate
from .chords import (
    ChordSuggestionEngine,
    ChordSuggestionConfig,
    ChordCandidate,
    ProgressionCandidate,
    ProgressionTemplate,
    Segment,
    MAJOR_TEMPLATES,
    MINOR_TEMPLATES,
)

__all__ = [
    # Key detection
    "KeyDetector",
    "KeyEstimate",
    "KeyCandidate",
    # Chord suggestion
    "ChordSuggestionEngine",
    "ChordSuggestionConfig",
    "ChordCandidate",
    "ProgressionCandidate",
    "ProgressionTemplate",
    "Segment",
    "MAJOR_TEMPLATES",
    "MINOR_TEMPLATES",
]
