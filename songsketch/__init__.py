"""Song Sketch - Hummed melody to key and chord suggestions.

Architecture Layers:
    1. input/       - Audio decoding into mono sample buffers
    2. analysis/    - Windowed pitch detection
    3. processing/  - Pitch points to discrete notes
    4. inference/   - Key detection and chord progression suggestions
    5. output/      - MIDI export of a suggested progression

Pipeline: samples → pitch points → notes → key → segments → progressions
"""

__version__ = "0.1.0"

# Core types
from .core import PitchClass, PitchPoint, DiscreteNote

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import PitchDetector, PitchDetectionConfig

# Processing layer
from .processing import NoteConsolidator, ConsolidationConfig

# Inference layer
from .inference import (
    KeyDetector,
    KeyEstimate,
    ChordSuggestionEngine,
    ChordSuggestionConfig,
    ProgressionCandidate,
)

# Pipeline
from .pipeline import (
    AnalysisConfig,
    AnalysisResult,
    MelodyAnalyzer,
    analyze_in_background,
)
from .core.exceptions import AnalysisCancelled

# Output layer
from .output import ProgressionMIDIExporter

__all__ = [
    # Core
    "PitchClass",
    "PitchPoint",
    "DiscreteNote",
    # Input
    "AudioLoader",
    # Analysis
    "PitchDetector",
    "PitchDetectionConfig",
    # Processing
    "NoteConsolidator",
    "ConsolidationConfig",
    # Inference
    "KeyDetector",
    "KeyEstimate",
    "ChordSuggestionEngine",
    "ChordSuggestionConfig",
    "ProgressionCandidate",
    # Pipeline
    "AnalysisConfig",
    "AnalysisResult",
    "MelodyAnalyzer",
    "analyze_in_background",
    "AnalysisCancelled",
    # Output
    "ProgressionMIDIExporter",
]
