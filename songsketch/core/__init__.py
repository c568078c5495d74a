"""Core types, constants and music theory for Song Sketch."""

from .note import (
    PitchClass,
    PitchPoint,
    DiscreteNote,
    frequency_to_note,
    freq_to_midi,
    midi_to_freq,
    note_to_midi,
)
from .constants import (
    PITCH_NAMES,
    DEFAULT_WINDOW_SIZE,
    DEFAULT_GAP_TOLERANCE_MS,
    DEFAULT_MIN_NOTE_MS,
    DEFAULT_MIN_CHORD_MS,
    UNKNOWN_KEY,
)
from .theory import ScaleType, ChordType, DiatonicChord
from .tracing import Tracer, TraceSink, TraceRecorder, setup_logging

__all__ = [
    "PitchClass",
    "PitchPoint",
    "DiscreteNote",
    "frequency_to_note",
    "freq_to_midi",
    "midi_to_freq",
    "note_to_midi",
    "PITCH_NAMES",
    "DEFAULT_WINDOW_SIZE",
    "DEFAULT_GAP_TOLERANCE_MS",
    "DEFAULT_MIN_NOTE_MS",
    "DEFAULT_MIN_CHORD_MS",
    "UNKNOWN_KEY",
    "ScaleType",
    "ChordType",
    "DiatonicChord",
    "Tracer",
    "TraceSink",
    "TraceRecorder",
    "setup_logging",
]
