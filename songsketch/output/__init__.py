"""Output layer - Export of suggested progressions.

This layer writes a chosen progression to a MIDI file so it can be played
back in any synthesizer, optionally with the melody on its own track.
"""

from .midi import ProgressionMIDIExporter

__all__ = [
    "ProgressionMIDIExporter",
]
