"""MIDI export of a suggested progression."""

import pretty_midi
from typing import List, Optional, Sequence
from pathlib import Path

from ..core import DiscreteNote, note_to_midi
from ..inference.chords import ChordCandidate, ProgressionCandidate


class ProgressionMIDIExporter:
    """Write a chord progression, and optionally its melody, to MIDI."""

    def __init__(
        self,
        tempo: float = 120.0,
        chord_program: int = 0,
        melody_program: int = 73,
        chord_octave: int = 4,
        melody_octave: int = 5,
        velocity: int = 80,
    ):
        """
        Initialize ProgressionMIDIExporter.

        Args:
            tempo: Tempo in BPM written to the file header
            chord_program: MIDI program for the chord track (0 = piano)
            melody_program: MIDI program for the melody track (73 = flute)
            chord_octave: Octave of each chord's root
            melody_octave: Octave the melody's pitch classes are placed in
            velocity: Note velocity (0-127)
        """
        self.tempo = tempo
        self.chord_program = chord_program
        self.melody_program = melody_program
        self.chord_octave = chord_octave
        self.melody_octave = melody_octave
        self.velocity = velocity

    def export(
        self,
        progression: ProgressionCandidate,
        output_path: str,
        melody: Optional[Sequence[DiscreteNote]] = None,
    ) -> None:
        """
        Export a progression to a MIDI file.

        Args:
            progression: Progression to render, chords timed by their segments
            output_path: Path to output MIDI file
            melody: Optional melody notes for a second track
        """
        midi = self.to_pretty_midi(progression, melody)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        midi.write(str(output_path))

    def to_pretty_midi(
        self,
        progression: ProgressionCandidate,
        melody: Optional[Sequence[DiscreteNote]] = None,
    ) -> pretty_midi.PrettyMIDI:
        """Convert a progression to a PrettyMIDI object without saving."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=self.tempo)

        chords = pretty_midi.Instrument(program=self.chord_program, name="Chords")
        for chord in progression.chords:
            start = chord.start_ms / 1000.0
            end = (chord.start_ms + chord.duration_ms) / 1000.0
            if end <= start:
                continue
            for pitch in self.chord_pitches(chord):
                chords.notes.append(
                    pretty_midi.Note(velocity=self.velocity, pitch=pitch, start=start, end=end)
                )
        midi.instruments.append(chords)

        if melody:
            lead = pretty_midi.Instrument(program=self.melody_program, name="Melody")
            for note in melody:
                if note.duration_ms <= 0:
                    continue
                lead.notes.append(
                    pretty_midi.Note(
                        velocity=self.velocity,
                        pitch=note_to_midi(note.pitch_class, self.melody_octave),
                        start=note.start_ms / 1000.0,
                        end=note.end_ms / 1000.0,
                    )
                )
            midi.instruments.append(lead)

        return midi

    def chord_pitches(self, chord: ChordCandidate) -> List[int]:
        """Close root-position voicing, each tone above the previous one."""
        pitches = []
        for pitch_class in chord.notes:
            pitch = note_to_midi(pitch_class, self.chord_octave)
            while pitches and pitch <= pitches[-1]:
                pitch += 12
            pitches.append(pitch)
        return pitches
