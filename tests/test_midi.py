"""Tests for MIDI export of suggested progressions."""

import pretty_midi
import pytest

from songsketch.core import DiscreteNote, PitchClass
from songsketch.inference import ChordSuggestionEngine
from songsketch.output import ProgressionMIDIExporter
from songsketch.pipeline import fallback_progression


@pytest.fixture
def arpeggio():
    names = ["C", "E", "G", "C", "C", "E", "G", "C"]
    return [DiscreteNote.of(n, i * 600, 600) for i, n in enumerate(names)]


@pytest.fixture
def progression(arpeggio):
    return ChordSuggestionEngine().suggest(arpeggio, "C", False)[0]


class TestChordVoicing:
    """Test chord pitch voicing."""

    def test_root_position_tonic(self, progression):
        exporter = ProgressionMIDIExporter()
        assert exporter.chord_pitches(progression.chords[0]) == [60, 64, 67]

    def test_voicing_ascends_above_root(self, progression):
        exporter = ProgressionMIDIExporter()
        am = progression.chords[2]
        assert am.symbol == "Am"
        assert exporter.chord_pitches(am) == [69, 72, 76]

    def test_chord_octave(self, progression):
        exporter = ProgressionMIDIExporter(chord_octave=3)
        assert exporter.chord_pitches(progression.chords[0]) == [48, 52, 55]


class TestPrettyMIDI:
    """Test conversion to PrettyMIDI objects."""

    def test_chords_only(self, progression):
        midi = ProgressionMIDIExporter().to_pretty_midi(progression)

        assert len(midi.instruments) == 1
        chords = midi.instruments[0]
        assert chords.name == "Chords"
        assert len(chords.notes) == 3 * len(progression.chords)

    def test_chord_timing_follows_segments(self, progression):
        midi = ProgressionMIDIExporter().to_pretty_midi(progression)
        starts = sorted({note.start for note in midi.instruments[0].notes})
        assert starts == pytest.approx([c.start_ms / 1000.0 for c in progression.chords])

    def test_with_melody(self, progression, arpeggio):
        midi = ProgressionMIDIExporter().to_pretty_midi(progression, melody=arpeggio)

        assert len(midi.instruments) == 2
        lead = midi.instruments[1]
        assert lead.name == "Melody"
        assert [n.pitch for n in lead.notes][:4] == [72, 76, 79, 72]

    def test_zero_length_chords_skipped(self):
        # No melody to span, so every chord has zero length
        progression = fallback_progression(PitchClass.C, False)
        midi = ProgressionMIDIExporter().to_pretty_midi(progression)
        assert midi.instruments[0].notes == []


class TestExport:
    """Test writing MIDI files."""

    def test_write_and_read_back(self, tmp_path, progression, arpeggio):
        path = tmp_path / "out" / "progression.mid"
        ProgressionMIDIExporter().export(progression, str(path), melody=arpeggio)

        assert path.exists()
        midi = pretty_midi.PrettyMIDI(str(path))
        assert len(midi.instruments) == 2
        assert midi.get_end_time() == pytest.approx(4.8, abs=0.01)
