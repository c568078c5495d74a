"""Tests for Krumhansl-Schmuckler key detection."""

import numpy as np
import pytest

from songsketch.core import DiscreteNote, PitchClass, TraceRecorder
from songsketch.inference import KeyDetector, KeyEstimate


C_MAJOR_SCALE = ["C", "D", "E", "F", "G", "A", "B", "C"]
A_MINOR_SCALE = ["A", "B", "C", "D", "E", "F", "G", "A"]


class TestKeyDetection:
    """Test key detection on simple melodies."""

    def test_c_major_scale(self):
        key = KeyDetector().detect(C_MAJOR_SCALE)

        assert key.tonic is PitchClass.C
        assert not key.is_minor
        assert key.label == "C major"
        assert key.confidence > 0.85

    def test_a_minor_scale(self):
        key = KeyDetector().detect(A_MINOR_SCALE)

        assert key.tonic is PitchClass.A
        assert key.is_minor
        assert key.label == "A minor"

    def test_discrete_notes_accepted(self):
        notes = [DiscreteNote.of(name, i * 500, 500) for i, name in enumerate(C_MAJOR_SCALE)]
        assert KeyDetector().detect(notes).label == "C major"

    def test_transposed_scale(self):
        g_major = ["G", "A", "B", "C", "D", "E", "F#", "G"]
        assert KeyDetector().detect(g_major).label == "G major"

    def test_flats_and_octaves(self):
        f_major = ["F4", "G4", "A4", "Bb4", "C5", "D5", "E5", "F5"]
        assert KeyDetector().detect(f_major).label == "F major"

    def test_order_does_not_matter(self):
        detector = KeyDetector()
        forward = detector.detect(C_MAJOR_SCALE)
        backward = detector.detect(list(reversed(C_MAJOR_SCALE)))
        assert forward == backward

    def test_output_uses_sharp_names(self):
        eb_major = ["Eb", "F", "G", "Ab", "Bb", "C", "D", "Eb"]
        assert KeyDetector().detect(eb_major).label == "D# major"


class TestUnknownKey:
    """Nothing usable yields the Unknown sentinel."""

    def test_empty(self):
        key = KeyDetector().detect([])
        assert key.is_unknown
        assert key.label == "Unknown"
        assert key == KeyEstimate.unknown()

    def test_unparseable_names(self):
        assert KeyDetector().detect(["X", "", "H2"]).is_unknown

    def test_unparseable_names_are_skipped(self):
        names = C_MAJOR_SCALE + ["??", "Z"]
        assert KeyDetector().detect(names).label == "C major"


class TestRanking:
    """Test histogram and candidate ranking."""

    def test_histogram_normalized(self):
        hist = KeyDetector().histogram(C_MAJOR_SCALE)

        assert hist.shape == (12,)
        assert hist.sum() == pytest.approx(1.0)
        assert hist[0] == pytest.approx(2 / 8)
        assert hist[1] == 0.0

    def test_histogram_empty(self):
        assert KeyDetector().histogram([]) is None

    def test_rank_returns_all_keys_sorted(self):
        ranked = KeyDetector().rank(C_MAJOR_SCALE)

        assert len(ranked) == 24
        correlations = [c.correlation for c in ranked]
        assert correlations == sorted(correlations, reverse=True)
        assert ranked[0].name == "C major"

    def test_alternatives_exclude_winner(self):
        key = KeyDetector(alternatives=3).detect(C_MAJOR_SCALE)

        assert len(key.alternatives) == 3
        assert all(not (c.tonic is key.tonic and c.is_minor == key.is_minor) for c in key.alternatives)

    def test_single_pitch_class(self):
        # A one-bin histogram still correlates; the winner must be a real key
        key = KeyDetector().detect(["E", "E", "E"])
        assert not key.is_unknown
        assert -1.0 <= key.confidence <= 1.0

    def test_flat_distribution_is_zero_correlation(self):
        assert KeyDetector._correlate(np.full(12, 1 / 12), KeyDetector.MAJOR_PROFILE) == 0.0

    def test_flat_distribution_falls_back_to_first_candidate(self):
        chromatic = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
        assert KeyDetector().detect(chromatic).label == "C major"

    def test_trace_events(self):
        recorder = TraceRecorder()
        KeyDetector(trace=recorder).detect(A_MINOR_SCALE)

        assert recorder.last("key.selected")["key"] == "A minor"
        assert "A" in recorder.last("key.histogram")["distribution"]
