"""Tests for the full analysis pipeline."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from songsketch import AnalysisCancelled, AnalysisConfig, MelodyAnalyzer, analyze_in_background
from songsketch.analysis import PitchDetectionConfig
from songsketch.core import DiscreteNote, PitchClass, TraceRecorder
from songsketch.evaluation import REFERENCE_MELODIES, run_cases
from songsketch.pipeline import fallback_progression

from generate_test_audio import (
    A_MINOR_SCALE,
    C_MAJOR_SCALE,
    generate_note_sequence,
    generate_silence,
    write_wav,
)

SR = 22050


def crisp_config(**kwargs):
    """No smoothing so note changes are tracked immediately."""
    return AnalysisConfig(pitch=PitchDetectionConfig(smoothing=0.0), **kwargs)


@pytest.fixture(scope="module")
def c_major_audio():
    return generate_note_sequence(C_MAJOR_SCALE, [0.5] * 8, SR)


class TestAudioAnalysis:
    """Samples in, key and suggestions out."""

    def test_silence_is_unknown(self):
        result = MelodyAnalyzer().analyze(generate_silence(2.0, SR), SR)

        assert result.detected_key == "Unknown"
        assert result.suggestions == ()
        assert result.to_dict() == {"detectedKey": "Unknown", "suggestions": []}

    def test_empty_buffer_is_unknown(self):
        result = MelodyAnalyzer().analyze(np.array([], dtype=np.float32), SR)
        assert result.detected_key == "Unknown"

    def test_c_major_scale(self, c_major_audio):
        result = MelodyAnalyzer(crisp_config()).analyze(c_major_audio, SR)

        assert result.detected_key == "C major"
        assert result.pitch_point_count > 0
        assert [n.name for n in result.notes] == ["C", "D", "E", "F", "G", "A", "B", "C"]

    def test_a_minor_scale(self):
        audio = generate_note_sequence(A_MINOR_SCALE, [0.5] * 8, SR)
        result = MelodyAnalyzer(crisp_config()).analyze(audio, SR)
        assert result.detected_key == "A minor"

    def test_notes_ordered_non_overlapping(self, c_major_audio):
        notes = MelodyAnalyzer(crisp_config()).analyze(c_major_audio, SR).notes
        for prev, cur in zip(notes, notes[1:]):
            assert prev.end_ms <= cur.start_ms

    def test_input_buffer_untouched(self, c_major_audio):
        audio = c_major_audio.copy()
        MelodyAnalyzer(crisp_config()).analyze(audio, SR)
        np.testing.assert_array_equal(audio, c_major_audio)

    def test_deterministic(self, c_major_audio):
        analyzer = MelodyAnalyzer(crisp_config())
        assert analyzer.analyze(c_major_audio, SR) == analyzer.analyze(c_major_audio, SR)

    def test_timings_and_trace(self, c_major_audio):
        recorder = TraceRecorder()
        result = MelodyAnalyzer(crisp_config(), trace=recorder).analyze(c_major_audio, SR)

        assert set(result.timings) == {"pitch", "consolidate", "key", "chords"}
        stages = [f["stage"] for name, f in recorder.events if name == "pipeline.stage"]
        assert stages == ["pitch", "consolidate", "key", "chords"]
        assert "pitch.summary" in recorder.names()
        assert "key.selected" in recorder.names()

    def test_invalid_input(self):
        analyzer = MelodyAnalyzer()
        with pytest.raises(TypeError):
            analyzer.analyze(None, SR)
        with pytest.raises(ValueError):
            analyzer.analyze(np.zeros(4096, dtype=np.float32), 0)

    def test_cancellation(self, c_major_audio):
        with pytest.raises(AnalysisCancelled):
            MelodyAnalyzer().analyze(c_major_audio, SR, should_cancel=lambda: True)

    def test_analyze_file(self, c_major_audio, tmp_path):
        path = write_wav(tmp_path / "scale.wav", c_major_audio, SR)
        result = MelodyAnalyzer(crisp_config()).analyze_file(path)
        assert result.detected_key == "C major"


class TestNoteAnalysis:
    """Discrete notes in, key and suggestions out."""

    def arpeggio(self):
        names = ["C", "E", "G", "C", "C", "E", "G", "C"]
        return [DiscreteNote.of(n, i * 600, 600) for i, n in enumerate(names)]

    def test_arpeggio(self):
        result = MelodyAnalyzer().analyze_notes(self.arpeggio())

        assert result.detected_key == "C major"
        assert result.best.name == "Pop I-V-vi-IV"
        assert result.best.chords[0].symbol == "C"

    def test_max_suggestions(self):
        result = MelodyAnalyzer(AnalysisConfig(max_suggestions=1)).analyze_notes(self.arpeggio())
        assert len(result.suggestions) == 1

        result = MelodyAnalyzer(AnalysisConfig(max_suggestions=None)).analyze_notes(self.arpeggio())
        assert len(result.suggestions) == 6

    def test_default_keeps_three(self):
        assert len(MelodyAnalyzer().analyze_notes(self.arpeggio()).suggestions) == 3

    def test_to_dict_boundary_format(self):
        data = MelodyAnalyzer().analyze_notes(self.arpeggio()).to_dict()

        assert data["detectedKey"] == "C major"
        first = data["suggestions"][0]
        assert set(first) == {"name", "key", "score", "chords"}
        assert first["chords"][0] == {"symbol": "C", "notes": ["C", "E", "G"]}

    def test_bad_config(self):
        with pytest.raises(ValueError):
            AnalysisConfig(max_suggestions=0)


class TestFallback:
    """Opt-in basic progression when no template fits."""

    scale = [DiscreteNote.of(n, i * 500, 500) for i, n in enumerate("CDEFGABC")]

    def test_off_by_default(self):
        assert MelodyAnalyzer().analyze_notes(self.scale).suggestions == ()

    def test_major_fallback(self):
        result = MelodyAnalyzer(AnalysisConfig(use_fallback=True)).analyze_notes(self.scale)

        assert len(result.suggestions) == 1
        fallback = result.best
        assert fallback.name == "Basic Major Progression"
        assert fallback.symbols == ["C", "F", "G", "C"]
        assert fallback.score == 0.0

    def test_minor_fallback(self):
        progression = fallback_progression(PitchClass.A, True)
        assert progression.name == "Basic Minor Progression"
        assert progression.symbols == ["Am", "Dm", "Em", "Am"]

    def test_fallback_spans_melody(self):
        progression = fallback_progression(PitchClass.C, False, self.scale)
        assert [c.start_ms for c in progression.chords] == [0, 1000, 2000, 3000]
        assert all(c.duration_ms == 1000 for c in progression.chords)

    def test_no_fallback_for_unknown_key(self):
        result = MelodyAnalyzer(AnalysisConfig(use_fallback=True)).analyze_notes([])
        assert result.suggestions == ()


class TestConcurrency:
    """Background execution."""

    def test_submit(self, c_major_audio):
        analyzer = MelodyAnalyzer(crisp_config())
        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = [analyzer.submit(executor, c_major_audio, SR) for _ in range(2)]
            results = [f.result(timeout=60) for f in futures]

        assert results[0] == results[1]
        assert results[0].detected_key == "C major"

    def test_submit_copies_buffer(self, c_major_audio):
        audio = c_major_audio.copy()
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = MelodyAnalyzer(crisp_config()).submit(executor, audio, SR)
            audio[:] = 0.0
            result = future.result(timeout=60)

        assert result.detected_key == "C major"

    def test_submit_validates_eagerly(self):
        with ThreadPoolExecutor(max_workers=1) as executor:
            with pytest.raises(TypeError):
                MelodyAnalyzer().submit(executor, None, SR)

    def test_analyze_in_background(self, c_major_audio):
        future = analyze_in_background(c_major_audio, SR, crisp_config())
        assert future.result(timeout=60).detected_key == "C major"

    def test_background_cancellation(self, c_major_audio):
        future = analyze_in_background(c_major_audio, SR, should_cancel=lambda: True)
        with pytest.raises(AnalysisCancelled):
            future.result(timeout=60)


class TestReferenceMelodies:
    """Built-in reference melodies."""

    def test_all_pass(self):
        outcomes = run_cases()

        assert len(outcomes) == len(REFERENCE_MELODIES) == 4
        for outcome in outcomes:
            assert outcome.passed, f"{outcome.case.name}: {outcome.result.detected_key}"

    def test_harmonized_cases_have_chords(self):
        outcomes = {o.case.name: o for o in run_cases()}
        assert outcomes["C Major Arpeggio"].has_chords
        assert outcomes["I-vi-IV-V Melody"].has_chords
