"""Analysis pipeline - samples to key and chord suggestions.

Pipeline: samples -> pitch points -> discrete notes -> (key, segments)
-> scored progressions. Every call is independent and deterministic; the
only shared input is the caller's sample buffer, which is copied into a
read-only array before any stage sees it.
"""

import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .analysis.pitch import PitchDetectionConfig, PitchDetector, validate_samples
from .core import DiscreteNote, PitchClass
from .core.exceptions import AnalysisCancelled
from .core.theory import diatonic_chord, scale_for_mode
from .core.tracing import Tracer, TraceSink
from .inference.chords import (
    ChordCandidate,
    ChordSuggestionConfig,
    ChordSuggestionEngine,
    ProgressionCandidate,
)
from .inference.key import KeyDetector, KeyEstimate
from .processing.consolidate import ConsolidationConfig, NoteConsolidator

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


@dataclass
class AnalysisConfig:
    """Configuration for a full analysis run.

    Attributes:
        pitch: Pitch detection settings
        consolidation: Note consolidation settings
        chords: Chord suggestion settings
        max_suggestions: Progressions kept on the result (None = all)
        use_fallback: Substitute a basic progression when none could be built
    """

    pitch: PitchDetectionConfig = field(default_factory=PitchDetectionConfig)
    consolidation: ConsolidationConfig = field(default_factory=ConsolidationConfig)
    chords: ChordSuggestionConfig = field(default_factory=ChordSuggestionConfig)
    max_suggestions: Optional[int] = 3
    use_fallback: bool = False

    def __post_init__(self):
        if self.max_suggestions is not None and self.max_suggestions < 1:
            raise ValueError(f"max_suggestions must be >= 1, got {self.max_suggestions}")


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis call."""

    detected_key: str  # "<Tonic> major|minor" or "Unknown"
    suggestions: Tuple[ProgressionCandidate, ...]
    key: KeyEstimate = field(default_factory=KeyEstimate.unknown, compare=False)
    notes: Tuple[DiscreteNote, ...] = field(default=(), compare=False)
    pitch_point_count: int = field(default=0, compare=False)
    timings: Dict[str, float] = field(default_factory=dict, compare=False)

    @property
    def best(self) -> Optional[ProgressionCandidate]:
        return self.suggestions[0] if self.suggestions else None

    def to_dict(self, voiced: bool = False) -> dict:
        """
        Boundary representation.

        Args:
            voiced: Render chord notes with octave 4 ("C4") for playback
        """
        return {
            "detectedKey": self.detected_key,
            "suggestions": [s.to_dict(voiced) for s in self.suggestions],
        }


class MelodyAnalyzer:
    """Run the full analysis for one recording.

    Each stage is built from the caller's AnalysisConfig; nothing is kept
    between calls except the configured stage objects themselves.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        trace: Optional[TraceSink] = None,
    ):
        self.config = config or AnalysisConfig()
        self.tracer = Tracer(logger, trace)
        self.pitch_detector = PitchDetector(config=self.config.pitch, trace=trace)
        self.consolidator = NoteConsolidator(config=self.config.consolidation, trace=trace)
        self.key_detector = KeyDetector(trace=trace)
        self.chord_engine = ChordSuggestionEngine(config=self.config.chords, trace=trace)

    def analyze(
        self,
        samples: np.ndarray,
        sample_rate: float,
        should_cancel: Optional[CancelCheck] = None,
    ) -> AnalysisResult:
        """
        Analyze a mono recording.

        Args:
            samples: Mono samples normalized to [-1, 1]
            sample_rate: Sample rate in Hz
            should_cancel: Optional check polled between windows and stages

        Returns:
            AnalysisResult; silence yields an "Unknown" key and no suggestions

        Raises:
            TypeError: If samples is None
            ValueError: If sample_rate <= 0 or samples is not mono
            AnalysisCancelled: If should_cancel returns True
        """
        audio = validate_samples(samples, sample_rate).copy()
        audio.setflags(write=False)
        timings: Dict[str, float] = {}

        start = time.perf_counter()
        points = self.pitch_detector.analyze(audio, sample_rate, should_cancel)
        self._record(timings, "pitch", start)

        _check(should_cancel, "note consolidation")
        start = time.perf_counter()
        notes = self.consolidator.consolidate(points)
        self._record(timings, "consolidate", start)

        result = self._harmonize(notes, should_cancel, timings)
        return AnalysisResult(
            detected_key=result.detected_key,
            suggestions=result.suggestions,
            key=result.key,
            notes=result.notes,
            pitch_point_count=len(points),
            timings=timings,
        )

    def analyze_notes(
        self,
        notes: Sequence[DiscreteNote],
        should_cancel: Optional[CancelCheck] = None,
    ) -> AnalysisResult:
        """Run key detection and chord suggestion on already-discrete notes."""
        return self._harmonize(list(notes), should_cancel, {})

    def analyze_file(self, path: str, loader=None) -> AnalysisResult:
        """Decode an audio file and analyze it."""
        from .input import AudioLoader

        loader = loader or AudioLoader()
        audio, sr = loader.load(path)
        return self.analyze(audio, sr)

    def submit(
        self,
        executor: Executor,
        samples: np.ndarray,
        sample_rate: float,
        should_cancel: Optional[CancelCheck] = None,
    ) -> "Future[AnalysisResult]":
        """
        Schedule analyze() on a caller-managed executor.

        The buffer is validated and copied here, on the calling thread, so
        the caller may reuse it as soon as this returns.
        """
        audio = validate_samples(samples, sample_rate).copy()
        return executor.submit(self.analyze, audio, sample_rate, should_cancel)

    def _harmonize(
        self,
        notes: List[DiscreteNote],
        should_cancel: Optional[CancelCheck],
        timings: Dict[str, float],
    ) -> AnalysisResult:
        _check(should_cancel, "key detection")
        start = time.perf_counter()
        key = self.key_detector.detect(notes)
        self._record(timings, "key", start)

        _check(should_cancel, "chord suggestion")
        start = time.perf_counter()
        if key.is_unknown:
            suggestions = []
        else:
            suggestions = self.chord_engine.suggest(notes, key.tonic, key.is_minor, should_cancel)
        self._record(timings, "chords", start)

        if not suggestions and self.config.use_fallback and not key.is_unknown:
            suggestions = [fallback_progression(key.tonic, key.is_minor, notes)]

        if self.config.max_suggestions is not None:
            suggestions = suggestions[: self.config.max_suggestions]

        return AnalysisResult(
            detected_key=key.label,
            suggestions=tuple(suggestions),
            key=key,
            notes=tuple(notes),
            timings=timings,
        )

    def _record(self, timings: Dict[str, float], stage: str, start: float) -> None:
        elapsed = time.perf_counter() - start
        timings[stage] = elapsed
        self.tracer.emit("pipeline.stage", stage=stage, seconds=round(elapsed, 4))


def _check(should_cancel: Optional[CancelCheck], stage: str) -> None:
    if should_cancel is not None and should_cancel():
        raise AnalysisCancelled(stage)


def analyze_in_background(
    samples: np.ndarray,
    sample_rate: float,
    config: Optional[AnalysisConfig] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> "Future[AnalysisResult]":
    """Run one analysis on a dedicated worker thread and return its future."""
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="songsketch")
    try:
        return MelodyAnalyzer(config).submit(executor, samples, sample_rate, should_cancel)
    finally:
        # Lets the submitted job finish, then releases the thread
        executor.shutdown(wait=False)


def fallback_progression(
    tonic: PitchClass,
    is_minor: bool,
    notes: Sequence[DiscreteNote] = (),
) -> ProgressionCandidate:
    """
    Basic I-IV-V-I (or i-iv-v-i) progression spread across the melody.

    Used only when the caller opts in and no template fit the melody.
    """
    span_start = notes[0].start_ms if notes else 0
    span = (notes[-1].end_ms - span_start) if notes else 0
    slot = span // 4

    chords = []
    for i, degree in enumerate((1, 4, 5, 1)):
        chord = diatonic_chord(degree, tonic, is_minor)
        chords.append(
            ChordCandidate(
                symbol=chord.symbol,
                root=chord.root,
                chord_type=chord.chord_type,
                notes=tuple(chord.notes),
                start_ms=span_start + i * slot,
                duration_ms=slot,
                fitness_weight=0.0,
                degree=degree,
            )
        )

    return ProgressionCandidate(
        name="Basic Minor Progression" if is_minor else "Basic Major Progression",
        key=tonic,
        scale=scale_for_mode(is_minor),
        chords=tuple(chords),
        score=0.0,
    )
