"""Chord suggestion - Harmonize a melody with diatonic progressions.

Implements template-based harmonization:
- Phrase segmentation of the melody (one chord per segment)
- Roman-numeral progression templates for major and natural-minor keys
- Duration-weighted chord fitness with strong-beat emphasis
- Root-motion and cadence scoring across the progression
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..core import DiscreteNote, PitchClass, UNKNOWN_KEY
from ..core.constants import DEFAULT_MIN_CHORD_MS
from ..core.exceptions import AnalysisCancelled
from ..core.theory import (
    ChordType,
    DiatonicChord,
    ScaleType,
    build_scale,
    diatonic_chord,
    interval,
    roman_to_degree,
    scale_degree,
    scale_for_mode,
    voice_chord,
)
from ..core.tracing import Tracer, TraceSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressionTemplate:
    """A named roman-numeral progression."""

    name: str
    numerals: Tuple[str, ...]
    degrees: Tuple[int, ...]

    @classmethod
    def parse(cls, name: str, numerals: Sequence[str]) -> "ProgressionTemplate":
        """
        Build a template from roman numerals.

        Raises:
            ValueError: If the list is empty or a numeral is not I-VII
        """
        numerals = tuple(numerals)
        if not numerals:
            raise ValueError(f"Progression {name!r} has no chords")
        return cls(name, numerals, tuple(roman_to_degree(n) for n in numerals))

    def __len__(self) -> int:
        return len(self.degrees)


MAJOR_TEMPLATES = (
    ProgressionTemplate.parse("Basic I-IV-V", ["I", "IV", "V"]),
    ProgressionTemplate.parse("Pop I-V-vi-IV", ["I", "V", "vi", "IV"]),
    ProgressionTemplate.parse("Classic I-vi-IV-V", ["I", "vi", "IV", "V"]),
    ProgressionTemplate.parse("ii-V-I", ["ii", "V", "I"]),
    ProgressionTemplate.parse("Turnaround I-vi-ii-V", ["I", "vi", "ii", "V"]),
    ProgressionTemplate.parse("vi-ii-V-I", ["vi", "ii", "V", "I"]),
)

MINOR_TEMPLATES = (
    ProgressionTemplate.parse("Natural Minor i-iv-v", ["i", "iv", "v"]),
    ProgressionTemplate.parse("Harmonic Minor i-iv-V", ["i", "iv", "V"]),
    ProgressionTemplate.parse("Epic i-VI-III-VII", ["i", "VI", "III", "VII"]),
    ProgressionTemplate.parse("Minor ii°-V-i", ["ii°", "V", "i"]),
)

CustomProgression = Union[ProgressionTemplate, Sequence[str], Tuple[str, Sequence[str]]]


@dataclass(frozen=True)
class Segment:
    """A contiguous, non-empty run of melody notes harmonized by one chord."""

    notes: Tuple[DiscreteNote, ...]

    def __post_init__(self):
        if not self.notes:
            raise ValueError("Segment must contain at least one note")

    @property
    def start_ms(self) -> int:
        return self.notes[0].start_ms

    @property
    def end_ms(self) -> int:
        return self.notes[-1].end_ms

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def __len__(self) -> int:
        return len(self.notes)


@dataclass(frozen=True)
class ChordCandidate:
    """A chord placed over one melody segment."""

    symbol: str
    root: PitchClass
    chord_type: ChordType
    notes: Tuple[PitchClass, ...]
    start_ms: int
    duration_ms: int
    fitness_weight: float
    degree: int

    def to_dict(self, voiced: bool = False) -> dict:
        names = voice_chord(self.notes) if voiced else [n.label for n in self.notes]
        return {"symbol": self.symbol, "notes": names}


@dataclass(frozen=True)
class ProgressionCandidate:
    """A scored progression, one chord per segment."""

    name: str
    key: PitchClass
    scale: ScaleType
    chords: Tuple[ChordCandidate, ...]
    score: float

    @property
    def is_minor(self) -> bool:
        return self.scale == scale_for_mode(True)

    @property
    def key_label(self) -> str:
        return f"{self.key.label} {'minor' if self.is_minor else 'major'}"

    @property
    def symbols(self) -> List[str]:
        return [c.symbol for c in self.chords]

    def to_dict(self, voiced: bool = False) -> dict:
        return {
            "name": self.name,
            "key": self.key_label,
            "score": round(self.score, 4),
            "chords": [c.to_dict(voiced) for c in self.chords],
        }


@dataclass
class ChordSuggestionConfig:
    """Configuration for chord suggestion.

    Attributes:
        min_chord_duration_ms: Shortest accumulated segment before a boundary (default: 400)
        long_note_ms: A previous note longer than this ends a phrase (default: 500)
        leap_semitones: A pitch jump larger than this ends a phrase (default: 4)
        rest_gap_ms: A silence longer than this ends a phrase (default: 300)
        notes_per_forced_segment: Target notes per segment for the even-split fallback (default: 6)
        max_progressions: Keep at most this many candidates (default: None = all)
        custom_progressions: Extra roman-numeral progressions to try
    """

    min_chord_duration_ms: int = DEFAULT_MIN_CHORD_MS
    long_note_ms: int = 500
    leap_semitones: int = 4
    rest_gap_ms: int = 300
    notes_per_forced_segment: int = 6
    max_progressions: Optional[int] = None
    custom_progressions: Sequence[CustomProgression] = field(default_factory=tuple)

    def __post_init__(self):
        if self.min_chord_duration_ms < 0:
            raise ValueError(
                f"min_chord_duration_ms must be >= 0, got {self.min_chord_duration_ms}"
            )
        if self.notes_per_forced_segment < 1:
            raise ValueError(
                f"notes_per_forced_segment must be >= 1, got {self.notes_per_forced_segment}"
            )
        if self.max_progressions is not None and self.max_progressions < 1:
            raise ValueError(f"max_progressions must be >= 1, got {self.max_progressions}")
        self.custom_progressions = tuple(
            _as_template(p, i) for i, p in enumerate(self.custom_progressions)
        )


def _as_template(progression: CustomProgression, index: int) -> ProgressionTemplate:
    if isinstance(progression, ProgressionTemplate):
        return progression
    if (
        isinstance(progression, tuple)
        and len(progression) == 2
        and isinstance(progression[0], str)
        and not isinstance(progression[1], str)
    ):
        return ProgressionTemplate.parse(progression[0], progression[1])
    if isinstance(progression, str):
        progression = progression.replace("-", " ").split()
    return ProgressionTemplate.parse(f"Custom {index + 1}", progression)


class ChordSuggestionEngine:
    """Suggest chord progressions for a melody in a known key.

    Features:
    - Phrase segmentation on long notes, leaps and rests
    - Even-split fallback so regular melodies still get several chords
    - Major and natural-minor template sets plus caller templates
    - Fitness and voice-leading scores, best progression first
    """

    # Per-note fitness
    CHORD_TONE_SCORE = 2.2
    SCALE_TONE_SCORE = 1.0
    CHROMATIC_SCORE = 0.1
    STRONG_BEAT_CHORD_TONE = 1.4
    STRONG_BEAT_OTHER = 0.7
    SUSTAIN_BONUS = 0.4
    SUSTAIN_MS = 400
    MIN_WEIGHT_MS = 1
    MAX_WEIGHT_MS = 2000

    # Fixed half-second grid, no tempo input
    BEAT_GRID_MS = 500
    STRONG_BEAT_WINDOW_MS = 120

    # Root motion bonuses keyed by upward interval in semitones
    ROOT_MOTION = {
        1: 0.2,
        2: 0.2,
        3: 0.2,
        4: 0.2,
        5: 0.3,   # Fourth
        6: -0.2,  # Tritone
        7: 0.4,   # Fifth
    }
    TWO_FIVE_BONUS = 0.4
    FIVE_ONE_BONUS = 0.6
    FINAL_TONIC_BONUS = 0.6
    FINAL_DECEPTIVE_BONUS = 0.3

    def __init__(
        self,
        min_chord_duration_ms: int = DEFAULT_MIN_CHORD_MS,
        custom_progressions: Sequence[CustomProgression] = (),
        config: Optional[ChordSuggestionConfig] = None,
        trace: Optional[TraceSink] = None,
    ):
        """
        Initialize ChordSuggestionEngine.

        Args:
            min_chord_duration_ms: Shortest accumulated segment before a boundary
            custom_progressions: Extra roman-numeral progressions to try
            config: Optional ChordSuggestionConfig, overrides the keyword arguments
            trace: Optional sink for structured trace events
        """
        if config is not None:
            self.config = config
        else:
            self.config = ChordSuggestionConfig(
                min_chord_duration_ms=min_chord_duration_ms,
                custom_progressions=custom_progressions,
            )
        self.tracer = Tracer(logger, trace)

    def suggest(
        self,
        melody: Sequence[DiscreteNote],
        key_tonic: Union[PitchClass, str, None],
        is_minor: bool,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[ProgressionCandidate]:
        """
        Suggest progressions for a melody, best first.

        Args:
            melody: Time-ordered discrete notes
            key_tonic: Key tonic; None or "Unknown" yields no suggestions
            is_minor: Natural-minor key when True
            should_cancel: Optional check polled between templates

        Returns:
            ProgressionCandidate list sorted by score, descending; empty for
            an empty melody or an unknown key
        """
        if not melody:
            self.tracer.emit("chords.skipped", reason="empty melody")
            return []
        if key_tonic is None or key_tonic == UNKNOWN_KEY:
            self.tracer.emit("chords.skipped", reason="unknown key")
            return []

        tonic = PitchClass.parse(key_tonic)
        scale_type = scale_for_mode(is_minor)
        scale = build_scale(tonic, scale_type)

        segments = self.segment(melody)
        self.tracer.emit(
            "chords.segments",
            count=len(segments),
            segments=[" ".join(n.name for n in s.notes) for s in segments],
        )

        candidates = []
        for template in self.templates(is_minor):
            if should_cancel is not None and should_cancel():
                raise AnalysisCancelled("chord suggestion")
            if len(template) > len(segments):
                continue
            chords = self.fit(template, segments, tonic, is_minor)
            candidates.append(
                ProgressionCandidate(
                    name=template.name,
                    key=tonic,
                    scale=scale_type,
                    chords=tuple(chords),
                    score=self.score_progression(chords, scale),
                )
            )

        # Stable sort: template order breaks ties
        candidates.sort(key=lambda p: p.score, reverse=True)
        if self.config.max_progressions is not None:
            candidates = candidates[: self.config.max_progressions]

        self.tracer.emit(
            "chords.candidates",
            count=len(candidates),
            ranking=[f"{p.name}: {' - '.join(p.symbols)} ({p.score:.3f})" for p in candidates],
        )
        if candidates:
            best = candidates[0]
            self.tracer.emit("chords.best", name=best.name, chords=best.symbols, score=best.score)

        return candidates

    def templates(self, is_minor: bool) -> List[ProgressionTemplate]:
        """Built-in templates for the mode followed by the custom ones."""
        built_in = MINOR_TEMPLATES if is_minor else MAJOR_TEMPLATES
        return list(built_in) + list(self.config.custom_progressions)

    def segment(self, melody: Sequence[DiscreteNote]) -> List[Segment]:
        """
        Split a melody into phrase segments.

        A segment closes after a note once it has accumulated at least
        min_chord_duration_ms and the step into that note is a phrase
        boundary. If fewer than two segments result from a melody of more
        than two notes, the melody is split evenly instead.
        """
        if not melody:
            return []

        segments = []
        current = [melody[0]]
        duration = melody[0].duration_ms

        for i in range(1, len(melody)):
            note = melody[i]
            current.append(note)
            duration += note.duration_ms
            if (
                duration >= self.config.min_chord_duration_ms
                and self._is_phrase_boundary(melody[i - 1], note)
            ):
                segments.append(Segment(tuple(current)))
                current = []
                duration = 0

        if current:
            segments.append(Segment(tuple(current)))

        if len(segments) < 2 and len(melody) > 2:
            return self._force_segments(melody)
        return segments

    def _force_segments(self, melody: Sequence[DiscreteNote]) -> List[Segment]:
        """Split evenly into clamp(ceil(n / 6), 2, n) segments."""
        total = len(melody)
        per_segment = self.config.notes_per_forced_segment
        target = min(max(-(-total // per_segment), 2), total)
        size = -(-total // target)
        return [Segment(tuple(melody[i : i + size])) for i in range(0, total, size)]

    def _is_phrase_boundary(self, prev: DiscreteNote, cur: DiscreteNote) -> bool:
        cfg = self.config
        is_long = prev.duration_ms > cfg.long_note_ms
        is_leap = abs(cur.pitch_class.value - prev.pitch_class.value) > cfg.leap_semitones
        is_rest = cur.start_ms - prev.end_ms > cfg.rest_gap_ms
        return is_long or is_leap or is_rest

    def fit(
        self,
        template: ProgressionTemplate,
        segments: Sequence[Segment],
        tonic: PitchClass,
        is_minor: bool,
    ) -> List[ChordCandidate]:
        """Place one template chord on each segment, cycling the template."""
        scale = build_scale(tonic, scale_for_mode(is_minor))
        chords = [diatonic_chord(d, tonic, is_minor) for d in template.degrees]

        placed = []
        for i, segment in enumerate(segments):
            chord = chords[i % len(chords)]
            placed.append(
                ChordCandidate(
                    symbol=chord.symbol,
                    root=chord.root,
                    chord_type=chord.chord_type,
                    notes=tuple(chord.notes),
                    start_ms=segment.start_ms,
                    duration_ms=segment.duration_ms,
                    fitness_weight=self.chord_fitness(chord, segment, scale),
                    degree=chord.degree,
                )
            )
        return placed

    def chord_fitness(
        self,
        chord: DiatonicChord,
        segment: Segment,
        scale: Sequence[PitchClass],
    ) -> float:
        """
        Duration-weighted fit of a chord to a segment's notes.

        Chord tones score highest, other scale tones less, chromatic notes
        almost nothing. Notes on the half-second grid are weighted toward
        chord tones, and sustained notes get a flat bonus.
        """
        chord_tones = set(chord.notes)
        scale_tones = set(scale)
        segment_start = segment.start_ms

        weight = 0.0
        total = 0.0
        for note in segment.notes:
            dur = float(min(max(note.duration_ms, self.MIN_WEIGHT_MS), self.MAX_WEIGHT_MS))
            total += dur

            in_chord = note.pitch_class in chord_tones
            if in_chord:
                score = self.CHORD_TONE_SCORE
            elif note.pitch_class in scale_tones:
                score = self.SCALE_TONE_SCORE
            else:
                score = self.CHROMATIC_SCORE

            position = max(0, note.start_ms - segment_start)
            if position % self.BEAT_GRID_MS < self.STRONG_BEAT_WINDOW_MS:
                score *= self.STRONG_BEAT_CHORD_TONE if in_chord else self.STRONG_BEAT_OTHER

            if note.duration_ms > self.SUSTAIN_MS:
                score += self.SUSTAIN_BONUS

            weight += score * dur

        if total <= 0:
            return 0.0
        return weight / total

    def score_progression(
        self,
        chords: Sequence[ChordCandidate],
        scale: Sequence[PitchClass],
    ) -> float:
        """Average fitness plus root-motion and cadence bonuses, per chord."""
        if not chords:
            return 0.0

        score = sum(c.fitness_weight for c in chords)
        for i in range(1, len(chords)):
            prev, cur = chords[i - 1], chords[i]
            score += self.ROOT_MOTION.get(interval(prev.root, cur.root), 0.0)

            deg_a = scale_degree(prev.root, scale)
            deg_b = scale_degree(cur.root, scale)
            if deg_a == 2 and deg_b == 5:
                score += self.TWO_FIVE_BONUS
            if deg_a == 5 and deg_b == 1:
                score += self.FIVE_ONE_BONUS

            if i == len(chords) - 1:
                if deg_b == 1:
                    score += self.FINAL_TONIC_BONUS
                elif deg_b == 6:
                    score += self.FINAL_DECEPTIVE_BONUS

        return score / len(chords)
