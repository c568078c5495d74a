"""Reference melodies for checking key detection and chord suggestion."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .core import DiscreteNote
from .pipeline import AnalysisResult, MelodyAnalyzer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MelodyTestCase:
    """A known melody with the key and harmonization it should produce."""

    name: str
    notes: Tuple[DiscreteNote, ...]
    expected_key: str
    expects_chords: bool = True


@dataclass(frozen=True)
class CaseOutcome:
    case: MelodyTestCase
    result: AnalysisResult

    @property
    def key_correct(self) -> bool:
        return self.result.detected_key == self.case.expected_key

    @property
    def has_chords(self) -> bool:
        return bool(self.result.suggestions)

    @property
    def passed(self) -> bool:
        if not self.key_correct:
            return False
        return self.has_chords or not self.case.expects_chords


def _even(names: Sequence[str], duration_ms: int) -> Tuple[DiscreteNote, ...]:
    return tuple(
        DiscreteNote.of(name, i * duration_ms, duration_ms) for i, name in enumerate(names)
    )


def _timed(onsets: Sequence[Tuple[str, int]], end_ms: int) -> Tuple[DiscreteNote, ...]:
    """Notes that each last until the next onset."""
    notes = []
    for i, (name, start) in enumerate(onsets):
        stop = onsets[i + 1][1] if i + 1 < len(onsets) else end_ms
        notes.append(DiscreteNote.of(name, start, stop - start))
    return tuple(notes)


# Scales are stepwise with even notes, so they form a single phrase and are
# only checked for key.
REFERENCE_MELODIES = (
    MelodyTestCase(
        name="C Major Scale",
        notes=_even(["C", "D", "E", "F", "G", "A", "B", "C"], 500),
        expected_key="C major",
        expects_chords=False,
    ),
    MelodyTestCase(
        name="A Minor Scale",
        notes=_even(["A", "B", "C", "D", "E", "F", "G", "A"], 500),
        expected_key="A minor",
        expects_chords=False,
    ),
    MelodyTestCase(
        name="C Major Arpeggio",
        notes=_even(["C", "E", "G", "C", "C", "E", "G", "C"], 600),
        expected_key="C major",
    ),
    MelodyTestCase(
        name="I-vi-IV-V Melody",
        notes=_timed(
            [
                ("C", 0), ("E", 300), ("G", 600),
                ("A", 1000), ("C", 1300), ("E", 1600),
                ("F", 2000), ("A", 2300), ("C", 2600),
                ("G", 3000), ("B", 3300), ("D", 3600),
            ],
            end_ms=3900,
        ),
        expected_key="C major",
    ),
)


def run_cases(
    cases: Sequence[MelodyTestCase] = REFERENCE_MELODIES,
    analyzer: Optional[MelodyAnalyzer] = None,
) -> List[CaseOutcome]:
    """Analyze each case's notes and report how it fared."""
    analyzer = analyzer or MelodyAnalyzer()
    outcomes = []
    for case in cases:
        outcome = CaseOutcome(case, analyzer.analyze_notes(case.notes))
        logger.info(
            "%s: key=%s chords=%s passed=%s",
            case.name,
            outcome.result.detected_key,
            outcome.has_chords,
            outcome.passed,
        )
        outcomes.append(outcome)
    return outcomes
