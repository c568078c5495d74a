"""Key detection - Identify the tonal center of a melody.

Implements Krumhansl-Schmuckler key finding:
- 12-bin pitch-class histogram, normalized to sum to 1
- Pearson correlation against the major and minor key profiles
  for each of the 12 candidate tonics
- "Unknown" sentinel when there is nothing to correlate
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np

from ..core import DiscreteNote, PitchClass, PITCH_NAMES, UNKNOWN_KEY
from ..core.tracing import Tracer, TraceSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyCandidate:
    """A candidate key with its correlation score."""

    tonic: PitchClass
    is_minor: bool
    correlation: float

    @property
    def mode(self) -> str:
        return "minor" if self.is_minor else "major"

    @property
    def name(self) -> str:
        return f"{self.tonic.label} {self.mode}"


@dataclass(frozen=True)
class KeyEstimate:
    """Result of key detection.

    confidence is the winning Pearson correlation (-1..1), not a probability.
    A tonic of None is the "Unknown" sentinel.
    """

    tonic: Optional[PitchClass]
    is_minor: bool = False
    confidence: float = 0.0
    alternatives: List[KeyCandidate] = field(default_factory=list, compare=False)

    @classmethod
    def unknown(cls) -> "KeyEstimate":
        return cls(tonic=None, is_minor=False, confidence=0.0)

    @property
    def is_unknown(self) -> bool:
        return self.tonic is None

    @property
    def mode(self) -> str:
        return "minor" if self.is_minor else "major"

    @property
    def label(self) -> str:
        """'<Tonic> major|minor' or 'Unknown'."""
        if self.tonic is None:
            return UNKNOWN_KEY
        return f"{self.tonic.label} {self.mode}"


class KeyDetector:
    """Detect musical key from a sequence of pitch classes."""

    # Krumhansl-Schmuckler key profiles, tonic first
    MAJOR_PROFILE = np.array(
        [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
    )
    MINOR_PROFILE = np.array(
        [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
    )

    def __init__(self, alternatives: int = 4, trace: Optional[TraceSink] = None):
        """
        Initialize KeyDetector.

        Args:
            alternatives: How many runner-up keys to keep on the estimate
            trace: Optional sink for structured trace events
        """
        self.alternatives = alternatives
        self.tracer = Tracer(logger, trace)

    def detect(self, pitch_classes: Iterable) -> KeyEstimate:
        """
        Detect the most likely key.

        Args:
            pitch_classes: Note names ('C', 'Eb', 'F#4'), PitchClass values
                or DiscreteNote objects; unrecognizable names are skipped

        Returns:
            KeyEstimate, or the "Unknown" sentinel when no note is usable
        """
        histogram = self.histogram(pitch_classes)
        if histogram is None:
            self.tracer.emit("key.selected", key=UNKNOWN_KEY, confidence=0.0)
            return KeyEstimate.unknown()

        self.tracer.emit(
            "key.histogram",
            distribution={
                PITCH_NAMES[i]: round(float(v), 3) for i, v in enumerate(histogram) if v > 0
            },
        )

        candidates = self._candidates(histogram)

        # Strict '>' keeps the first-evaluated candidate on ties
        best = candidates[0]
        for candidate in candidates[1:]:
            if candidate.correlation > best.correlation:
                best = candidate

        ranked = sorted(candidates, key=lambda c: c.correlation, reverse=True)
        alternatives = [c for c in ranked if c is not best][: self.alternatives]

        self.tracer.emit(
            "key.selected",
            key=best.name,
            confidence=round(best.correlation, 4),
            top=[f"{c.name}:{c.correlation:.3f}" for c in ranked[:5]],
        )
        return KeyEstimate(
            tonic=best.tonic,
            is_minor=best.is_minor,
            confidence=best.correlation,
            alternatives=alternatives,
        )

    def rank(self, pitch_classes: Iterable) -> List[KeyCandidate]:
        """All 24 candidates, best first; ties keep evaluation order."""
        histogram = self.histogram(pitch_classes)
        if histogram is None:
            return []
        return sorted(self._candidates(histogram), key=lambda c: c.correlation, reverse=True)

    def histogram(self, pitch_classes: Iterable) -> Optional[np.ndarray]:
        """
        Build a normalized 12-bin pitch-class histogram.

        Returns:
            12-element array summing to 1, or None when no note is usable
        """
        counts = np.zeros(12)
        skipped = 0
        for item in pitch_classes:
            pc = _as_pitch_class(item)
            if pc is None:
                skipped += 1
                continue
            counts[pc.value] += 1

        if skipped:
            logger.debug("Skipped %d unrecognized note names", skipped)

        total = counts.sum()
        if total == 0:
            return None
        return counts / total

    def _candidates(self, histogram: np.ndarray) -> List[KeyCandidate]:
        """Evaluate every tonic, major before minor."""
        candidates = []
        for shift in range(12):
            tonic = PitchClass(shift)
            rotated = np.roll(histogram, -shift)
            candidates.append(
                KeyCandidate(tonic, False, self._correlate(rotated, self.MAJOR_PROFILE))
            )
            candidates.append(
                KeyCandidate(tonic, True, self._correlate(rotated, self.MINOR_PROFILE))
            )
        return candidates

    @staticmethod
    def _correlate(distribution: np.ndarray, profile: np.ndarray) -> float:
        """Pearson correlation; 0.0 for degenerate (flat) input."""
        # Constant input has no correlation
        if np.ptp(distribution) == 0 or np.ptp(profile) == 0:
            return 0.0

        corr = np.corrcoef(distribution, profile)[0, 1]
        if np.isnan(corr):
            return 0.0

        return float(corr)


def _as_pitch_class(item) -> Optional[PitchClass]:
    if isinstance(item, DiscreteNote):
        return item.pitch_class
    try:
        return PitchClass.parse(item)
    except ValueError:
        return None
