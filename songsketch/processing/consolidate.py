"""Note consolidation - Merge raw pitch estimates into discrete notes.

Consecutive pitch points with the same pitch class are merged into one
note as long as the time gap from the previous point stays within the
gap tolerance. Runs shorter than the minimum duration are dropped as
noise. Octave information is discarded.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..core.constants import DEFAULT_GAP_TOLERANCE_MS, DEFAULT_MIN_NOTE_MS
from ..core.note import DiscreteNote, PitchClass, PitchPoint
from ..core.tracing import Tracer, TraceSink

logger = logging.getLogger(__name__)


@dataclass
class ConsolidationConfig:
    """Configuration for note consolidation.

    Attributes:
        gap_tolerance_ms: Largest gap between points of one note (default: 300)
        min_duration_ms: Shortest note to keep (default: 50)
    """

    gap_tolerance_ms: int = DEFAULT_GAP_TOLERANCE_MS
    min_duration_ms: int = DEFAULT_MIN_NOTE_MS

    def __post_init__(self):
        if self.gap_tolerance_ms < 0:
            raise ValueError(f"gap_tolerance_ms must be >= 0, got {self.gap_tolerance_ms}")
        if self.min_duration_ms < 0:
            raise ValueError(f"min_duration_ms must be >= 0, got {self.min_duration_ms}")


@dataclass
class ConsolidationStats:
    """Statistics from one consolidation pass."""

    point_count: int = 0
    run_count: int = 0
    note_count: int = 0
    removed_short_runs: int = 0

    @property
    def retention_rate(self) -> float:
        """Fraction of input points that ended up starting a kept note."""
        if self.point_count == 0:
            return 0.0
        return self.note_count / self.point_count


class NoteConsolidator:
    """Turn a time-ordered pitch track into discrete melody notes."""

    def __init__(
        self,
        gap_tolerance_ms: int = DEFAULT_GAP_TOLERANCE_MS,
        min_duration_ms: int = DEFAULT_MIN_NOTE_MS,
        config: Optional[ConsolidationConfig] = None,
        trace: Optional[TraceSink] = None,
    ):
        """Initialize NoteConsolidator.

        Args:
            gap_tolerance_ms: Largest gap between points of one note
            min_duration_ms: Shortest note to keep
            config: Optional ConsolidationConfig, overrides the keyword arguments
            trace: Optional sink for structured trace events
        """
        if config is not None:
            self.config = config
        else:
            self.config = ConsolidationConfig(
                gap_tolerance_ms=gap_tolerance_ms,
                min_duration_ms=min_duration_ms,
            )
        self.tracer = Tracer(logger, trace)

    def consolidate(
        self,
        points: Sequence[PitchPoint],
        return_stats: bool = False,
    ) -> List[DiscreteNote] | Tuple[List[DiscreteNote], ConsolidationStats]:
        """Merge pitch points into discrete notes.

        Args:
            points: Pitch points in non-decreasing time order
            return_stats: Whether to return consolidation statistics

        Returns:
            Time-ordered, non-overlapping notes, optionally with statistics

        Raises:
            ValueError: If points go backwards in time
        """
        stats = ConsolidationStats(point_count=len(points))
        notes: List[DiscreteNote] = []

        current: Optional[PitchClass] = None
        start_ms = end_ms = 0
        prev_ms = None

        for point in points:
            t = _to_ms(point.time_sec)
            if prev_ms is not None and t < prev_ms:
                raise ValueError(
                    f"Pitch points must be time-ordered: {t}ms after {prev_ms}ms"
                )
            prev_ms = t

            if current is None:
                current, start_ms, end_ms = point.pitch_class, t, t
            elif point.pitch_class == current and t - end_ms <= self.config.gap_tolerance_ms:
                end_ms = t
            else:
                self._flush(notes, stats, current, start_ms, end_ms)
                current, start_ms, end_ms = point.pitch_class, t, t

        if current is not None:
            self._flush(notes, stats, current, start_ms, end_ms)

        stats.note_count = len(notes)
        self.tracer.emit(
            "consolidate.summary",
            points=stats.point_count,
            runs=stats.run_count,
            notes=stats.note_count,
            removed_short_runs=stats.removed_short_runs,
            melody=" ".join(f"{n.name}({n.duration_ms}ms)" for n in notes),
        )

        if return_stats:
            return notes, stats
        return notes

    def _flush(
        self,
        notes: List[DiscreteNote],
        stats: ConsolidationStats,
        pitch_class: PitchClass,
        start_ms: int,
        end_ms: int,
    ) -> None:
        stats.run_count += 1
        duration = max(0, end_ms - start_ms)
        if duration >= self.config.min_duration_ms:
            notes.append(DiscreteNote(pitch_class, start_ms, duration))
        else:
            stats.removed_short_runs += 1


def _to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


def consolidate(points: Sequence[PitchPoint]) -> List[DiscreteNote]:
    """Consolidate with default settings."""
    return NoteConsolidator().consolidate(points)
