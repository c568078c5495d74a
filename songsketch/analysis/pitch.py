"""Pitch detection - windowed autocorrelation over a mono sample buffer."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import librosa
import numpy as np

from ..core.constants import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_VOLUME,
    DEFAULT_SMOOTHING,
    DEFAULT_WINDOW_SIZE,
    MIN_NOTE_FREQUENCY,
    PITCH_FMAX,
    PITCH_FMIN,
)
from ..core.exceptions import AnalysisCancelled
from ..core.note import PitchPoint, frequency_to_note
from ..core.tracing import Tracer, TraceSink

logger = logging.getLogger(__name__)


@dataclass
class PitchDetectionConfig:
    """Configuration for pitch detection.

    Attributes:
        min_volume: RMS floor below which a window is treated as silent
        min_confidence: Periodicity-strength floor (ACF peak / ACF at lag 0)
        window_size: Samples per analysis window (hop is half of this)
        smoothing: Exponential smoothing factor across accepted frequencies
    """

    min_volume: float = DEFAULT_MIN_VOLUME
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    window_size: int = DEFAULT_WINDOW_SIZE
    smoothing: float = DEFAULT_SMOOTHING

    def __post_init__(self):
        if self.window_size < 4:
            raise ValueError(f"window_size must be >= 4, got {self.window_size}")
        if self.min_volume < 0:
            raise ValueError(f"min_volume must be >= 0, got {self.min_volume}")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be in [0, 1], got {self.min_confidence}")
        if not 0.0 <= self.smoothing <= 1.0:
            raise ValueError(f"smoothing must be in [0, 1], got {self.smoothing}")

    @property
    def hop_length(self) -> int:
        return self.window_size // 2


@dataclass
class PitchStats:
    """Counters from one analyze() call."""

    windows: int = 0
    points: int = 0
    volume_rejects: int = 0
    confidence_rejects: int = 0


class PitchDetector:
    """Detect the fundamental of each window of a monophonic recording.

    Each window is Hamming-weighted and autocorrelated; the strongest lag
    between sr/1000 and sr/50 samples (about 50-1000 Hz) is refined with
    parabolic interpolation and converted to a note with cents offset.
    """

    def __init__(
        self,
        min_volume: float = DEFAULT_MIN_VOLUME,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        window_size: int = DEFAULT_WINDOW_SIZE,
        smoothing: float = DEFAULT_SMOOTHING,
        config: Optional[PitchDetectionConfig] = None,
        trace: Optional[TraceSink] = None,
    ):
        """
        Initialize PitchDetector.

        Args:
            min_volume: RMS floor for a window to be analyzed
            min_confidence: Minimum periodicity strength (0-1)
            window_size: Samples per window (power of two recommended)
            smoothing: Weight of the previous frequency when smoothing (0-1)
            config: Optional PitchDetectionConfig, overrides the keyword arguments
            trace: Optional sink for structured trace events
        """
        if config is not None:
            self.config = config
        else:
            self.config = PitchDetectionConfig(
                min_volume=min_volume,
                min_confidence=min_confidence,
                window_size=window_size,
                smoothing=smoothing,
            )
        self.tracer = Tracer(logger, trace)
        self._window = np.hamming(self.config.window_size)
        self.last_stats = PitchStats()

    def analyze(
        self,
        samples: np.ndarray,
        sample_rate: float,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[PitchPoint]:
        """
        Analyze a sample buffer into time-ordered pitch points.

        Args:
            samples: Mono samples normalized to [-1, 1]
            sample_rate: Sample rate in Hz
            should_cancel: Optional check polled between windows

        Returns:
            List of PitchPoint; empty for silence or unvoiced input

        Raises:
            TypeError: If samples is None
            ValueError: If sample_rate <= 0 or samples is not one-dimensional
            AnalysisCancelled: If should_cancel returns True
        """
        audio = validate_samples(samples, sample_rate)
        cfg = self.config
        stats = PitchStats()
        self.last_stats = stats

        if len(audio) < cfg.window_size:
            self.tracer.emit("pitch.summary", samples=len(audio), windows=0, points=0)
            return []

        frames = librosa.util.frame(
            audio, frame_length=cfg.window_size, hop_length=cfg.hop_length, axis=0
        )

        points = []
        last_freq = 0.0

        for i, window in enumerate(frames):
            if should_cancel is not None and should_cancel():
                raise AnalysisCancelled("pitch detection")
            stats.windows += 1

            if self._rms(window) < cfg.min_volume:
                stats.volume_rejects += 1
                continue

            freq, confidence = self.estimate(window, sample_rate)
            if freq <= 0 or confidence < cfg.min_confidence:
                stats.confidence_rejects += 1
                continue

            if last_freq > 0:
                freq = cfg.smoothing * last_freq + (1 - cfg.smoothing) * freq
            if freq < MIN_NOTE_FREQUENCY:
                stats.confidence_rejects += 1
                continue
            last_freq = freq

            pitch_class, octave, cents = frequency_to_note(freq)
            points.append(
                PitchPoint(
                    time_sec=(i * cfg.hop_length) / sample_rate,
                    frequency_hz=float(freq),
                    pitch_class=pitch_class,
                    octave=octave,
                    cents_offset=cents,
                )
            )

        stats.points = len(points)
        self.tracer.emit(
            "pitch.summary",
            samples=len(audio),
            windows=stats.windows,
            points=stats.points,
            volume_rejects=stats.volume_rejects,
            confidence_rejects=stats.confidence_rejects,
        )
        return points

    def estimate(self, window: np.ndarray, sample_rate: float) -> Tuple[float, float]:
        """
        Estimate the frequency of a single window.

        Returns:
            Tuple of (frequency in Hz, confidence 0-1); (0.0, 0.0) when no
            periodicity could be found
        """
        size = len(window)
        weights = self._window if size == len(self._window) else np.hamming(size)
        weighted = np.asarray(window, dtype=np.float64) * weights

        min_lag = int(sample_rate / PITCH_FMAX)
        max_lag = min(int(sample_rate / PITCH_FMIN), size - 1)
        if min_lag >= max_lag:
            return 0.0, 0.0

        acf = librosa.autocorrelate(weighted, max_size=max_lag + 1)
        if acf[0] <= 0:
            return 0.0, 0.0

        # First maximum wins on ties
        peak = min_lag + int(np.argmax(acf[min_lag:max_lag]))
        if peak <= 0:
            return 0.0, 0.0

        alpha, beta, gamma = acf[peak - 1], acf[peak], acf[peak + 1]
        denom = alpha - 2 * beta + gamma
        shift = 0.0 if abs(denom) < 1e-9 else 0.5 * (alpha - gamma) / denom
        true_lag = peak + shift
        if true_lag <= 0:
            return 0.0, 0.0

        return float(sample_rate / true_lag), float(beta / acf[0])

    @staticmethod
    def _rms(window: np.ndarray) -> float:
        return float(np.sqrt(np.mean(np.square(window, dtype=np.float64))))


def validate_samples(samples, sample_rate) -> np.ndarray:
    """Check the input contract and return a contiguous float32 mono buffer."""
    if samples is None:
        raise TypeError("samples must be an array of floats, got None")
    if sample_rate is None or sample_rate <= 0:
        raise ValueError(f"sample_rate must be > 0, got {sample_rate}")
    audio = np.asarray(samples, dtype=np.float32)
    if audio.ndim != 1:
        raise ValueError(
            f"Expected mono samples (1-D), got shape {audio.shape}; downmix first"
        )
    return np.ascontiguousarray(audio)
