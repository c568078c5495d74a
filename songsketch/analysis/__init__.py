"""Analysis layer - Low-level signal analysis.

This layer turns raw samples into time-stamped pitch estimates:
- Windowed autocorrelation pitch detection
- Volume and periodicity gating
- Frequency smoothing across windows
"""

from .pitch import PitchDetector, PitchDetectionConfig, PitchStats, validate_samples

__all__ = [
    "PitchDetector",
    "PitchDetectionConfig",
    "PitchStats",
    "validate_samples",
]
