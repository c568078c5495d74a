"""Input layer - Audio decoding into mono sample buffers."""

from .loader import AudioLoader, downmix

__all__ = ["AudioLoader", "downmix"]
