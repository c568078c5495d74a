"""Audio loading - decode a recording into mono samples."""

import logging
import numpy as np
import librosa
import soundfile as sf
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class AudioLoader:
    """Decode audio files into a mono float buffer and its sample rate."""

    SUPPORTED_FORMATS = {".wav", ".flac", ".ogg", ".mp3", ".m4a"}

    def __init__(
        self,
        target_sr: Optional[int] = None,
        normalize: bool = False,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Resample to this rate; None keeps the file's own rate
            normalize: Peak-normalize to [-1, 1] if True
        """
        self.target_sr = target_sr
        self.normalize = normalize

    def load(self, path: str) -> Tuple[np.ndarray, int]:
        """
        Load an audio file as mono samples.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (mono float32 samples in [-1, 1], sample rate)

        Raises:
            ValueError: If file format not supported
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        # mono=False so the channel average is ours, not the decoder's
        audio, sr = librosa.load(str(path), sr=self.target_sr, mono=False)
        audio = downmix(audio)
        logger.debug("Decoded %s: %d samples at %d Hz", path.name, len(audio), sr)

        if self.normalize:
            audio = self._normalize(audio)

        return audio.astype(np.float32), int(sr)

    def info(self, path: str) -> dict:
        """Duration, sample rate, channels and frame count without decoding."""
        meta = sf.info(str(path))
        return {
            "duration": meta.duration,
            "sample_rate": meta.samplerate,
            "channels": meta.channels,
            "frames": meta.frames,
            "subtype": meta.subtype,
        }

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max() if len(audio) else 0.0
        if peak > 0:
            audio = audio / peak
        return audio

    def get_duration(self, audio: np.ndarray, sr: int) -> float:
        """Get duration in seconds."""
        return len(audio) / sr


def downmix(audio: np.ndarray) -> np.ndarray:
    """
    Average channels into one.

    Accepts mono (n,) or channel-first (channels, n) arrays, as returned
    by librosa.load(mono=False).
    """
    audio = np.asarray(audio, dtype=np.float32)
    if audio.ndim == 1:
        return audio
    if audio.ndim != 2:
        raise ValueError(f"Expected 1-D or 2-D audio, got shape {audio.shape}")
    return np.clip(audio.mean(axis=0), -1.0, 1.0)
