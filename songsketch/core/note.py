"""Note types - pitch classes, raw pitch estimates and discrete notes."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union
import math

from .constants import (
    A4_FREQUENCY,
    A4_MIDI,
    FLAT_ALIASES,
    MIN_NOTE_FREQUENCY,
    PITCH_NAMES,
)


class PitchClass(Enum):
    """The twelve equal-tempered pitch classes (value = chromatic index)."""

    C = 0
    C_SHARP = 1
    D = 2
    D_SHARP = 3
    E = 4
    F = 5
    F_SHARP = 6
    G = 7
    G_SHARP = 8
    A = 9
    A_SHARP = 10
    B = 11

    @property
    def label(self) -> str:
        """Sharp-preferred name, e.g. 'C#'."""
        return PITCH_NAMES[self.value]

    def transpose(self, semitones: int) -> "PitchClass":
        return PitchClass((self.value + semitones) % 12)

    @classmethod
    def from_index(cls, index: int) -> "PitchClass":
        return cls(index % 12)

    @classmethod
    def parse(cls, name: Union[str, "PitchClass"]) -> "PitchClass":
        """
        Parse a note name into a pitch class.

        Accepts sharps or flats in any case and ignores an octave suffix
        ("db4" -> C#).

        Raises:
            ValueError: If the name is not a recognizable note
        """
        if isinstance(name, PitchClass):
            return name
        base = "".join(ch for ch in str(name).strip().upper() if not ch.isdigit())
        base = base.rstrip("-")
        base = FLAT_ALIASES.get(base, base)
        if base not in PITCH_NAMES:
            raise ValueError(f"Unrecognized note name: {name!r}")
        return cls(PITCH_NAMES.index(base))

    def __str__(self) -> str:
        return self.label


PitchLike = Union[PitchClass, str]


def frequency_to_note(frequency: float) -> Tuple[PitchClass, int, int]:
    """
    Convert a frequency to its nearest equal-tempered note.

    Args:
        frequency: Frequency in Hz (A4 = 440 Hz reference)

    Returns:
        Tuple of (pitch class, octave, cents deviation from that note)

    Raises:
        ValueError: If the frequency is below the audible note range
    """
    if frequency < MIN_NOTE_FREQUENCY:
        raise ValueError(f"Frequency too low to name: {frequency:.2f} Hz")

    # Semitones above C0 (C0 is 57 semitones below A4)
    half_steps = int(round(12 * math.log2(frequency / A4_FREQUENCY))) + 57
    exact = A4_FREQUENCY * 2 ** ((half_steps - 57) / 12.0)
    cents = int(round(1200 * math.log2(frequency / exact)))
    return PitchClass.from_index(half_steps), half_steps // 12, cents


def freq_to_midi(freq: float) -> int:
    """Convert frequency (Hz) to MIDI pitch."""
    if freq <= 0:
        return 0
    return int(round(A4_MIDI + 12 * math.log2(freq / A4_FREQUENCY)))


def midi_to_freq(midi: int) -> float:
    """Convert MIDI pitch to frequency (Hz)."""
    return A4_FREQUENCY * (2 ** ((midi - A4_MIDI) / 12.0))


def note_to_midi(pitch_class: PitchLike, octave: int) -> int:
    """MIDI number of a pitch class in a given octave (C4 = 60)."""
    return (octave + 1) * 12 + PitchClass.parse(pitch_class).value


@dataclass(frozen=True)
class PitchPoint:
    """A single pitch estimate from one analysis window."""

    time_sec: float  # Window start time in seconds
    frequency_hz: float  # Smoothed frequency in Hz
    pitch_class: PitchClass
    octave: int
    cents_offset: int  # Deviation from the nearest note, in cents

    @property
    def note(self) -> str:
        """Octave-qualified note name (e.g., 'A4', 'C#3')."""
        return f"{self.pitch_class.label}{self.octave}"


@dataclass(frozen=True)
class DiscreteNote:
    """A consolidated melody note (pitch class only)."""

    pitch_class: PitchClass
    start_ms: int
    duration_ms: int

    def __post_init__(self):
        if self.duration_ms < 0:
            raise ValueError(f"Note duration must be >= 0, got {self.duration_ms}")

    @property
    def end_ms(self) -> int:
        return self.start_ms + self.duration_ms

    @property
    def name(self) -> str:
        return self.pitch_class.label

    @classmethod
    def of(cls, name: PitchLike, start_ms: int, duration_ms: int) -> "DiscreteNote":
        """Build a note from a note name such as 'C' or 'Eb'."""
        return cls(PitchClass.parse(name), int(start_ms), int(duration_ms))
