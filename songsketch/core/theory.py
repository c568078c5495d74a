"""Music theory utilities - scales, triads, intervals and scale degrees.

Pure, stateless helpers shared by key detection and chord suggestion.
Everything works on PitchClass values; note-name strings are accepted
at the edges and normalized to sharp spelling.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from .note import PitchClass, PitchLike


@dataclass(frozen=True)
class ScaleType:
    """A seven-note scale as semitone offsets from its root."""

    name: str
    intervals: Tuple[int, ...]


@dataclass(frozen=True)
class ChordType:
    """A chord as semitone offsets from its root."""

    name: str
    intervals: Tuple[int, ...]
    suffix: str = ""  # Symbol suffix, e.g. "m" for minor


MAJOR_SCALE = ScaleType("MAJOR", (0, 2, 4, 5, 7, 9, 11))
NATURAL_MINOR_SCALE = ScaleType("NATURAL_MINOR", (0, 2, 3, 5, 7, 8, 10))

MAJOR_TRIAD = ChordType("MAJOR_TRIAD", (0, 4, 7), "")
MINOR_TRIAD = ChordType("MINOR_TRIAD", (0, 3, 7), "m")
DIMINISHED_TRIAD = ChordType("DIMINISHED_TRIAD", (0, 3, 6), "°")
MAJOR_SEVENTH = ChordType("MAJOR_SEVENTH", (0, 4, 7, 11), "maj7")
MINOR_SEVENTH = ChordType("MINOR_SEVENTH", (0, 3, 7, 10), "m7")
DOMINANT_SEVENTH = ChordType("DOMINANT_SEVENTH", (0, 4, 7, 10), "7")
HALF_DIMINISHED = ChordType("HALF_DIMINISHED", (0, 3, 6, 10), "ø7")

# Triad quality for each scale degree (1-7)
DIATONIC_TRIADS_MAJOR: Dict[int, ChordType] = {
    1: MAJOR_TRIAD,       # I
    2: MINOR_TRIAD,       # ii
    3: MINOR_TRIAD,       # iii
    4: MAJOR_TRIAD,       # IV
    5: MAJOR_TRIAD,       # V
    6: MINOR_TRIAD,       # vi
    7: DIMINISHED_TRIAD,  # vii°
}

DIATONIC_TRIADS_MINOR: Dict[int, ChordType] = {
    1: MINOR_TRIAD,       # i
    2: DIMINISHED_TRIAD,  # ii°
    3: MAJOR_TRIAD,       # III
    4: MINOR_TRIAD,       # iv
    5: MINOR_TRIAD,       # v
    6: MAJOR_TRIAD,       # VI
    7: MAJOR_TRIAD,       # VII
}

_ROMAN_DEGREES = {"I": 1, "II": 2, "III": 3, "IV": 4, "V": 5, "VI": 6, "VII": 7}


@dataclass(frozen=True)
class DiatonicChord:
    """A triad built on one degree of a key."""

    degree: int
    root: PitchClass
    chord_type: ChordType

    @property
    def symbol(self) -> str:
        return chord_symbol(self.root, self.chord_type)

    @property
    def notes(self) -> List[PitchClass]:
        return build_chord(self.root, self.chord_type)


def normalize_note_name(note: PitchLike) -> str:
    """Normalize a note name to sharp spelling without octave ('db4' -> 'C#')."""
    return PitchClass.parse(note).label


def note_index(note: PitchLike) -> int:
    """Chromatic index 0-11; enharmonic spellings share an index."""
    return PitchClass.parse(note).value


def build_scale(root: PitchLike, scale_type: ScaleType) -> List[PitchClass]:
    """Pitch classes of a seven-note scale starting on root."""
    root_pc = PitchClass.parse(root)
    return [root_pc.transpose(i) for i in scale_type.intervals]


def build_chord(root: PitchLike, chord_type: ChordType) -> List[PitchClass]:
    """Pitch classes of a chord starting on root."""
    root_pc = PitchClass.parse(root)
    return [root_pc.transpose(i) for i in chord_type.intervals]


def interval(a: PitchLike, b: PitchLike) -> int:
    """Upward semitone distance from a to b, modulo 12 (0-11)."""
    return (note_index(b) - note_index(a)) % 12


def scale_degree(note: PitchLike, scale: Sequence[PitchClass]) -> int:
    """1-based degree of note in scale, or -1 if the note is not in it."""
    pc = PitchClass.parse(note)
    try:
        return list(scale).index(pc) + 1
    except ValueError:
        return -1


def is_in(note: PitchLike, pitch_classes: Iterable[PitchClass]) -> bool:
    return PitchClass.parse(note) in set(pitch_classes)


def chord_symbol(root: PitchLike, chord_type: ChordType) -> str:
    """Chord symbol such as 'C', 'Am' or 'B°'."""
    return f"{PitchClass.parse(root).label}{chord_type.suffix}"


def roman_to_degree(numeral: str) -> int:
    """
    Parse a roman numeral into a scale degree.

    Case, a trailing diminished mark and accidentals are ignored for the
    degree ('vii°' -> 7, 'bVI' -> 6).

    Raises:
        ValueError: If the numeral is not I-VII
    """
    base = numeral.strip().replace("°", "").replace("ø", "").lstrip("b#").upper()
    if base not in _ROMAN_DEGREES:
        raise ValueError(f"Unrecognized roman numeral: {numeral!r}")
    return _ROMAN_DEGREES[base]


def scale_for_mode(is_minor: bool) -> ScaleType:
    return NATURAL_MINOR_SCALE if is_minor else MAJOR_SCALE


def diatonic_chord(degree: int, key_root: PitchLike, is_minor: bool) -> DiatonicChord:
    """
    Triad on a scale degree of a major or natural-minor key.

    Args:
        degree: Scale degree 1-7
        key_root: Tonic of the key
        is_minor: Natural minor when True, major otherwise
    """
    if not 1 <= degree <= 7:
        raise ValueError(f"Scale degree must be 1-7, got {degree}")
    scale = build_scale(key_root, scale_for_mode(is_minor))
    table = DIATONIC_TRIADS_MINOR if is_minor else DIATONIC_TRIADS_MAJOR
    return DiatonicChord(degree, scale[degree - 1], table[degree])


def voice_chord(notes: Iterable[PitchLike], octave: int = 4) -> List[str]:
    """Render pitch classes as octave-qualified note names for playback."""
    return [f"{PitchClass.parse(n).label}{octave}" for n in notes]
