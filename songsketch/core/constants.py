"""Global constants for Song Sketch."""

# Pitch names (sharp spelling is used at every output boundary)
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Flat spellings accepted on input
FLAT_ALIASES = {"DB": "C#", "EB": "D#", "GB": "F#", "AB": "G#", "BB": "A#"}

# Tuning
A4_FREQUENCY = 440.0
A4_MIDI = 69
MIN_NOTE_FREQUENCY = 20.0  # Below this a frequency has no note name

# Pitch detection defaults
DEFAULT_WINDOW_SIZE = 2048
DEFAULT_MIN_VOLUME = 0.005
DEFAULT_MIN_CONFIDENCE = 0.6
DEFAULT_SMOOTHING = 0.8
PITCH_FMIN = 50.0  # Longest lag searched is sr / 50
PITCH_FMAX = 1000.0  # Shortest lag searched is sr / 1000

# Note consolidation defaults (milliseconds)
DEFAULT_GAP_TOLERANCE_MS = 300
DEFAULT_MIN_NOTE_MS = 50

# Chord suggestion defaults (milliseconds)
DEFAULT_MIN_CHORD_MS = 400

UNKNOWN_KEY = "Unknown"
