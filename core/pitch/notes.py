"""
core/pitch/notes.py — Frequency ↔ note-name conversion and cents arithmetic.

Pure math, 12-tone equal temperament anchored at A4 = 440 Hz = MIDI 69:

    midi  = 12 · log₂(f / 440) + 69
    f     = 440 · 2^((midi - 69) / 12)
    cents = 1200 · log₂(f / f_ref)
"""

from __future__ import annotations

import math
import re

from core.pitch.types import NoteInfo

A4_FREQUENCY_HZ: float = 440.0
A4_MIDI: int = 69

NOTES_SHARP: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)
NOTES_FLAT: tuple[str, ...] = (
    "C",
    "Db",
    "D",
    "Eb",
    "E",
    "F",
    "Gb",
    "G",
    "Ab",
    "A",
    "Bb",
    "B",
)

UNKNOWN_NOTE = NoteInfo(note_name="Unknown", reference_frequency_hz=0.0, cents_offset=0)

_HZ_PATTERN = re.compile(r"^\d+(\.\d+)?$")
_NOTE_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)([+-]?\d)$")


def _round_half_up(value: float) -> int:
    # Halves round up; round() would send them to the nearest even integer.
    return math.floor(value + 0.5)


def _choose_spelling(sharp: str, flat: str) -> str:
    """Shorter spelling wins; ties go to the sharp table."""
    if len(flat) < len(sharp):
        return flat
    return sharp


def midi_to_frequency(midi: float) -> float:
    """Equal-tempered frequency of a (possibly fractional) MIDI number."""
    return A4_FREQUENCY_HZ * 2.0 ** ((midi - A4_MIDI) / 12.0)


def frequency_to_note(frequency_hz: float | None) -> NoteInfo:
    """Nearest equal-tempered note for a frequency.

    Examples:
        440.0  → NoteInfo('A4', 440.0, 0)
        466.16 → NoteInfo('A#4', 466.16.., 0)
        None   → UNKNOWN_NOTE

    Args:
        frequency_hz: Frequency in Hz. None, non-finite or <= 0 is invalid.

    Returns:
        NoteInfo with the note name, its reference frequency and the
        rounded cents offset in [-50, 50]. UNKNOWN_NOTE for invalid input.
    """
    if frequency_hz is None or not math.isfinite(frequency_hz) or frequency_hz <= 0.0:
        return UNKNOWN_NOTE

    note_number = 12.0 * math.log2(frequency_hz / A4_FREQUENCY_HZ) + A4_MIDI
    rounded = _round_half_up(note_number)
    cents = _round_half_up((note_number - rounded) * 100.0)

    name = _choose_spelling(NOTES_SHARP[rounded % 12], NOTES_FLAT[rounded % 12])
    octave = rounded // 12 - 1

    return NoteInfo(
        note_name=f"{name}{octave}",
        reference_frequency_hz=midi_to_frequency(rounded),
        cents_offset=cents,
    )


def _semitone_index(name: str) -> int | None:
    """Pitch class of a spelled note name, or None if neither table has it."""
    sharp = NOTES_SHARP.index(name) if name in NOTES_SHARP else None
    flat = NOTES_FLAT.index(name) if name in NOTES_FLAT else None
    if sharp is not None and flat is not None and sharp != flat:
        return None
    return sharp if sharp is not None else flat


def parse_expected_note(text: str) -> float | None:
    """Parse a user-supplied reference pitch into Hz.

    Accepted forms (surrounding whitespace ignored):
        "440", "442.5"          plain number, taken as Hz
        "A4", "c#3", "Bb-1"     letter A–G, optional # or b, signed one-digit octave

    Spellings absent from both note tables (E#, Cb, B#, Fb) are rejected.

    Returns:
        Frequency in Hz, or None when the text matches neither form.
        None means "unparseable", which callers must keep distinct from 0.
    """
    candidate = text.strip()

    if _HZ_PATTERN.match(candidate):
        return float(candidate)

    match = _NOTE_PATTERN.match(candidate)
    if match is None:
        return None

    letter, accidental, octave_str = match.groups()
    semitone = _semitone_index(letter.upper() + accidental)
    if semitone is None:
        return None

    midi = semitone + (int(octave_str) + 1) * 12
    return midi_to_frequency(midi)


def cents_off_from_reference(frequency_hz: float, expected_hz: float) -> float:
    """Signed interval from ``expected_hz`` to ``frequency_hz`` in cents.

    Positive = sharp, negative = flat. Not rounded.

    Raises:
        ValueError: If either frequency is <= 0.
    """
    if frequency_hz <= 0.0 or expected_hz <= 0.0:
        raise ValueError(
            f"Frequencies must be > 0, got {frequency_hz} and {expected_hz}"
        )
    return 1200.0 * math.log2(frequency_hz / expected_hz)


def format_deviation(cents: float) -> str:
    """Human-readable deviation, e.g. '+5.2 cents sharp' or '-12.1 cents flat'."""
    if cents >= 0.0:
        return f"+{abs(cents):.1f} cents sharp"
    return f"-{abs(cents):.1f} cents flat"
