"""
core/pitch/reference.py — Caller-supplied expected pitch as a tagged variant.

An expected reference is either a number of Hz (NumericHz) or free text
(NoteName) such as "C4", "Bb3" or "442". Each variant resolves itself to
Hz and produces its own display label, so the engine never inspects the
runtime type of the caller's input.

resolve() returning None is the "unparseable" outcome, distinct from any
frequency, including 0.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from core.pitch.notes import parse_expected_note

_HAS_NOTE_LETTER = re.compile(r"[A-Ga-g]")


@dataclass(frozen=True)
class NumericHz:
    """Expected pitch given directly in Hz."""

    value: float

    def resolve(self) -> float | None:
        if not math.isfinite(self.value) or self.value <= 0.0:
            return None
        return float(self.value)

    def label(self, resolved_hz: float | None) -> str:
        return f"{self.value:.2f} Hz"


@dataclass(frozen=True)
class NoteName:
    """Expected pitch given as text: a note name or a plain Hz number."""

    text: str

    def resolve(self) -> float | None:
        hz = parse_expected_note(self.text)
        if hz is None or hz <= 0.0:
            return None
        return hz

    def label(self, resolved_hz: float | None) -> str:
        """Keep the caller's notation for note names, show Hz for numeric text.

        Unresolved text is echoed back untouched.
        """
        if resolved_hz is None:
            return self.text
        if _HAS_NOTE_LETTER.search(self.text):
            return self.text.strip()
        return f"{resolved_hz:.2f} Hz"


ExpectedReference = NumericHz | NoteName


def resolve_expected(reference: ExpectedReference) -> float | None:
    """Frequency in Hz for an expected reference, or None if unparseable."""
    return reference.resolve()
