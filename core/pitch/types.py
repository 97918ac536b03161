"""
core/pitch/types.py — Frozen result types for pitch estimation.

All types are frozen dataclasses: immutable value objects that are safe
to hand across the engine boundary and to keep in per-frame histories.

Invariants are documented but NOT enforced at construction time;
the creation sites (yin.py, notes.py, engine.py) uphold them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class YinResult:
    """Raw output of the YIN estimator for one frame.

    Invariants:
        frequency_hz is None  -> confidence == 0.0
        0.0 <= confidence <= 1.0
    """

    frequency_hz: float | None
    """Detected fundamental in Hz. None when no lag passed the threshold."""

    confidence: float
    """1 - CMND at the selected lag. A dissimilarity inverse, not a probability."""

    @property
    def detected(self) -> bool:
        return self.frequency_hz is not None


NO_DETECTION = YinResult(frequency_hz=None, confidence=0.0)


@dataclass(frozen=True)
class NoteInfo:
    """Nearest equal-tempered note for a frequency.

    Invariants:
        -50 <= cents_offset <= 50
        note_name == "Unknown"  ->  reference_frequency_hz == 0 and cents_offset == 0
    """

    note_name: str
    """Scientific pitch notation, e.g. 'A4', 'C#5'."""

    reference_frequency_hz: float
    """Equal-tempered frequency of note_name (A4 = 440 Hz)."""

    cents_offset: int
    """Rounded deviation of the input frequency from the reference, in cents."""


@dataclass(frozen=True)
class PitchResult:
    """Engine output for one processed frame.

    Invariants:
        note_name is set only when frequency_hz is set.
        deviation_text / cents_deviation are set only when both an expected
        reference resolved and a frequency was detected.
        expected_note_echo is set whenever the caller supplied an expected note.
    """

    frequency_hz: float | None
    """Detected (and optionally smoothed) fundamental in Hz, or None."""

    confidence: float
    """Raw YIN confidence for this frame. Never smoothed."""

    frame_rms: float
    """RMS after filtering, before normalization and gating."""

    note_name: str | None = None
    expected_note_echo: str | None = None
    """The caller's expected note, echoed for display (resolved or not)."""

    deviation_text: str | None = None
    """E.g. '+5.2 cents sharp'."""

    cents_deviation: float | None = None
    """Unrounded cents from the expected reference (positive = sharp)."""

    @property
    def detected(self) -> bool:
        return self.frequency_hz is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view of the result."""
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class AnalysisSummary:
    """Result of scanning a whole signal frame by frame.

    Invariants:
        frame_count == len(frames)
        best is None or best.detected
    """

    sample_rate: int
    frame_size: int
    frames: tuple[PitchResult, ...] = field(default_factory=tuple)
    """Per-frame results in temporal order."""

    best: PitchResult | None = None
    """Highest-confidence frame with a detection. None if nothing was detected."""

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def detected_count(self) -> int:
        return sum(1 for f in self.frames if f.detected)
