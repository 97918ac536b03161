"""
core/pitch — YIN pitch estimation, note mapping and the per-frame engine.

Public API:
    Types:     YinResult, NoteInfo, PitchResult, AnalysisSummary
    YIN:       detect_pitch, YinEstimator
    Notes:     frequency_to_note, parse_expected_note,
               cents_off_from_reference, format_deviation
    Reference: NumericHz, NoteName, ExpectedReference, resolve_expected
    Engine:    PitchEngine
    Analysis:  analyze_signal
"""

from core.pitch.analysis import analyze_signal
from core.pitch.engine import PitchEngine
from core.pitch.notes import (
    cents_off_from_reference,
    format_deviation,
    frequency_to_note,
    parse_expected_note,
)
from core.pitch.reference import ExpectedReference, NoteName, NumericHz, resolve_expected
from core.pitch.types import AnalysisSummary, NoteInfo, PitchResult, YinResult
from core.pitch.yin import YinEstimator, detect_pitch

__all__ = [
    # Types
    "YinResult",
    "NoteInfo",
    "PitchResult",
    "AnalysisSummary",
    # YIN
    "detect_pitch",
    "YinEstimator",
    # Notes
    "frequency_to_note",
    "parse_expected_note",
    "cents_off_from_reference",
    "format_deviation",
    # Reference
    "NumericHz",
    "NoteName",
    "ExpectedReference",
    "resolve_expected",
    # Engine
    "PitchEngine",
    # Analysis
    "analyze_signal",
]
