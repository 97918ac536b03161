"""
core/dsp/rms.py — Amplitude measurement for metering, normalization and gating.
"""

from __future__ import annotations

import numpy as np


def calculate_rms(frame: np.ndarray) -> float:
    """Root-mean-square level of a frame: sqrt(mean(sample²)).

    An empty frame has no energy and returns 0.0 rather than NaN.

    Args:
        frame: 1-D array of float samples, roughly in [-1, 1].

    Returns:
        RMS amplitude as a Python float (>= 0).
    """
    samples = np.asarray(frame, dtype=np.float64)
    if samples.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(samples**2)))


def frame_is_silent(frame: np.ndarray, threshold: float) -> bool:
    """True when the frame's RMS is below ``threshold``."""
    return calculate_rms(frame) < threshold
