"""
core/dsp/filters.py — Stateful second-order (biquad) high-pass and low-pass filters.

Coefficients follow the RBJ Audio EQ Cookbook:

    w0    = 2π · cutoff / sr
    alpha = sin(w0) / (2Q)

    high-pass:  b = [(1+cos w0)/2, -(1+cos w0), (1+cos w0)/2]
    low-pass:   b = [(1-cos w0)/2,   1-cos w0,  (1-cos w0)/2]
    both:       a = [1+alpha, -2 cos w0, 1-alpha]

all normalized by a0. Samples are run through scipy.signal.lfilter, whose
transposed direct-form-II recurrence is

    y  = b0·x + z1
    z1 = b1·x + z2 - a1·y
    z2 = b2·x - a2·y

The (z1, z2) pair is carried between calls via ``zi``/``zf`` so a stream
of frames is filtered as one continuous signal. Recreating a filter
(new cutoff, Q or sample rate) starts again from zero state.
"""

from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
from scipy import signal as scipy_signal

from core.dsp.config import BUTTERWORTH_Q, DSPConfig

logger = logging.getLogger(__name__)

FilterKind = Literal["highpass", "lowpass"]

FILTER_KINDS: frozenset[str] = frozenset({"highpass", "lowpass"})


# ---------------------------------------------------------------------------
# BiquadFilter
# ---------------------------------------------------------------------------


class BiquadFilter:
    """One biquad section with its own persistent delay state.

    Not thread-safe: process_frame() mutates the delay state in place.
    """

    def __init__(
        self,
        kind: FilterKind,
        b: tuple[float, float, float],
        a: tuple[float, float],
    ) -> None:
        """
        Args:
            kind: "highpass" or "lowpass" (informational).
            b: Normalized feed-forward coefficients (b0, b1, b2).
            a: Normalized feedback coefficients (a1, a2); a0 is 1.
        """
        self.kind = kind
        self._b = np.array(b, dtype=np.float64)
        self._a = np.array((1.0, *a), dtype=np.float64)
        self._zi = np.zeros(2, dtype=np.float64)

    @property
    def coefficients(self) -> tuple[float, float, float, float, float]:
        """(b0, b1, b2, a1, a2), normalized by a0."""
        b0, b1, b2 = (float(v) for v in self._b)
        return b0, b1, b2, float(self._a[1]), float(self._a[2])

    @property
    def z1(self) -> float:
        return float(self._zi[0])

    @property
    def z2(self) -> float:
        return float(self._zi[1])

    def process_frame(self, frame: np.ndarray) -> np.ndarray:
        """Filter one frame, advancing the delay state.

        Returns:
            New float64 array, same length as ``frame``.
        """
        samples = np.asarray(frame, dtype=np.float64)
        if samples.size == 0:
            return samples.copy()
        out, self._zi = scipy_signal.lfilter(self._b, self._a, samples, zi=self._zi)
        return out

    def reset(self) -> None:
        """Clear the delay state (z1 = z2 = 0)."""
        self._zi = np.zeros(2, dtype=np.float64)

    def __repr__(self) -> str:
        return f"BiquadFilter(kind={self.kind!r}, z1={self.z1:.6g}, z2={self.z2:.6g})"


# ---------------------------------------------------------------------------
# Coefficient design
# ---------------------------------------------------------------------------


def create_filter(
    kind: FilterKind,
    cutoff_hz: float,
    sample_rate: int,
    q: float = BUTTERWORTH_Q,
) -> BiquadFilter:
    """Design a high-pass or low-pass biquad with zeroed state.

    Args:
        kind: "highpass" or "lowpass".
        cutoff_hz: Corner frequency in Hz, strictly between 0 and Nyquist.
        sample_rate: Sample rate in Hz.
        q: Filter sharpness. 0.707 gives a Butterworth response.

    Returns:
        A fresh BiquadFilter.

    Raises:
        ValueError: On an unknown kind, a non-positive sample rate or Q,
            or a cutoff outside (0, sample_rate / 2). Coefficients at or
            beyond Nyquist are unstable.
    """
    if kind not in FILTER_KINDS:
        raise ValueError(f"Unknown filter kind {kind!r}, valid options: {sorted(FILTER_KINDS)}")
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    if q <= 0:
        raise ValueError(f"q must be positive, got {q}")
    nyquist = sample_rate / 2.0
    if not 0.0 < cutoff_hz < nyquist:
        raise ValueError(f"cutoff_hz must be in (0, {nyquist}), got {cutoff_hz}")

    w0 = 2.0 * math.pi * cutoff_hz / sample_rate
    cos_w0 = math.cos(w0)
    sin_w0 = math.sin(w0)
    alpha = sin_w0 / (2.0 * q)

    if kind == "highpass":
        b0 = (1.0 + cos_w0) / 2.0
        b1 = -(1.0 + cos_w0)
        b2 = (1.0 + cos_w0) / 2.0
    else:
        b0 = (1.0 - cos_w0) / 2.0
        b1 = 1.0 - cos_w0
        b2 = (1.0 - cos_w0) / 2.0
    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha

    return BiquadFilter(kind, (b0 / a0, b1 / a0, b2 / a0), (a1 / a0, a2 / a0))


def create_high_pass_filter(
    cutoff_hz: float, sample_rate: int, q: float = BUTTERWORTH_Q
) -> BiquadFilter:
    return create_filter("highpass", cutoff_hz, sample_rate, q)


def create_low_pass_filter(
    cutoff_hz: float, sample_rate: int, q: float = BUTTERWORTH_Q
) -> BiquadFilter:
    return create_filter("lowpass", cutoff_hz, sample_rate, q)


# ---------------------------------------------------------------------------
# FilterBank — per-stream HPF → LPF cascade
# ---------------------------------------------------------------------------


class FilterBank:
    """High-pass → low-pass cascade whose state persists across frames.

    Each filter is created the first time its cutoff is enabled and reused
    while (cutoff, Q) stay the same. A change recreates that filter with
    fresh state; disabling a filter (cutoff 0) drops it.

    Owned by exactly one PitchEngine. Not safe for concurrent use.
    """

    def __init__(self, sample_rate: int) -> None:
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.sample_rate = sample_rate
        self._high_pass: BiquadFilter | None = None
        self._high_pass_key: tuple[float, float] | None = None
        self._low_pass: BiquadFilter | None = None
        self._low_pass_key: tuple[float, float] | None = None

    @property
    def high_pass(self) -> BiquadFilter | None:
        return self._high_pass

    @property
    def low_pass(self) -> BiquadFilter | None:
        return self._low_pass

    def apply(self, frame: np.ndarray, config: DSPConfig) -> np.ndarray:
        """Filter a frame with whichever stages ``config`` enables.

        State advances only for enabled stages. With both cutoffs at 0 the
        input is returned as-is.
        """
        processed = frame

        if config.high_pass_cutoff_hz > 0:
            key = (config.high_pass_cutoff_hz, config.high_pass_q)
            if self._high_pass is None or self._high_pass_key != key:
                logger.debug("FilterBank: creating high-pass at %.1f Hz (Q=%.3f)", *key)
                self._high_pass = create_high_pass_filter(key[0], self.sample_rate, key[1])
                self._high_pass_key = key
            processed = self._high_pass.process_frame(processed)
        else:
            self._high_pass = None
            self._high_pass_key = None

        if config.low_pass_cutoff_hz > 0:
            key = (config.low_pass_cutoff_hz, config.low_pass_q)
            if self._low_pass is None or self._low_pass_key != key:
                logger.debug("FilterBank: creating low-pass at %.1f Hz (Q=%.3f)", *key)
                self._low_pass = create_low_pass_filter(key[0], self.sample_rate, key[1])
                self._low_pass_key = key
            processed = self._low_pass.process_frame(processed)
        else:
            self._low_pass = None
            self._low_pass_key = None

        return processed

    def reset(self) -> None:
        """Zero the state of every active filter without redesigning it."""
        for flt in (self._high_pass, self._low_pass):
            if flt is not None:
                flt.reset()


def apply_filters(frame: np.ndarray, sample_rate: int, config: DSPConfig) -> np.ndarray:
    """Stateless one-shot filtering of a single frame.

    Builds a throwaway FilterBank, so every call starts from zero state.
    Streaming callers should keep a FilterBank (or a PitchEngine) instead.
    """
    return FilterBank(sample_rate).apply(frame, config)
