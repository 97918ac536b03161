"""
core/pitch/yin.py — YIN fundamental-frequency estimator (de Cheveigné & Kawahara, 2002).

Pipeline for one frame of length N, half = N // 2:

    1. Difference function   d(τ)  = Σ_{i<half} (x[i] - x[i+τ])²        τ ∈ [1, half)
    2. CMND                  d'(0) = 1
                             d'(τ) = d(τ) · τ / Σ_{j=1..τ} d(j)
    3. Absolute threshold    first τ ≥ 2 with d'(τ) < threshold, then walk
                             forward while d'(τ+1) < d'(τ)
    4. Parabolic refinement  τ* = τ + (s2 - s0) / (2·(2·s1 - s2 - s0))
    5. Output                f = sr / τ*,  confidence = 1 - d'(τ)

Taking the first dip under the threshold, not the global minimum,
favours the shortest period and so resists octave errors (locking onto
a subharmonic).

Everything here is a pure function of its inputs. Degenerate frames
(fewer than 6 samples, all-zero or constant) yield NO_DETECTION.
"""

from __future__ import annotations

import numpy as np

from core.pitch.types import NO_DETECTION, YinResult

DEFAULT_THRESHOLD: float = 0.10
"""Absolute CMND threshold recommended by the YIN paper."""

_MIN_TAU: int = 2


# ---------------------------------------------------------------------------
# Steps 1–2 — difference function and CMND
# ---------------------------------------------------------------------------


def difference_function(frame: np.ndarray) -> np.ndarray:
    """Squared-difference function d(τ) for τ in [0, half).

    d(0) is left at 0. Only the first ``half`` samples are compared, so
    ``i + τ`` never runs past the end of the frame. O(half²).

    Args:
        frame: 1-D float array.

    Returns:
        float64 array of length len(frame) // 2.
    """
    x = np.asarray(frame, dtype=np.float64)
    half = x.size // 2
    diff = np.zeros(half, dtype=np.float64)
    head = x[:half]
    for tau in range(1, half):
        delta = head - x[tau : tau + half]
        diff[tau] = np.dot(delta, delta)
    return diff


def cumulative_mean_normalized_difference(diff: np.ndarray) -> np.ndarray:
    """Normalize d(τ) by its running mean.

    d'(0) = 1. Where the running sum is still 0 (an all-zero or constant
    frame) d'(τ) is set to 1, which can never pass the threshold.

    Returns:
        New float64 array, same length as ``diff``.
    """
    cmnd = np.ones(diff.size, dtype=np.float64)
    if diff.size < 2:
        return cmnd
    running = np.cumsum(diff[1:])
    tau = np.arange(1, diff.size, dtype=np.float64)
    np.divide(diff[1:] * tau, running, out=cmnd[1:], where=running > 0.0)
    return cmnd


# ---------------------------------------------------------------------------
# Steps 3–4 — lag selection and refinement
# ---------------------------------------------------------------------------


def absolute_threshold(cmnd: np.ndarray, threshold: float = DEFAULT_THRESHOLD) -> int | None:
    """Pick the lag at the local minimum just past the first threshold crossing.

    Returns:
        The selected integer τ, or None when no τ in [2, len(cmnd))
        falls under ``threshold``.
    """
    below = np.flatnonzero(cmnd[_MIN_TAU:] < threshold)
    if below.size == 0:
        return None
    tau = int(below[0]) + _MIN_TAU
    while tau + 1 < cmnd.size and cmnd[tau + 1] < cmnd[tau]:
        tau += 1
    return tau


def parabolic_interpolation(cmnd: np.ndarray, tau: int) -> float:
    """Sub-sample lag from a parabola through d'(τ-1), d'(τ), d'(τ+1).

    Falls back to the integer ``tau`` at the buffer edges or when the
    three points are collinear.
    """
    if tau < 1 or tau + 1 >= cmnd.size:
        return float(tau)
    s0 = float(cmnd[tau - 1])
    s1 = float(cmnd[tau])
    s2 = float(cmnd[tau + 1])
    denom = 2.0 * (2.0 * s1 - s2 - s0)
    if denom == 0.0:
        return float(tau)
    return tau + (s2 - s0) / denom


# ---------------------------------------------------------------------------
# Step 5 — full estimate
# ---------------------------------------------------------------------------


def detect_pitch(
    frame: np.ndarray,
    sample_rate: int,
    threshold: float = DEFAULT_THRESHOLD,
) -> YinResult:
    """Estimate the fundamental frequency of one mono frame.

    Args:
        frame: 1-D float array, roughly in [-1, 1]. Should hold at least
            two or three periods of the lowest pitch of interest.
        sample_rate: Sample rate in Hz.
        threshold: Absolute CMND threshold (default 0.10).

    Returns:
        YinResult with frequency in Hz and confidence, or NO_DETECTION.
        Never raises for silent, constant or short frames.
    """
    diff = difference_function(frame)
    if diff.size <= _MIN_TAU:
        return NO_DETECTION

    cmnd = cumulative_mean_normalized_difference(diff)
    tau = absolute_threshold(cmnd, threshold)
    if tau is None:
        return NO_DETECTION

    refined = parabolic_interpolation(cmnd, tau)
    if not np.isfinite(refined) or refined <= 0.0:
        refined = float(tau)

    return YinResult(
        frequency_hz=sample_rate / refined,
        confidence=float(1.0 - cmnd[tau]),
    )


class YinEstimator:
    """YIN bound to one stream's sample rate and default threshold.

    Stateless between calls; held by PitchEngine so the stream's
    parameters are fixed in one place.
    """

    def __init__(self, sample_rate: int, threshold: float = DEFAULT_THRESHOLD) -> None:
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        if not 0.0 < threshold < 1.0:
            raise ValueError(f"threshold must be in (0, 1), got {threshold}")
        self.sample_rate = sample_rate
        self.threshold = threshold

    def detect(self, frame: np.ndarray, threshold: float | None = None) -> YinResult:
        """Run detect_pitch() with this estimator's sample rate.

        ``threshold`` overrides the stored default for this call only.
        """
        return detect_pitch(
            frame,
            self.sample_rate,
            self.threshold if threshold is None else threshold,
        )
