"""
core/dsp/noise.py — Amplitude normalization and soft noise gating.

Both operations return a new array and leave the input untouched.
Gains are derived from the frame RMS, so an all-zero frame is passed
through unchanged instead of dividing by zero.
"""

from __future__ import annotations

import numpy as np

from core.dsp.config import DSPConfig
from core.dsp.rms import calculate_rms


def normalize_frame(frame: np.ndarray, target_rms: float = 0.25) -> np.ndarray:
    """Scale a frame so its RMS equals ``target_rms``.

    Keeps amplitude consistent for pitch detection regardless of input level.

    Args:
        frame: 1-D array of float samples.
        target_rms: Desired RMS level in [0, 1].

    Returns:
        Scaled copy of the frame, or the input itself when its RMS is 0.
    """
    rms = calculate_rms(frame)
    if rms == 0.0:
        return frame
    return np.asarray(frame) * (target_rms / rms)


def soft_noise_gate(frame: np.ndarray, threshold: float = 0.02) -> np.ndarray:
    """Attenuate a quiet frame in proportion to how far it sits under threshold.

    Frames at or above ``threshold`` are returned unchanged. Below it every
    sample is multiplied by ``rms / threshold``: a frame just under the
    threshold is barely touched, a near-silent one is pushed toward zero.

    Args:
        frame: 1-D array of float samples.
        threshold: RMS gate level in [0, 1].

    Returns:
        The input itself, or an attenuated copy.
    """
    rms = calculate_rms(frame)
    if rms >= threshold:
        return frame
    return np.asarray(frame) * (rms / threshold)


def apply_noise_control(frame: np.ndarray, config: DSPConfig) -> np.ndarray:
    """Run normalization then gating, each only if enabled.

    The order is fixed: the gate compares the already-normalized signal
    against its threshold.
    """
    processed = frame
    if config.normalization_enabled:
        processed = normalize_frame(processed, config.normalization_target_rms)
    if config.noise_gate_enabled:
        processed = soft_noise_gate(processed, config.noise_gate_threshold_rms)
    return processed
