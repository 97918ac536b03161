"""
core/pitch/analysis.py — Whole-signal scan for the most stable pitch.

Takes an already-decoded signal (numpy array + sample rate). Decoding and
argument parsing belong to the caller; nothing here touches the filesystem.

Strategy:
    1. Downmix (channels, samples) input to mono by averaging channels.
    2. Skip the initial attack (default 0.3 s), where plucked and struck
       sources are inharmonic.
    3. Feed consecutive non-overlapping frame_size frames through one
       PitchEngine, in order.
    4. Report the highest-confidence frame that produced a detection.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import numpy as np

from core.dsp.config import DSPConfig
from core.pitch.engine import PitchEngine
from core.pitch.reference import ExpectedReference
from core.pitch.types import AnalysisSummary, PitchResult

logger = logging.getLogger(__name__)

ATTACK_SKIP_SEC: float = 0.3


def to_mono(samples: np.ndarray) -> np.ndarray:
    """Average a (channels, samples) array down to 1-D. 1-D input is returned as-is.

    Raises:
        ValueError: If ``samples`` has more than two dimensions.
    """
    y = np.asarray(samples, dtype=np.float32)
    if y.ndim == 1:
        return y
    if y.ndim == 2:
        return y.mean(axis=0)
    raise ValueError(f"Expected 1-D or (channels, samples) audio, got shape {y.shape}")


def analyze_signal(
    samples: np.ndarray,
    sample_rate: int,
    *,
    expected_note: ExpectedReference | None = None,
    config: DSPConfig | Mapping[str, Any] | None = None,
    attack_skip_sec: float = ATTACK_SKIP_SEC,
    smoothing: bool = True,
) -> AnalysisSummary:
    """Scan a signal frame by frame and pick the best pitch estimate.

    Args:
        samples: Mono (N,) or multichannel (channels, N) float audio.
        sample_rate: Sample rate in Hz.
        expected_note: Optional reference passed to every frame.
        config: DSPConfig or partial overrides of DEFAULT_CONFIG.
            Its frame_size sets the scan step.
        attack_skip_sec: Seconds dropped from the start before scanning.
        smoothing: Forwarded to PitchEngine.process_frame().

    Returns:
        AnalysisSummary. ``best`` is None when the signal is shorter than
        one frame after the skip, or no frame produced a detection.

    Raises:
        ValueError: For invalid configuration, sample rate, or
            attack_skip_sec < 0.
    """
    if attack_skip_sec < 0:
        raise ValueError(f"attack_skip_sec must be non-negative, got {attack_skip_sec}")

    engine = PitchEngine(sample_rate, config)
    frame_size = engine.config.frame_size

    y = to_mono(samples)
    y = y[int(sample_rate * attack_skip_sec) :]

    results: list[PitchResult] = []
    best: PitchResult | None = None
    for start in range(0, y.size - frame_size + 1, frame_size):
        result = engine.process_frame(
            y[start : start + frame_size],
            expected_note=expected_note,
            smoothing=smoothing,
        )
        results.append(result)
        if result.detected and (best is None or result.confidence > best.confidence):
            best = result

    summary = AnalysisSummary(
        sample_rate=sample_rate,
        frame_size=frame_size,
        frames=tuple(results),
        best=best,
    )
    logger.info(
        "analyze_signal: %d frames, %d detected, best=%s",
        summary.frame_count,
        summary.detected_count,
        f"{best.frequency_hz:.2f} Hz" if best is not None else "none",
    )
    return summary
