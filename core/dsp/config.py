"""
core/dsp/config.py — Immutable DSP configuration for the pitch pipeline.

One frozen DSPConfig controls filtering, noise handling, normalization,
smoothing, frame size and the YIN threshold. Stages read it and never
mutate it. Layered configuration (engine-level defaults + per-call
overrides) is resolved in exactly one place: merge_config().

The configuration is always supplied explicitly by the caller. There is
no environment or file probing here; DEFAULT_CONFIG is the built-in
fallback.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

BUTTERWORTH_Q: float = 0.707
"""Q of a maximally flat (Butterworth) second-order section."""


@dataclass(frozen=True)
class DSPConfig:
    """
    Configuration for the pre-filter, noise-control and smoothing stages.

    Attributes:
        high_pass_cutoff_hz: High-pass corner in Hz. 0 disables the filter.
            Defaults to 50 Hz, which removes rumble and DC drift.
        low_pass_cutoff_hz: Low-pass corner in Hz. 0 disables the filter.
        high_pass_q: Sharpness of the high-pass biquad (0.707 = Butterworth).
        low_pass_q: Sharpness of the low-pass biquad (0.707 = Butterworth).
        noise_gate_enabled: Apply the soft (proportional) noise gate.
        noise_gate_threshold_rms: RMS level in [0, 1] below which frames
            are attenuated.
        normalization_enabled: Scale each frame to normalization_target_rms.
        normalization_target_rms: Target RMS in [0, 1]. 0.25 is roughly -12 dBFS.
        median_smoothing_enabled: Run detected frequencies through the
            sliding-window median.
        median_window_size: Number of recent detections in the median window.
        moving_average_enabled: Run the median output through the EMA.
        moving_average_alpha: EMA weight in (0, 1]. Lower is smoother.
        frame_size: Samples per analysis frame. Must be a power of two.
        yin_threshold: Absolute CMND threshold for the YIN lag search.

    Example:
        >>> config = DSPConfig(low_pass_cutoff_hz=1000.0)
        >>> engine = PitchEngine(44100, config)
    """

    high_pass_cutoff_hz: float = 50.0
    low_pass_cutoff_hz: float = 0.0
    high_pass_q: float = BUTTERWORTH_Q
    low_pass_q: float = BUTTERWORTH_Q

    noise_gate_enabled: bool = True
    noise_gate_threshold_rms: float = 0.02

    normalization_enabled: bool = True
    normalization_target_rms: float = 0.25

    median_smoothing_enabled: bool = True
    median_window_size: int = 5
    moving_average_enabled: bool = True
    moving_average_alpha: float = 0.35

    frame_size: int = 2048
    yin_threshold: float = 0.10

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.high_pass_cutoff_hz < 0:
            raise ValueError(
                f"high_pass_cutoff_hz must be non-negative, got {self.high_pass_cutoff_hz}"
            )
        if self.low_pass_cutoff_hz < 0:
            raise ValueError(
                f"low_pass_cutoff_hz must be non-negative, got {self.low_pass_cutoff_hz}"
            )
        if self.high_pass_q <= 0:
            raise ValueError(f"high_pass_q must be positive, got {self.high_pass_q}")
        if self.low_pass_q <= 0:
            raise ValueError(f"low_pass_q must be positive, got {self.low_pass_q}")
        if not 0.0 <= self.noise_gate_threshold_rms <= 1.0:
            raise ValueError(
                "noise_gate_threshold_rms must be in [0, 1], "
                f"got {self.noise_gate_threshold_rms}"
            )
        if not 0.0 <= self.normalization_target_rms <= 1.0:
            raise ValueError(
                "normalization_target_rms must be in [0, 1], "
                f"got {self.normalization_target_rms}"
            )
        if self.median_window_size < 1:
            raise ValueError(
                f"median_window_size must be at least 1, got {self.median_window_size}"
            )
        if not 0.0 < self.moving_average_alpha <= 1.0:
            raise ValueError(
                f"moving_average_alpha must be in (0, 1], got {self.moving_average_alpha}"
            )
        if self.frame_size <= 0 or self.frame_size & (self.frame_size - 1):
            raise ValueError(
                f"frame_size must be a positive power of two, got {self.frame_size}"
            )
        if not 0.0 < self.yin_threshold < 1.0:
            raise ValueError(f"yin_threshold must be in (0, 1), got {self.yin_threshold}")


_FIELD_NAMES: frozenset[str] = frozenset(f.name for f in dataclasses.fields(DSPConfig))


def merge_config(base: DSPConfig, overrides: Mapping[str, Any] | None = None) -> DSPConfig:
    """Resolve one effective configuration from a base and partial overrides.

    The merge is shallow: every supplied key fully replaces the base value,
    every other field is kept. The result is a new validated DSPConfig;
    ``base`` is never modified.

    Args:
        base: Configuration the overrides are layered on.
        overrides: Mapping of DSPConfig field names to new values.
            None or empty returns ``base`` itself.

    Returns:
        The effective DSPConfig.

    Raises:
        ValueError: If a key is not a DSPConfig field, or the merged
            values fail validation.
    """
    if not overrides:
        return base
    unknown = set(overrides) - _FIELD_NAMES
    if unknown:
        raise ValueError(
            f"Unknown DSPConfig fields {sorted(unknown)}, valid options: {sorted(_FIELD_NAMES)}"
        )
    return dataclasses.replace(base, **overrides)


def validate_for_sample_rate(config: DSPConfig, sample_rate: int) -> None:
    """Check the parts of a config that depend on the sample rate.

    Raises:
        ValueError: If sample_rate is not positive, or an enabled filter
            cutoff is at or above Nyquist (sample_rate / 2).
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    nyquist = sample_rate / 2.0
    if config.high_pass_cutoff_hz >= nyquist:
        raise ValueError(
            f"high_pass_cutoff_hz ({config.high_pass_cutoff_hz}) must be below "
            f"Nyquist ({nyquist})"
        )
    if config.low_pass_cutoff_hz >= nyquist:
        raise ValueError(
            f"low_pass_cutoff_hz ({config.low_pass_cutoff_hz}) must be below "
            f"Nyquist ({nyquist})"
        )


# Pre-defined configurations for common use cases

DEFAULT_CONFIG = DSPConfig()
"""Default: 50 Hz high-pass, normalization to 0.25 RMS, soft gate at 0.02,
median window 5 + EMA alpha 0.35, 2048-sample frames."""

RAW_CONFIG = DSPConfig(
    high_pass_cutoff_hz=0.0,
    noise_gate_enabled=False,
    normalization_enabled=False,
    median_smoothing_enabled=False,
    moving_average_enabled=False,
)
"""Every pre-processing and smoothing stage disabled. YIN sees the input as-is."""

VOICE_CONFIG = DSPConfig(high_pass_cutoff_hz=80.0, low_pass_cutoff_hz=1000.0)
"""Band-limited to the singing-voice fundamental range."""
