"""
core/dsp — Pre-processing and smoothing stages of the pitch pipeline.

All functions are pure numpy/scipy computations on 1-D float frames.
The only state lives in explicit objects (BiquadFilter, FilterBank,
MedianSmoother, MovingAverage) owned by the caller.

Public API:
    Config:     DSPConfig, DEFAULT_CONFIG, RAW_CONFIG, VOICE_CONFIG,
                merge_config, validate_for_sample_rate
    RMS:        calculate_rms, frame_is_silent
    Filters:    BiquadFilter, FilterBank, create_filter, apply_filters
    Noise:      normalize_frame, soft_noise_gate, apply_noise_control
    Smoothing:  MedianSmoother, MovingAverage
"""

from core.dsp.config import (
    DEFAULT_CONFIG,
    RAW_CONFIG,
    VOICE_CONFIG,
    DSPConfig,
    merge_config,
    validate_for_sample_rate,
)
from core.dsp.filters import (
    BiquadFilter,
    FilterBank,
    apply_filters,
    create_filter,
    create_high_pass_filter,
    create_low_pass_filter,
)
from core.dsp.noise import apply_noise_control, normalize_frame, soft_noise_gate
from core.dsp.rms import calculate_rms, frame_is_silent
from core.dsp.smoothing import MedianSmoother, MovingAverage

__all__ = [
    # Config
    "DSPConfig",
    "DEFAULT_CONFIG",
    "RAW_CONFIG",
    "VOICE_CONFIG",
    "merge_config",
    "validate_for_sample_rate",
    # RMS
    "calculate_rms",
    "frame_is_silent",
    # Filters
    "BiquadFilter",
    "FilterBank",
    "create_filter",
    "create_high_pass_filter",
    "create_low_pass_filter",
    "apply_filters",
    # Noise
    "normalize_frame",
    "soft_noise_gate",
    "apply_noise_control",
    # Smoothing
    "MedianSmoother",
    "MovingAverage",
]
