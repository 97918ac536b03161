"""
core/pitch/engine.py — Per-frame pitch pipeline for one audio stream.

PitchEngine wires the stages together:

    frame
      │
      ├─ FilterBank.apply()          [core/dsp/filters.py — HPF → LPF, stateful]
      │       ↓
      ├─ calculate_rms()             [core/dsp/rms.py — reported as frame_rms]
      │       ↓
      ├─ apply_noise_control()       [core/dsp/noise.py — normalize → soft gate]
      │       ↓
      ├─ YinEstimator.detect()       [core/pitch/yin.py — f0 + confidence]
      │       ↓
      ├─ MedianSmoother → MovingAverage  [core/dsp/smoothing.py — stateful]
      │       ↓
      ├─ frequency_to_note()         [core/pitch/notes.py]
      │       ↓
      └─ cents vs. expected reference [core/pitch/reference.py + notes.py]

Only the filter bank and the two smoothers carry memory between frames.
One engine serves one stream and must see its frames in temporal order.
It is not thread-safe; independent engines share nothing and can run in
parallel.

Gap policy: a frame without a detection resets both smoothers, so the
first detection after silence is reported unsmoothed instead of being
blended with the previous note.

Usage:
    engine = PitchEngine(44100)
    result = engine.process_frame(frame, expected_note=NoteName("A4"))
    print(result.frequency_hz, result.note_name, result.deviation_text)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import numpy as np

from core.dsp.config import DEFAULT_CONFIG, DSPConfig, merge_config, validate_for_sample_rate
from core.dsp.filters import FilterBank
from core.dsp.noise import apply_noise_control
from core.dsp.rms import calculate_rms
from core.dsp.smoothing import MedianSmoother, MovingAverage
from core.pitch.notes import cents_off_from_reference, format_deviation, frequency_to_note
from core.pitch.reference import ExpectedReference
from core.pitch.types import PitchResult
from core.pitch.yin import YinEstimator

logger = logging.getLogger(__name__)


class PitchEngine:
    """Stateful pitch detector for a single mono stream.

    Example:
        engine = PitchEngine(48000, {"low_pass_cutoff_hz": 1000.0})
        for frame in frames:
            result = engine.process_frame(frame)
    """

    def __init__(
        self,
        sample_rate: int,
        config: DSPConfig | Mapping[str, Any] | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            sample_rate: Sample rate of every frame this engine will see, in Hz.
            config: A full DSPConfig, or a partial mapping of DSPConfig fields
                merged over DEFAULT_CONFIG. None = DEFAULT_CONFIG.

        Raises:
            ValueError: If sample_rate is not positive, a field is unknown or
                invalid, or an enabled cutoff is at or above Nyquist.
        """
        if isinstance(config, DSPConfig):
            resolved = config
        else:
            resolved = merge_config(DEFAULT_CONFIG, config)
        validate_for_sample_rate(resolved, sample_rate)

        self.sample_rate = sample_rate
        self._config = resolved
        self._filters = FilterBank(sample_rate)
        self._estimator = YinEstimator(sample_rate, resolved.yin_threshold)
        self._median = MedianSmoother(resolved.median_window_size)
        self._ema = MovingAverage(resolved.moving_average_alpha)

        logger.debug("PitchEngine: created at %d Hz with %s", sample_rate, resolved)

    @property
    def config(self) -> DSPConfig:
        """The stored engine-level configuration."""
        return self._config

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def resolve_config(self, overrides: Mapping[str, Any] | None = None) -> DSPConfig:
        """Effective configuration for one call: stored config + shallow overrides.

        Raises:
            ValueError: If the overrides are invalid for this engine.
        """
        if not overrides:
            return self._config
        effective = merge_config(self._config, overrides)
        validate_for_sample_rate(effective, self.sample_rate)
        return effective

    def update_config(self, overrides: Mapping[str, Any]) -> None:
        """Merge new fields into the stored configuration.

        Supplying median_window_size or moving_average_alpha rebuilds the
        corresponding smoother with empty state, a deliberate discontinuity
        in the smoothed output. Filter changes take effect on the next frame
        and restart that filter from zero state.

        Raises:
            ValueError: If the merged configuration is invalid. The stored
                configuration is left unchanged in that case.
        """
        updated = self.resolve_config(overrides)
        self._config = updated

        if "median_window_size" in overrides:
            self._median = MedianSmoother(updated.median_window_size)
            logger.debug("PitchEngine: median window rebuilt (size=%d)", updated.median_window_size)
        if "moving_average_alpha" in overrides:
            self._ema = MovingAverage(updated.moving_average_alpha)
            logger.debug("PitchEngine: EMA rebuilt (alpha=%.3f)", updated.moving_average_alpha)

    def reset(self) -> None:
        """Clear filter and smoother memory, e.g. at the start of a new take."""
        self._filters.reset()
        self._reset_smoothers()

    def _reset_smoothers(self) -> None:
        if len(self._median) or self._ema.value is not None:
            logger.debug("PitchEngine: smoothers reset")
        self._median.reset()
        self._ema.reset()

    # ------------------------------------------------------------------
    # Per-frame processing
    # ------------------------------------------------------------------

    def _smooth(self, frequency_hz: float, config: DSPConfig) -> float:
        smoothed = frequency_hz
        if config.median_smoothing_enabled:
            smoothed = self._median.push(smoothed)
        if config.moving_average_enabled:
            smoothed = self._ema.push(smoothed)
        return smoothed

    def process_frame(
        self,
        frame: np.ndarray,
        *,
        expected_note: ExpectedReference | None = None,
        smoothing: bool = True,
        advanced_config: Mapping[str, Any] | None = None,
    ) -> PitchResult:
        """Run one mono frame through the full pipeline.

        Args:
            frame: 1-D float samples at this engine's sample rate.
            expected_note: Optional reference pitch (NumericHz or NoteName).
                When it resolves and a pitch is detected, the result carries
                the signed cents deviation.
            smoothing: Push the detection through median → EMA (default True).
                Confidence is never smoothed.
            advanced_config: Per-call DSPConfig overrides, merged over the
                stored configuration for this frame only.

        Returns:
            PitchResult. Silence, noise and degenerate frames come back as
            frequency_hz=None / confidence=0.0, never as an exception.

        Raises:
            ValueError: Only for invalid advanced_config, before any state
                is touched.
        """
        config = self.resolve_config(advanced_config)

        filtered = self._filters.apply(frame, config)
        frame_rms = calculate_rms(filtered)
        processed = apply_noise_control(filtered, config)

        detection = self._estimator.detect(processed, threshold=config.yin_threshold)

        frequency_hz = detection.frequency_hz
        if frequency_hz is None:
            self._reset_smoothers()
        elif smoothing:
            frequency_hz = self._smooth(frequency_hz, config)

        note_name = None
        if frequency_hz is not None and frequency_hz > 0.0:
            note_name = frequency_to_note(frequency_hz).note_name

        expected_echo = None
        deviation_text = None
        cents = None
        if expected_note is not None:
            expected_hz = expected_note.resolve()
            expected_echo = expected_note.label(expected_hz)
            if expected_hz is not None and note_name is not None:
                cents = cents_off_from_reference(frequency_hz, expected_hz)
                deviation_text = format_deviation(cents)

        return PitchResult(
            frequency_hz=frequency_hz,
            confidence=detection.confidence,
            frame_rms=frame_rms,
            note_name=note_name,
            expected_note_echo=expected_echo,
            deviation_text=deviation_text,
            cents_deviation=cents,
        )
