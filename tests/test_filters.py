"""
Tests for core/dsp/filters.py — RBJ biquad design, persistent state, FilterBank.
"""

import math

import numpy as np
import pytest
from scipy import signal as scipy_signal

from core.dsp.config import DSPConfig
from core.dsp.filters import (
    BiquadFilter,
    FilterBank,
    apply_filters,
    create_filter,
    create_high_pass_filter,
    create_low_pass_filter,
)
from core.dsp.rms import calculate_rms

SR = 44100


def _settled_rms(flt: BiquadFilter, freq: float, n_frames: int = 6) -> tuple[float, float]:
    """Run a continuous tone through ``flt`` frame by frame.

    Returns (input_rms, output_rms) of the last frame, after the
    start-up transient has decayed.
    """
    t = np.arange(n_frames * 2048) / SR
    tone = 0.5 * np.sin(2.0 * np.pi * freq * t)
    out = None
    for i in range(n_frames):
        frame = tone[i * 2048 : (i + 1) * 2048]
        out = flt.process_frame(frame)
    return calculate_rms(frame), calculate_rms(out)


# ---------------------------------------------------------------------------
# Coefficient design
# ---------------------------------------------------------------------------


class TestCreateFilter:
    def test_lowpass_has_unity_dc_gain(self):
        b0, b1, b2, a1, a2 = create_low_pass_filter(1000.0, SR).coefficients
        assert (b0 + b1 + b2) / (1.0 + a1 + a2) == pytest.approx(1.0)

    def test_highpass_blocks_dc(self):
        b0, b1, b2, _a1, _a2 = create_high_pass_filter(1000.0, SR).coefficients
        assert b0 + b1 + b2 == pytest.approx(0.0, abs=1e-12)

    def test_highpass_coefficients_match_formula(self):
        cutoff, q = 200.0, 0.707
        w0 = 2.0 * math.pi * cutoff / SR
        alpha = math.sin(w0) / (2.0 * q)
        a0 = 1.0 + alpha
        expected = (
            (1.0 + math.cos(w0)) / 2.0 / a0,
            -(1.0 + math.cos(w0)) / a0,
            (1.0 + math.cos(w0)) / 2.0 / a0,
            -2.0 * math.cos(w0) / a0,
            (1.0 - alpha) / a0,
        )
        assert create_filter("highpass", cutoff, SR, q).coefficients == pytest.approx(expected)

    @pytest.mark.parametrize(("kind", "btype"), [("lowpass", "low"), ("highpass", "high")])
    def test_butterworth_q_matches_scipy_butter(self, kind, btype):
        """RBJ with Q = 1/√2 is the bilinear-transformed 2nd-order Butterworth."""
        cutoff = 1500.0
        flt = create_filter(kind, cutoff, SR, q=1.0 / math.sqrt(2.0))
        b, a = scipy_signal.butter(2, cutoff / (SR / 2.0), btype=btype)
        b0, b1, b2, a1, a2 = flt.coefficients
        np.testing.assert_allclose([b0, b1, b2], b, rtol=1e-6)
        np.testing.assert_allclose([1.0, a1, a2], a, rtol=1e-6)

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown filter kind"):
            create_filter("bandpass", 1000.0, SR)  # type: ignore[arg-type]

    @pytest.mark.parametrize("cutoff", [0.0, -10.0, SR / 2, 30000.0])
    def test_cutoff_outside_open_band_raises(self, cutoff):
        with pytest.raises(ValueError, match="cutoff_hz must be in"):
            create_filter("lowpass", cutoff, SR)

    def test_non_positive_sample_rate_raises(self):
        with pytest.raises(ValueError, match="sample_rate must be positive"):
            create_filter("lowpass", 100.0, 0)

    def test_non_positive_q_raises(self):
        with pytest.raises(ValueError, match="q must be positive"):
            create_filter("lowpass", 100.0, SR, q=0.0)

    def test_new_filter_has_zero_state(self):
        flt = create_filter("highpass", 100.0, SR)
        assert flt.z1 == 0.0
        assert flt.z2 == 0.0


# ---------------------------------------------------------------------------
# Frequency response on steady-state tones
# ---------------------------------------------------------------------------


class TestFilterResponse:
    def test_highpass_far_below_tone_passes_it(self):
        rms_in, rms_out = _settled_rms(create_high_pass_filter(20.0, SR), 440.0)
        assert rms_out == pytest.approx(rms_in, rel=0.03)

    def test_highpass_far_above_tone_attenuates_it(self):
        rms_in, rms_out = _settled_rms(create_high_pass_filter(10000.0, SR), 440.0)
        assert rms_out < 0.01 * rms_in

    def test_lowpass_far_above_tone_passes_it(self):
        rms_in, rms_out = _settled_rms(create_low_pass_filter(10000.0, SR), 440.0)
        assert rms_out == pytest.approx(rms_in, rel=0.03)

    def test_lowpass_far_below_tone_attenuates_it(self):
        rms_in, rms_out = _settled_rms(create_low_pass_filter(50.0, SR), 2000.0)
        assert rms_out < 0.01 * rms_in

    def test_butterworth_is_minus_3db_at_cutoff(self):
        rms_in, rms_out = _settled_rms(create_low_pass_filter(1000.0, SR), 1000.0)
        assert rms_out / rms_in == pytest.approx(1.0 / math.sqrt(2.0), rel=0.02)


# ---------------------------------------------------------------------------
# Persistent state
# ---------------------------------------------------------------------------


class TestBiquadState:
    def test_frame_by_frame_equals_one_shot(self, sine):
        tone = sine(330.0, n_samples=4096)
        whole = create_high_pass_filter(100.0, SR).process_frame(tone)

        flt = create_high_pass_filter(100.0, SR)
        pieces = np.concatenate([flt.process_frame(tone[:2048]), flt.process_frame(tone[2048:])])
        np.testing.assert_allclose(pieces, whole, atol=1e-12)

    def test_matches_transposed_direct_form_ii_recurrence(self, sine):
        frame = sine(500.0, n_samples=64).astype(np.float64)
        flt = create_low_pass_filter(2000.0, SR)
        b0, b1, b2, a1, a2 = flt.coefficients

        z1 = z2 = 0.0
        expected = []
        for x in frame:
            y = x * b0 + z1
            z1 = x * b1 + z2 - a1 * y
            z2 = x * b2 - a2 * y
            expected.append(y)

        np.testing.assert_allclose(flt.process_frame(frame), expected, atol=1e-12)
        assert flt.z1 == pytest.approx(z1, abs=1e-12)
        assert flt.z2 == pytest.approx(z2, abs=1e-12)

    def test_length_preserved(self, sine):
        frame = sine(440.0, n_samples=1000)
        assert create_low_pass_filter(1000.0, SR).process_frame(frame).shape == (1000,)

    def test_empty_frame(self):
        out = create_low_pass_filter(1000.0, SR).process_frame(np.array([], dtype=np.float32))
        assert out.size == 0

    def test_reset_clears_state(self, sine):
        flt = create_high_pass_filter(100.0, SR)
        flt.process_frame(sine(440.0, n_samples=256))
        assert (flt.z1, flt.z2) != (0.0, 0.0)
        flt.reset()
        assert (flt.z1, flt.z2) == (0.0, 0.0)

    def test_input_not_mutated(self, sine):
        frame = sine(440.0, n_samples=256)
        original = frame.copy()
        create_high_pass_filter(100.0, SR).process_frame(frame)
        np.testing.assert_array_equal(frame, original)


# ---------------------------------------------------------------------------
# FilterBank / apply_filters
# ---------------------------------------------------------------------------


class TestFilterBank:
    def test_both_disabled_returns_input(self, sine):
        frame = sine(440.0)
        config = DSPConfig(high_pass_cutoff_hz=0.0, low_pass_cutoff_hz=0.0)
        bank = FilterBank(SR)
        assert bank.apply(frame, config) is frame
        assert bank.high_pass is None
        assert bank.low_pass is None

    def test_filters_created_only_when_enabled(self, sine):
        bank = FilterBank(SR)
        bank.apply(sine(440.0), DSPConfig(high_pass_cutoff_hz=50.0, low_pass_cutoff_hz=0.0))
        assert bank.high_pass is not None
        assert bank.low_pass is None

    def test_filter_reused_while_parameters_unchanged(self, sine):
        bank = FilterBank(SR)
        config = DSPConfig(high_pass_cutoff_hz=50.0, low_pass_cutoff_hz=2000.0)
        bank.apply(sine(440.0), config)
        hp, lp = bank.high_pass, bank.low_pass
        bank.apply(sine(440.0), config)
        assert bank.high_pass is hp
        assert bank.low_pass is lp

    def test_parameter_change_recreates_with_fresh_state(self, sine):
        bank = FilterBank(SR)
        bank.apply(sine(440.0), DSPConfig(high_pass_cutoff_hz=50.0))
        old = bank.high_pass
        bank.apply(sine(440.0), DSPConfig(high_pass_cutoff_hz=80.0))
        assert bank.high_pass is not old

    def test_disabling_drops_filter(self, sine):
        bank = FilterBank(SR)
        bank.apply(sine(440.0), DSPConfig(low_pass_cutoff_hz=1000.0))
        bank.apply(sine(440.0), DSPConfig(low_pass_cutoff_hz=0.0))
        assert bank.low_pass is None

    def test_cascade_equals_sequential_filters(self, sine):
        frame = sine(440.0)
        config = DSPConfig(high_pass_cutoff_hz=100.0, low_pass_cutoff_hz=3000.0)
        expected = create_low_pass_filter(3000.0, SR).process_frame(
            create_high_pass_filter(100.0, SR).process_frame(frame)
        )
        np.testing.assert_allclose(FilterBank(SR).apply(frame, config), expected)

    def test_reset_keeps_filters_but_zeroes_state(self, sine):
        bank = FilterBank(SR)
        bank.apply(sine(440.0), DSPConfig(high_pass_cutoff_hz=50.0))
        hp = bank.high_pass
        bank.reset()
        assert bank.high_pass is hp
        assert (hp.z1, hp.z2) == (0.0, 0.0)

    def test_invalid_sample_rate_raises(self):
        with pytest.raises(ValueError, match="sample_rate must be positive"):
            FilterBank(0)


class TestApplyFilters:
    def test_is_stateless_between_calls(self, sine):
        frame = sine(440.0)
        config = DSPConfig(high_pass_cutoff_hz=100.0)
        np.testing.assert_array_equal(
            apply_filters(frame, SR, config),
            apply_filters(frame, SR, config),
        )
