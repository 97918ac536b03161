"""
Shared fixtures for the test suite.

Synthetic signals only: no audio files, no devices.
"""

from collections.abc import Callable

import numpy as np
import pytest

SAMPLE_RATE: int = 44100
"""Default sample rate for synthetic test signals."""


def make_sine(
    freq: float,
    *,
    sr: int = SAMPLE_RATE,
    n_samples: int = 2048,
    amplitude: float = 0.5,
) -> np.ndarray:
    """float32 sine starting at phase 0."""
    t = np.arange(n_samples, dtype=np.float64) / sr
    return (amplitude * np.sin(2.0 * np.pi * freq * t)).astype(np.float32)


@pytest.fixture()
def sine() -> Callable[..., np.ndarray]:
    """Factory fixture: ``sine(440.0, n_samples=4096)``."""
    return make_sine


@pytest.fixture()
def frames_of() -> Callable[..., list[np.ndarray]]:
    """Factory fixture splitting one continuous tone into consecutive frames.

    ``frames_of(440.0, n_frames=3, frame_size=2048)``
    """

    def _frames(
        freq: float,
        *,
        n_frames: int = 3,
        frame_size: int = 2048,
        sr: int = SAMPLE_RATE,
        amplitude: float = 0.5,
    ) -> list[np.ndarray]:
        tone = make_sine(freq, sr=sr, n_samples=n_frames * frame_size, amplitude=amplitude)
        return [tone[i * frame_size : (i + 1) * frame_size] for i in range(n_frames)]

    return _frames
