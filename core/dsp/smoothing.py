"""
core/dsp/smoothing.py — Stream smoothers for detected pitch values.

Both smoothers act on the frequency stream only, never on confidence.
The engine composes them as median → EMA: the median rejects single-frame
spikes (octave jumps, glitches), the EMA removes the remaining jitter.

Non-finite inputs (None, NaN, ±inf) are passed straight back out and do
not touch the smoother state.
"""

from __future__ import annotations

import math
from collections import deque


def _is_finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


class MedianSmoother:
    """Sliding-window median over the last ``window_size`` values.

    Example:
        >>> m = MedianSmoother(3)
        >>> [m.push(v) for v in (100, 100, 100, 500, 100)]
        [100, 100, 100, 100, 100]
    """

    def __init__(self, window_size: int = 5) -> None:
        if window_size < 1:
            raise ValueError(f"window_size must be at least 1, got {window_size}")
        self.window_size = window_size
        self._window: deque[float] = deque(maxlen=window_size)

    def push(self, value: float | None) -> float | None:
        """Add a value (oldest evicted beyond capacity) and return the median.

        The median is the element at index len // 2 of the sorted window,
        so an even-sized window reports the upper of its two middle values.
        """
        if not _is_finite(value):
            return value
        self._window.append(value)
        ordered = sorted(self._window)
        return ordered[len(ordered) // 2]

    def reset(self) -> None:
        self._window.clear()

    def __len__(self) -> int:
        return len(self._window)


class MovingAverage:
    """Exponential moving average: smoothed = alpha·value + (1 - alpha)·smoothed.

    The first value initializes the average unchanged.
    """

    def __init__(self, alpha: float = 0.35) -> None:
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self._smoothed: float | None = None

    @property
    def value(self) -> float | None:
        """Current running value, or None before the first push."""
        return self._smoothed

    def push(self, value: float | None) -> float | None:
        if not _is_finite(value):
            return value
        if self._smoothed is None:
            self._smoothed = value
        else:
            self._smoothed = self.alpha * value + (1.0 - self.alpha) * self._smoothed
        return self._smoothed

    def reset(self) -> None:
        self._smoothed = None
