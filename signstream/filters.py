"""
One Euro filters for smoothing noisy landmark channels.

Usage:
    from signstream.filters import OneEuroFilter, FilterBank

    f = OneEuroFilter()
    smoothed = f.filter(raw_value, timestamp)

    bank = FilterBank(size=FEATURE_LENGTH)
    smoothed_vector = bank.smooth(vector, timestamp)

Reference: Casiez, G., Roussel, N. and Vogel, D. (2012).
"1€ Filter: A Simple Speed-based Low-pass Filter for Noisy Input in Interactive Systems"
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import FilterConfig
from .errors import FeatureLengthError
from .features import FEATURE_LENGTH

logger = logging.getLogger(__name__)


def smoothing_factor(freq, cutoff):
    """Exponential smoothing coefficient for a cutoff at the given sampling frequency."""
    te = 1.0 / freq
    tau = 1.0 / (2 * np.pi * cutoff)
    return 1.0 / (1.0 + tau / te)


class OneEuroFilter:
    """
    One Euro filter for a single channel.

    Two exponential stages: one on the derivative, one on the value. The
    value stage's cutoff rises with the smoothed derivative, so a static
    signal is smoothed heavily while fast motion is tracked with little lag.
    Timestamps are in seconds.
    """

    def __init__(self,
                 freq=30.0,           # Initial sampling frequency estimate (Hz)
                 min_cutoff=1.0,      # Minimum cutoff frequency (Hz)
                 beta=0.007,          # Cutoff slope (sensitivity to velocity)
                 d_cutoff=1.0):       # Cutoff for the derivative stage
        self.freq = freq
        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff

        self.x_prev: Optional[float] = None
        self.dx_prev: Optional[float] = None
        self.t_prev: Optional[float] = None

    def filter(self, value: float, timestamp: Optional[float] = None) -> float:
        """
        Filter one sample.

        Args:
            value: Raw measurement
            timestamp: Sample time in seconds; if omitted, advances by one period

        Returns:
            Smoothed value (equal to value on the first sample)
        """
        if timestamp is not None and self.t_prev is not None:
            dt = timestamp - self.t_prev
            if dt > 0:
                self.freq = 1.0 / dt
        if timestamp is not None:
            self.t_prev = timestamp
        elif self.t_prev is not None:
            self.t_prev = self.t_prev + 1.0 / self.freq
        else:
            self.t_prev = time.monotonic()

        if self.x_prev is None:
            self.x_prev = value
            self.dx_prev = 0.0
            return value

        dx = (value - self.x_prev) * self.freq
        alpha_d = smoothing_factor(self.freq, self.d_cutoff)
        dx_hat = alpha_d * dx + (1 - alpha_d) * self.dx_prev

        cutoff = self.min_cutoff + self.beta * abs(dx_hat)
        alpha = smoothing_factor(self.freq, cutoff)
        x_hat = alpha * value + (1 - alpha) * self.x_prev

        self.x_prev = x_hat
        self.dx_prev = dx_hat
        return x_hat

    def reset(self) -> None:
        """Forget all history; the next sample passes through unchanged."""
        self.x_prev = None
        self.dx_prev = None
        self.t_prev = None


@dataclass(frozen=True)
class FilterChannelState:
    """Snapshot of one channel of a FilterBank."""
    value: Optional[float]
    derivative: Optional[float]
    timestamp: Optional[float]
    freq: float


class FilterBank:
    """
    One Euro filter per feature channel, stored as flat arrays.

    Channel i behaves like an independent OneEuroFilter, plus a zero policy:
    an input of exactly 0.0 means the point was not detected this frame, so
    the channel is reset and its output forced to 0.0.
    """

    def __init__(self, size: int = FEATURE_LENGTH, freq: float = 30.0,
                 min_cutoff: float = 1.0, beta: float = 0.05, d_cutoff: float = 1.0):
        self.size = size
        self.initial_freq = freq
        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff

        # NaN marks "no history" for a channel
        self._x = np.full(size, np.nan)
        self._dx = np.full(size, np.nan)
        self._t = np.full(size, np.nan)
        self._freq = np.full(size, float(freq))

    @classmethod
    def from_config(cls, cfg: FilterConfig, size: int = FEATURE_LENGTH) -> "FilterBank":
        return cls(size=size, freq=cfg.freq, min_cutoff=cfg.min_cutoff,
                   beta=cfg.beta, d_cutoff=cfg.d_cutoff)

    def smooth(self, vector: np.ndarray, timestamp: Optional[float] = None) -> np.ndarray:
        """
        Smooth a full feature vector.

        Args:
            vector: Raw feature vector of length size
            timestamp: Frame time in seconds (defaults to time.monotonic())

        Returns:
            Smoothed float32 vector of the same length
        """
        values = np.asarray(vector, dtype=np.float64)
        if values.ndim != 1 or values.shape[0] != self.size:
            raise FeatureLengthError(self.size, values.shape[0] if values.ndim == 1 else values.size)
        if timestamp is None:
            timestamp = time.monotonic()

        has_prev = ~np.isnan(self._x)
        dt = timestamp - self._t
        with np.errstate(invalid="ignore"):
            update = ~np.isnan(dt) & (dt > 0)
        self._freq[update] = 1.0 / dt[update]
        self._t[:] = timestamp

        freq = self._freq
        dx = np.where(has_prev, (values - self._x) * freq, 0.0)
        alpha_d = smoothing_factor(freq, self.d_cutoff)
        dx_hat = np.where(has_prev, alpha_d * dx + (1 - alpha_d) * self._dx, dx)

        cutoff = self.min_cutoff + self.beta * np.abs(dx_hat)
        alpha = smoothing_factor(freq, cutoff)
        x_hat = np.where(has_prev, alpha * values + (1 - alpha) * self._x, values)

        self._x = x_hat
        self._dx = dx_hat

        missing = values == 0.0
        if missing.any():
            self._reset_channels(missing)
            x_hat = np.where(missing, 0.0, x_hat)

        return x_hat.astype(np.float32)

    def _reset_channels(self, mask: np.ndarray) -> None:
        self._x[mask] = np.nan
        self._dx[mask] = np.nan
        self._t[mask] = np.nan

    def reset(self) -> None:
        """Reset every channel."""
        self._reset_channels(np.ones(self.size, dtype=bool))
        logger.debug(f"Filter bank reset ({self.size} channels)")

    def channel(self, index: int) -> FilterChannelState:
        """Return a snapshot of one channel's state."""
        def _opt(value: float) -> Optional[float]:
            return None if np.isnan(value) else float(value)

        return FilterChannelState(
            value=_opt(self._x[index]),
            derivative=_opt(self._dx[index]),
            timestamp=_opt(self._t[index]),
            freq=float(self._freq[index]),
        )
