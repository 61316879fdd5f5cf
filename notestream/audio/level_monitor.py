"""Input level monitoring.

The level of a frame is computed the way a browser analyser node reports
byte frequency data: a windowed FFT over the newest ``fft_size`` samples,
magnitudes smoothed across frames, converted to decibels and mapped from
[min_decibels, max_decibels] onto [0, 1]. The level is the mean over all
frequency bins.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 20
DEFAULT_FFT_SIZE = 256
DEFAULT_SMOOTHING = 0.8
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0


def pcm_to_float(pcm: bytes, channels: int = 1) -> np.ndarray:
    """Convert 16-bit PCM bytes to mono float samples in [-1, 1]."""
    samples = np.frombuffer(pcm, dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        usable = len(samples) - len(samples) % channels
        samples = samples[:usable].reshape(-1, channels).mean(axis=1)
    return samples


class LevelMonitor:
    """Samples the input level of each frame and keeps a short history."""

    def __init__(self,
                 history_size: int = DEFAULT_HISTORY_SIZE,
                 fft_size: int = DEFAULT_FFT_SIZE,
                 smoothing: float = DEFAULT_SMOOTHING,
                 channels: int = 1):
        self.history_size = history_size
        self.fft_size = fft_size
        self.smoothing = smoothing
        self.channels = channels

        self.history: Deque[float] = deque(maxlen=history_size)
        self.current_level = 0.0
        self.is_active = True

        self._window = np.blackman(fft_size)
        self._smoothed: Optional[np.ndarray] = None

    def compute_level(self, pcm: bytes) -> float:
        """Normalized level of one frame, in [0, 1]."""
        samples = pcm_to_float(pcm, self.channels)
        if len(samples) >= self.fft_size:
            block = samples[-self.fft_size:]
        else:
            block = np.pad(samples, (self.fft_size - len(samples), 0))

        spectrum = np.abs(np.fft.rfft(block * self._window))[:self.fft_size // 2] / self.fft_size
        if self._smoothed is None:
            self._smoothed = (1.0 - self.smoothing) * spectrum
        else:
            self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * spectrum

        decibels = 20.0 * np.log10(np.maximum(self._smoothed, 1e-12))
        scaled = (decibels - MIN_DECIBELS) / (MAX_DECIBELS - MIN_DECIBELS)
        return float(np.clip(scaled, 0.0, 1.0).mean())

    def sample(self, pcm: bytes) -> float:
        """Take one level sample from a frame and record it."""
        if not self.is_active:
            return 0.0

        level = self.compute_level(pcm)
        self.history.append(level)
        self.current_level = level
        return level

    def recent(self, count: int) -> List[float]:
        """Newest count samples, oldest first."""
        if count <= 0:
            return []
        return list(self.history)[-count:]

    def reset(self) -> None:
        self.history.clear()
        self.current_level = 0.0
        self._smoothed = None
        self.is_active = True

    def stop(self) -> None:
        """End sampling; the audio handle is gone."""
        if self.is_active:
            logger.debug("Level monitoring stopped")
        self.is_active = False
        self.current_level = 0.0
