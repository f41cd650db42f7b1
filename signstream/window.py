"""
Fixed-capacity sliding window of smoothed feature vectors.
"""
from collections import deque
from typing import List

import numpy as np

from .features import FEATURE_LENGTH, check_length


class TemporalWindow:
    """
    FIFO of the most recent feature vectors, oldest first.

    Pushing past capacity evicts the oldest vector, so the window always
    holds the last `capacity` frames in arrival order.
    """

    def __init__(self, capacity: int = 30, feature_length: int = FEATURE_LENGTH):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.feature_length = feature_length
        self._frames: deque[np.ndarray] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, vector: np.ndarray) -> None:
        """Append a vector, evicting the oldest one when full."""
        vector = np.asarray(vector, dtype=np.float32)
        check_length(vector, self.feature_length)
        self._frames.append(vector)

    def is_full(self) -> bool:
        return len(self._frames) == self.capacity

    def snapshot(self) -> List[np.ndarray]:
        """Return the stored vectors in chronological order."""
        return list(self._frames)

    def as_batch(self) -> np.ndarray:
        """Stack the window into the (1, capacity, feature_length) classifier input."""
        if not self.is_full():
            raise ValueError(f"Window holds {len(self)} of {self.capacity} frames")
        return np.stack(self._frames)[np.newaxis, ...]

    def clear(self) -> None:
        self._frames.clear()
