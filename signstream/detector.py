"""
Bounded-wait wrapper around the keypoint detector collaborator.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional

import numpy as np

from .errors import DetectorError, DetectorTimeout
from .features import FeatureVectorBuilder
from .types import DetectionResult, DetectorProto, MirrorFlags

logger = logging.getLogger(__name__)


class BoundedDetector:
    """
    Runs detector calls on a single worker thread with a timeout.

    At most one call is in flight. While a timed-out call is still running
    on the worker, new requests return None (busy) instead of queueing.
    """

    def __init__(self, detector: DetectorProto, timeout_ms: int = 1500):
        self.detector = detector
        self.timeout_s = timeout_ms / 1000.0
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="detector")
        self._pending: Optional[Future] = None

    @property
    def ready(self) -> bool:
        return self.detector.ready

    @property
    def busy(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def initialize(self) -> None:
        """Initialize the wrapped detector."""
        try:
            self.detector.initialize()
        except DetectorError:
            raise
        except Exception as e:
            raise DetectorError(f"Detector initialization failed: {e}") from e
        logger.info("✅ Keypoint detector initialized")

    def detect(self, frame: np.ndarray) -> Optional[DetectionResult]:
        """
        Detect keypoints with a bounded wait.

        Returns:
            DetectionResult, or None if the detector is busy or not ready

        Raises:
            DetectorTimeout: if the call did not finish within the timeout
            DetectorError: if the detector raised
        """
        if not self.detector.ready or self.busy:
            return None

        try:
            future = self._executor.submit(self.detector.detect, frame)
        except RuntimeError as e:
            raise DetectorError(f"Detector is closed: {e}") from e

        self._pending = future
        try:
            result = future.result(timeout=self.timeout_s)
        except FutureTimeout as e:
            raise DetectorTimeout(f"Detector did not respond within {self.timeout_s:.2f}s") from e
        except DetectorError:
            self._pending = None
            raise
        except Exception as e:
            self._pending = None
            raise DetectorError(f"Detector failed: {e}") from e

        self._pending = None
        return result

    def extract_feature_vector(self, frame: np.ndarray, mirror: MirrorFlags,
                               builder: FeatureVectorBuilder) -> Optional[np.ndarray]:
        """Detect keypoints and encode them, or None if nothing was detected."""
        detection = self.detect(frame)
        if detection is None:
            return None
        return builder.build(detection, mirror)

    def close(self) -> None:
        """Stop the worker thread without waiting for a stuck call."""
        self._executor.shutdown(wait=False)
