"""
Gesture pipeline: feature vector → filter bank → window → classifier →
stability gate, owned by a single frame-processing call site.
"""
import logging
import threading
import time
from typing import Optional

import numpy as np

from .classifier import ClassificationAdapter
from .config import Cfg
from .features import FeatureVectorBuilder
from .filters import FilterBank
from .stability import StabilityGate
from .types import ClassifierProto, DetectionResult, GestureEvent, MirrorFlags
from .window import TemporalWindow

logger = logging.getLogger(__name__)


class GesturePipeline:
    """
    Per-session pipeline state.

    Every public method holds the same lock, so a clear or reset issued from
    outside the frame loop never interleaves with a half-processed frame.
    """

    def __init__(self, builder: FeatureVectorBuilder, filters: FilterBank,
                 window: TemporalWindow, adapter: ClassificationAdapter,
                 gate: StabilityGate, mirror: Optional[MirrorFlags] = None,
                 require_hands: bool = True):
        """Initialize the pipeline from its components."""
        if filters.size != builder.length or window.feature_length != builder.length:
            raise ValueError("Filter bank, window and builder disagree on feature length")
        self.builder = builder
        self.filters = filters
        self.window = window
        self.adapter = adapter
        self.gate = gate
        self.mirror = mirror or MirrorFlags()
        self.require_hands = require_hands

        self._lock = threading.RLock()
        self._last_detection: Optional[DetectionResult] = None

    @classmethod
    def from_config(cls, cfg: Cfg, classifier: ClassifierProto) -> "GesturePipeline":
        """Build a pipeline from configuration and a classifier collaborator."""
        builder = FeatureVectorBuilder.from_config(cfg.features)
        return cls(
            builder=builder,
            filters=FilterBank.from_config(cfg.filter, size=builder.length),
            window=TemporalWindow(cfg.classifier.sequence_length, builder.length),
            adapter=ClassificationAdapter(classifier, cfg.classifier.labels),
            gate=StabilityGate.from_config(cfg.stability),
            mirror=MirrorFlags.for_facing(cfg.camera.facing, cfg.features.mirror_hands),
            require_hands=cfg.pipeline.require_hands,
        )

    def process_detection(self, detection: Optional[DetectionResult],
                          timestamp: Optional[float] = None) -> Optional[GestureEvent]:
        """
        Run one frame through the whole pipeline.

        Args:
            detection: Keypoints for the frame (None if nothing was detected)
            timestamp: Frame time in seconds (defaults to time.monotonic())

        Returns:
            GestureEvent if a gesture was recognized on this frame

        Raises:
            ClassifierError: if the classifier call failed
        """
        if timestamp is None:
            timestamp = time.monotonic()

        if self.require_hands and (detection is None or not detection.has_hands):
            return None

        with self._lock:
            vector = self.builder.build(detection, self.mirror)
            self.push_frame(vector, timestamp, detection)
            return self.predict(timestamp)

    def push_frame(self, vector: np.ndarray, timestamp: Optional[float] = None,
                   detection: Optional[DetectionResult] = None) -> None:
        """
        Smooth a raw feature vector and append it to the window.

        Args:
            vector: Raw feature vector from the builder
            timestamp: Frame time in seconds
            detection: Raw keypoints behind the vector, kept for sanity checks
        """
        with self._lock:
            smoothed = self.filters.smooth(vector, timestamp)
            self.window.push(smoothed)
            self._last_detection = detection

    def predict(self, now: Optional[float] = None) -> Optional[GestureEvent]:
        """
        Classify the current window and pass the result through the gate.

        Returns None while the window is filling or the classifier is not
        ready; those frames are not counted by the gate.

        Raises:
            ClassifierError: if the classifier call failed
        """
        with self._lock:
            if not self.window.is_full() or not self.adapter.classifier.ready:
                return None
            result = self.adapter.predict(self.window)
            return self.gate.observe(result, now, self._last_detection)

    def clear_buffer(self) -> None:
        """Drop all temporal memory: window, filter history and gate state."""
        with self._lock:
            self.window.clear()
            self.filters.reset()
            self.gate.reset()
            self._last_detection = None
        logger.info("Pipeline buffer cleared")

    def reset(self, mirror: Optional[MirrorFlags] = None) -> None:
        """
        Reset for a new input source.

        Args:
            mirror: Mirror flags for the new source (kept if None)
        """
        with self._lock:
            if mirror is not None:
                self.mirror = mirror
            self.window.clear()
            self.filters.reset()
            self.gate.reset()
            self._last_detection = None
        logger.info(f"Pipeline reset (mirror={self.mirror})")
