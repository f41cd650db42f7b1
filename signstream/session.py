"""
Per-frame processing: detection, pipeline update and error recovery.
"""
import logging
import time
from typing import Literal, Optional

import numpy as np

from .detector import BoundedDetector
from .errors import DetectorError, DetectorTimeout
from .pipeline import GesturePipeline
from .types import DetectionResult, GestureEvent, MirrorFlags

logger = logging.getLogger(__name__)


class RecognitionSession:
    """
    Drives one pipeline from a stream of camera frames.

    Detector timeouts and failures skip the frame without touching pipeline
    state. Classifier failures propagate so the caller can tell them apart
    from "no gesture".
    """

    def __init__(self, detector: BoundedDetector, pipeline: GesturePipeline,
                 facing: Literal["user", "environment"] = "user", mirror_hands: bool = False):
        self.detector = detector
        self.pipeline = pipeline
        self.facing = facing
        self.mirror_hands = mirror_hands
        self.last_detection: Optional[DetectionResult] = None
        self.pipeline.reset(MirrorFlags.for_facing(facing, mirror_hands))

    def tick(self, frame: np.ndarray, now: Optional[float] = None) -> Optional[GestureEvent]:
        """
        Process one frame.

        Args:
            frame: Camera frame (BGR)
            now: Frame timestamp in seconds (defaults to time.monotonic())

        Returns:
            GestureEvent if a gesture was recognized on this frame

        Raises:
            ClassifierError: if the classifier call failed
        """
        if now is None:
            now = time.monotonic()

        try:
            detection = self.detector.detect(frame)
        except DetectorTimeout as e:
            logger.warning(f"Skipping frame: {e}")
            return None
        except DetectorError as e:
            logger.error(f"Skipping frame after detector failure: {e}")
            return None

        self.last_detection = detection
        if detection is None:
            return None
        return self.pipeline.process_detection(detection, now)

    def switch_camera(self, facing: Optional[Literal["user", "environment"]] = None) -> str:
        """
        Switch between front and rear sensors and reset all pipeline memory.

        Args:
            facing: Target orientation; toggles the current one if None

        Returns:
            The new facing mode
        """
        if facing is None:
            facing = "environment" if self.facing == "user" else "user"
        self.facing = facing
        self.last_detection = None
        self.pipeline.reset(MirrorFlags.for_facing(facing, self.mirror_hands))
        logger.info(f"📷 Camera switched to {facing}")
        return facing

    def close(self) -> None:
        self.detector.close()
