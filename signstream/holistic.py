"""
Keypoint detection using MediaPipe Holistic.
"""
import cv2
import mediapipe as mp
import numpy as np
from typing import List, Optional

from .config import DetectorConfig
from .errors import DetectorError
from .types import DetectionResult, Landmark


def _to_landmarks(group, with_visibility: bool = False) -> Optional[List[Optional[Landmark]]]:
    if group is None:
        return None
    return [
        Landmark(lm.x, lm.y, lm.z, lm.visibility if with_visibility else None)
        for lm in group.landmark
    ]


class HolisticDetector:
    """Pose, face and hand tracker using MediaPipe Holistic."""

    def __init__(self, model_complexity: int = 0, min_detection_conf: float = 0.5,
                 min_tracking_conf: float = 0.5):
        """
        Store detector settings; the model is created by initialize().

        Args:
            model_complexity: Holistic pose model complexity (0, 1 or 2)
            min_detection_conf: Minimum confidence for detection
            min_tracking_conf: Minimum confidence for tracking
        """
        self.model_complexity = model_complexity
        self.min_detection_conf = min_detection_conf
        self.min_tracking_conf = min_tracking_conf
        self.mp_holistic = mp.solutions.holistic
        self.mp_drawing = mp.solutions.drawing_utils
        self.holistic = None
        self.last_results = None

    @classmethod
    def from_config(cls, cfg: DetectorConfig) -> "HolisticDetector":
        return cls(
            model_complexity=cfg.model_complexity,
            min_detection_conf=cfg.min_detection_confidence,
            min_tracking_conf=cfg.min_tracking_confidence,
        )

    @property
    def ready(self) -> bool:
        return self.holistic is not None

    def initialize(self) -> None:
        """Create the Holistic graph."""
        if self.ready:
            return
        try:
            self.holistic = self.mp_holistic.Holistic(
                static_image_mode=False,
                model_complexity=self.model_complexity,
                smooth_landmarks=True,
                min_detection_confidence=self.min_detection_conf,
                min_tracking_confidence=self.min_tracking_conf
            )
        except Exception as e:
            raise DetectorError(f"Failed to create MediaPipe Holistic: {e}") from e

    def detect(self, frame_bgr: np.ndarray) -> Optional[DetectionResult]:
        """
        Process a frame and return its keypoint groups.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            DetectionResult, or None if the frame is empty or nothing was found
        """
        if self.holistic is None or frame_bgr is None or frame_bgr.size == 0:
            return None

        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.holistic.process(frame_rgb)
        self.last_results = results

        detection = DetectionResult(
            pose=_to_landmarks(results.pose_landmarks, with_visibility=True),
            face=_to_landmarks(results.face_landmarks),
            left_hand=_to_landmarks(results.left_hand_landmarks),
            right_hand=_to_landmarks(results.right_hand_landmarks),
        )
        if not any((detection.pose, detection.face, detection.has_hands)):
            return None
        return detection

    def draw_landmarks(self, frame: np.ndarray) -> np.ndarray:
        """
        Draw the last detected hands and pose on the frame.

        Args:
            frame: Input frame

        Returns:
            Frame with landmarks drawn
        """
        results = self.last_results
        if results is None:
            return frame

        for hand, color in ((results.left_hand_landmarks, (129, 185, 16)),
                            (results.right_hand_landmarks, (233, 165, 14))):
            if hand is not None:
                self.mp_drawing.draw_landmarks(
                    frame, hand, self.mp_holistic.HAND_CONNECTIONS,
                    self.mp_drawing.DrawingSpec(color=color, thickness=1, circle_radius=2),
                    self.mp_drawing.DrawingSpec(color=(255, 255, 255), thickness=2)
                )
        if results.pose_landmarks is not None:
            self.mp_drawing.draw_landmarks(
                frame, results.pose_landmarks, self.mp_holistic.POSE_CONNECTIONS,
                self.mp_drawing.DrawingSpec(color=(200, 200, 200), thickness=1, circle_radius=1),
                self.mp_drawing.DrawingSpec(color=(120, 120, 120), thickness=1)
            )
        return frame

    def annotate(self, frame: np.ndarray, flip: bool = False, draw: bool = True) -> np.ndarray:
        """
        Prepare a camera frame for display.

        Landmarks are drawn in the coordinates of the unflipped frame, so the
        mirror flip for the front camera is applied to the annotated image.

        Args:
            frame: Raw camera frame, as passed to detect()
            flip: Mirror the result horizontally (front camera preview)
            draw: Draw the last detected landmarks

        Returns:
            Frame ready for display
        """
        if draw:
            frame = self.draw_landmarks(frame)
        if flip:
            frame = cv2.flip(frame, 1)
        return frame

    def close(self) -> None:
        if self.holistic is not None:
            self.holistic.close()
            self.holistic = None
