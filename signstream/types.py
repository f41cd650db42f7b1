"""
Type definitions for the gesture recognition pipeline.
"""
import enum
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Protocol, runtime_checkable

import numpy as np


# Sentinel label for "no detection / below threshold"
NONE_LABEL = "none"


@dataclass
class Landmark:
    """A single keypoint in normalized [0..1] image coordinates."""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None


@dataclass
class DetectionResult:
    """Keypoint groups returned by the detector for one frame."""
    pose: Optional[List[Optional[Landmark]]] = None
    face: Optional[List[Optional[Landmark]]] = None
    left_hand: Optional[List[Optional[Landmark]]] = None
    right_hand: Optional[List[Optional[Landmark]]] = None

    @property
    def has_hands(self) -> bool:
        """True if at least one hand group was detected."""
        return bool(self.left_hand) or bool(self.right_hand)

    def hands(self) -> List[List[Optional[Landmark]]]:
        """Return the hand groups that are present."""
        return [hand for hand in (self.left_hand, self.right_hand) if hand]


@dataclass
class MirrorFlags:
    """Which keypoint groups get their horizontal axis flipped."""
    pose: bool = False
    face: bool = False
    left_hand: bool = False
    right_hand: bool = False

    @classmethod
    def for_facing(cls, facing: Literal["user", "environment"],
                   mirror_hands: bool = False) -> "MirrorFlags":
        """
        Build mirror flags for a capture orientation.

        The front ("user") sensor delivers a mirrored image, so body groups
        are flipped back. Hands follow the per-hand flag on either sensor.
        """
        front = facing == "user"
        return cls(pose=front, face=front, left_hand=mirror_hands, right_hand=mirror_hands)


@dataclass
class ClassificationResult:
    """Best label and confidence for one classified window."""
    label: str
    confidence: float
    probabilities: Optional[np.ndarray] = field(default=None, repr=False)


@dataclass
class GestureEvent:
    """A debounced gesture emitted by the stability gate."""
    label: str
    confidence: float
    timestamp: float


class GateState(enum.Enum):
    """States of the stability gate."""
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    EMITTED = "emitted"


@runtime_checkable
class DetectorProto(Protocol):
    """Keypoint detector collaborator."""

    @property
    def ready(self) -> bool:
        ...

    def initialize(self) -> None:
        """Load the detector. Raises DetectorError on failure."""
        ...

    def detect(self, frame: np.ndarray) -> Optional[DetectionResult]:
        """Return the keypoints for a frame, or None if nothing usable."""
        ...


@runtime_checkable
class ClassifierProto(Protocol):
    """Sequence classifier collaborator."""

    @property
    def ready(self) -> bool:
        ...

    def initialize(self, model_location: str) -> None:
        """Load the model. Raises ModelLoadError on failure."""
        ...

    def predict(self, batch: np.ndarray) -> np.ndarray:
        """Return a probability distribution over the class labels."""
        ...


@runtime_checkable
class GestureSinkProto(Protocol):
    """Consumer of emitted gesture events."""

    async def on_gesture(self, event: GestureEvent) -> None:
        """Handle a recognized gesture."""
        ...
