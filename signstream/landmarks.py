"""
Hand landmark indices and finger geometry helpers.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from .types import Landmark


WRIST = 0

# Finger name -> (tip index, PIP joint index) in the 21-point hand model
FINGER_JOINTS: Dict[str, Tuple[int, int]] = {
    "thumb": (4, 3),
    "index": (8, 6),
    "middle": (12, 10),
    "ring": (16, 14),
    "pinky": (20, 18),
}


def finger_extended(landmarks: Sequence[Optional[Landmark]], finger: str) -> bool:
    """
    Check whether a finger is extended.

    Non-thumb fingers count as extended when the tip is above the PIP joint
    in image coordinates (smaller y). The thumb compares x instead.

    Args:
        landmarks: List of 21 hand landmarks
        finger: One of "thumb", "index", "middle", "ring", "pinky"

    Returns:
        True if the finger is extended, False if curled or its points are missing
    """
    if finger not in FINGER_JOINTS:
        raise ValueError(f"Unknown finger: {finger!r}")

    tip_idx, pip_idx = FINGER_JOINTS[finger]
    if max(tip_idx, pip_idx) >= len(landmarks):
        return False
    tip, pip = landmarks[tip_idx], landmarks[pip_idx]
    if tip is None or pip is None:
        return False

    if finger == "thumb":
        return tip.x > pip.x
    return tip.y < pip.y  # inverted y-axis


def fingers_extended(landmarks: Sequence[Optional[Landmark]]) -> List[str]:
    """Return the names of all extended fingers."""
    return [name for name in FINGER_JOINTS if finger_extended(landmarks, name)]
