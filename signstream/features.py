"""
Feature vector builder: maps a detection result onto the fixed-layout
vector consumed by the filter bank and the sequence classifier.
"""
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import FeaturesConfig
from .errors import FeatureLengthError
from .landmarks import WRIST
from .types import DetectionResult, Landmark, MirrorFlags


@dataclass(frozen=True)
class GroupLayout:
    """Reserved slot range of one keypoint group inside the feature vector."""
    name: str
    points: int
    dims: int  # values per point, including visibility where present
    offset: int
    normalize: bool

    @property
    def width(self) -> int:
        return self.points * self.dims

    @property
    def end(self) -> int:
        return self.offset + self.width


def _build_layout() -> Tuple[GroupLayout, ...]:
    groups = []
    offset = 0
    for name, points, dims, normalize in (
        ("pose", 33, 4, False),
        ("face", 468, 3, False),
        ("left_hand", 21, 3, True),
        ("right_hand", 21, 3, True),
    ):
        groups.append(GroupLayout(name, points, dims, offset, normalize))
        offset += points * dims
    return tuple(groups)


GROUP_LAYOUT = _build_layout()
FEATURE_LENGTH = GROUP_LAYOUT[-1].end  # 1662

# Hand sizes below this are treated as degenerate and left un-normalized
_MIN_SCALE_DISTANCE = 1e-6


def check_length(vector: np.ndarray, expected: int = FEATURE_LENGTH) -> None:
    """Raise FeatureLengthError unless vector is 1-D with the expected length."""
    if vector.ndim != 1 or vector.shape[0] != expected:
        actual = vector.shape[0] if vector.ndim == 1 else int(vector.size)
        raise FeatureLengthError(expected, actual)


def _clean(value: Optional[float]) -> float:
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


class FeatureVectorBuilder:
    """
    Encodes keypoint groups into a fixed-length float32 vector.

    Group order is pose, face, left hand, right hand. Missing groups and
    missing points leave zeros in their reserved slots, so offsets never
    shift. Hand groups are re-centered on the wrist and scaled so the
    wrist-to-reference distance equals a fixed target.
    """

    def __init__(self, normalize_hands: bool = True, scale_ref: int = 9,
                 target_distance: float = 0.1):
        self.normalize_hands = normalize_hands
        self.scale_ref = scale_ref
        self.target_distance = target_distance

    @classmethod
    def from_config(cls, cfg: FeaturesConfig) -> "FeatureVectorBuilder":
        return cls(
            normalize_hands=cfg.normalize_hands,
            scale_ref=cfg.hand_scale_ref,
            target_distance=cfg.hand_target_distance,
        )

    @property
    def length(self) -> int:
        return FEATURE_LENGTH

    def build(self, detection: Optional[DetectionResult],
              mirror: Optional[MirrorFlags] = None) -> np.ndarray:
        """
        Build the feature vector for one frame.

        Args:
            detection: Keypoints for the frame (None means nothing detected)
            mirror: Per-group horizontal flip flags

        Returns:
            float32 array of length FEATURE_LENGTH
        """
        vector = np.zeros(FEATURE_LENGTH, dtype=np.float32)
        if detection is None:
            return vector
        mirror = mirror or MirrorFlags()

        for group in GROUP_LAYOUT:
            landmarks = getattr(detection, group.name)
            if not landmarks:
                continue
            values, present = self._group_values(landmarks, group)
            if group.normalize and self.normalize_hands:
                values = self._normalize(values, present)
            if getattr(mirror, group.name):
                values[present, 0] = 1.0 - values[present, 0]
            values[~present] = 0.0
            vector[group.offset:group.end] = np.nan_to_num(
                values, nan=0.0, posinf=0.0, neginf=0.0).ravel()

        return vector

    def _group_values(self, landmarks: Sequence[Optional[Landmark]],
                      group: GroupLayout) -> Tuple[np.ndarray, np.ndarray]:
        values = np.zeros((group.points, group.dims), dtype=np.float64)
        present = np.zeros(group.points, dtype=bool)
        for i in range(min(group.points, len(landmarks))):
            lm = landmarks[i]
            if lm is None:
                continue
            row: List[float] = [_clean(lm.x), _clean(lm.y), _clean(lm.z)]
            if group.dims == 4:
                row.append(_clean(lm.visibility))
            values[i] = row
            present[i] = True
        return values, present

    def _normalize(self, values: np.ndarray, present: np.ndarray) -> np.ndarray:
        """Re-center on the wrist and rescale to the target hand size."""
        if not (present[WRIST] and self.scale_ref < len(present) and present[self.scale_ref]):
            return values

        origin = values[WRIST, :3].copy()
        distance = float(np.linalg.norm(values[self.scale_ref, :2] - origin[:2]))
        if distance < _MIN_SCALE_DISTANCE:
            return values

        scale = self.target_distance / distance
        out = values.copy()
        out[:, :3] = (values[:, :3] - origin) * scale
        out[:, :2] += 0.5
        return out
