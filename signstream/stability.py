"""
Stability gate that converts frame-level classifications into discrete,
debounced gesture events.
"""
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .config import StabilityConfig
from .landmarks import FINGER_JOINTS, fingers_extended
from .types import ClassificationResult, DetectionResult, GateState, GestureEvent, NONE_LABEL

logger = logging.getLogger(__name__)


@dataclass
class FingerSanityCheck:
    """
    Rejects a label unless the required fingers are extended.

    The classifier confuses visually similar hand shapes; this runs on the
    raw keypoints and vetoes labels whose finger pose cannot match.
    """
    label: str
    fingers: Sequence[str]

    def __post_init__(self):
        unknown = [f for f in self.fingers if f not in FINGER_JOINTS]
        if unknown:
            raise ValueError(f"Unknown fingers in sanity check for {self.label!r}: {unknown}")

    def accepts(self, detection: Optional[DetectionResult]) -> bool:
        """
        True if some detected hand has every required finger extended.

        With no hand keypoints to inspect the check cannot decide and passes.
        """
        if detection is None or not detection.has_hands:
            return True
        required = set(self.fingers)
        return any(required <= set(fingers_extended(hand)) for hand in detection.hands())


class StabilityGate:
    """
    Debounce state machine over per-frame (label, confidence) observations.

    Features:
    - Confidence threshold: low-confidence frames count as no detection
    - Consistency: the last K observations must agree on one label
    - Cooldown: the same label is not re-emitted within cooldown_ms unless a
      different label was observed in between
    - Optional finger sanity checks on the raw keypoints
    """

    def __init__(self, confidence_threshold: float = 0.85, consistency_frames: int = 3,
                 cooldown_ms: int = 2000, sanity_checks: Iterable[FingerSanityCheck] = ()):
        if consistency_frames < 1:
            raise ValueError("consistency_frames must be at least 1")
        self.confidence_threshold = confidence_threshold
        self.consistency_frames = consistency_frames
        self.cooldown_ms = cooldown_ms
        self.sanity_checks = {check.label: check for check in sanity_checks}

        self.history: deque[str] = deque(maxlen=consistency_frames)
        self.last_emitted_label: Optional[str] = None
        self.last_emitted_time: Optional[float] = None
        self.changed_since_emit = False
        self._state = GateState.IDLE

    @classmethod
    def from_config(cls, cfg: StabilityConfig) -> "StabilityGate":
        checks = [FingerSanityCheck(c.label, list(c.fingers)) for c in cfg.sanity_checks]
        return cls(
            confidence_threshold=cfg.confidence_threshold,
            consistency_frames=cfg.consistency_frames,
            cooldown_ms=cfg.cooldown_ms,
            sanity_checks=checks,
        )

    @property
    def state(self) -> GateState:
        return self._state

    def observe(self, result: Optional[ClassificationResult], now: Optional[float] = None,
                detection: Optional[DetectionResult] = None) -> Optional[GestureEvent]:
        """
        Feed one frame's classification and return an event if one triggers.

        Args:
            result: Classification for this frame (None means no detection)
            now: Current timestamp in seconds (defaults to time.monotonic())
            detection: Raw keypoints for the frame, used by sanity checks

        Returns:
            GestureEvent if a gesture triggered, None otherwise
        """
        if now is None:
            now = time.monotonic()

        label = self._effective_label(result, detection)
        self.history.append(label)
        if label != NONE_LABEL and label != self.last_emitted_label:
            self.changed_since_emit = True

        candidate = self._consistent_label()
        if candidate is None:
            self._update_state()
            return None

        if self._in_cooldown(candidate, now):
            logger.debug(f"Suppressed repeat of {candidate!r} during cooldown")
            self._update_state()
            return None

        # Trigger: remember emission and require a fresh run of K frames
        self.last_emitted_label = candidate
        self.last_emitted_time = now
        self.changed_since_emit = False
        self.history.clear()
        self._state = GateState.EMITTED

        confidence = result.confidence if result is not None else 0.0
        logger.info(f"🤟 Gesture recognized: {candidate} ({confidence:.2f})")
        return GestureEvent(label=candidate, confidence=confidence, timestamp=now)

    def _effective_label(self, result: Optional[ClassificationResult],
                         detection: Optional[DetectionResult]) -> str:
        if result is None or result.confidence < self.confidence_threshold:
            return NONE_LABEL

        check = self.sanity_checks.get(result.label)
        if check is not None and not check.accepts(detection):
            logger.debug(f"Sanity check rejected {result.label!r}")
            return NONE_LABEL

        return result.label

    def _consistent_label(self) -> Optional[str]:
        if len(self.history) < self.consistency_frames:
            return None
        first = self.history[0]
        if first == NONE_LABEL or any(label != first for label in self.history):
            return None
        return first

    def _in_cooldown(self, label: str, now: float) -> bool:
        if label != self.last_emitted_label or self.last_emitted_time is None:
            return False
        if self.changed_since_emit:
            return False
        elapsed_ms = (now - self.last_emitted_time) * 1000
        return elapsed_ms < self.cooldown_ms

    def _update_state(self) -> None:
        if any(label != NONE_LABEL for label in self.history):
            self._state = GateState.ACCUMULATING
        elif self._state is GateState.ACCUMULATING:
            self._state = GateState.IDLE

    def recent_labels(self) -> List[str]:
        """Return the observations currently in the consistency buffer."""
        return list(self.history)

    def reset(self) -> None:
        """Clear observations and the emission record."""
        self.history.clear()
        self.last_emitted_label = None
        self.last_emitted_time = None
        self.changed_since_emit = False
        self._state = GateState.IDLE
