"""
Gesture sink that composes recognized signs into words.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from .types import GestureEvent

logger = logging.getLogger(__name__)


@dataclass
class TranscriptEntry:
    """A committed word."""
    text: str
    timestamp: datetime


class SignTranscript:
    """
    Builds the current word from gesture events.

    A sign is not appended when the word already ends with it. Committing
    or discarding the word clears pipeline memory through `clear_pipeline`
    and ignores events for a short pause afterwards.
    """

    def __init__(self, clear_pipeline: Optional[Callable[[], None]] = None,
                 pause_after_commit_ms: int = 400,
                 clock: Callable[[], float] = time.monotonic):
        self.clear_pipeline = clear_pipeline
        self.pause_after_commit_ms = pause_after_commit_ms
        self.clock = clock

        self.current_word = ""
        self.current_sign: Optional[str] = None
        self.history: List[TranscriptEntry] = []
        self.paused_until: float = 0.0

    @property
    def paused(self) -> bool:
        return self.clock() < self.paused_until

    async def on_gesture(self, event: GestureEvent) -> None:
        """Append a recognized sign to the current word."""
        if self.paused or not event.label:
            return
        if not self.current_word.endswith(event.label):
            self.current_word += event.label
        self.current_sign = event.label

    def commit(self) -> Optional[TranscriptEntry]:
        """Move the current word to history; returns the entry or None if empty."""
        text = self.current_word.strip()
        if not text:
            return None
        entry = TranscriptEntry(text=text, timestamp=datetime.now())
        self.history.append(entry)
        logger.info(f"📝 Committed: {text}")
        self._restart()
        return entry

    def discard(self) -> None:
        """Drop the current word."""
        self._restart()

    def clear_history(self) -> None:
        self.history.clear()

    def _restart(self) -> None:
        self.current_word = ""
        self.current_sign = None
        if self.clear_pipeline is not None:
            self.clear_pipeline()
        self.paused_until = self.clock() + self.pause_after_commit_ms / 1000.0
