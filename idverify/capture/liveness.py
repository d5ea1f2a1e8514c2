"""Movement-based liveness."""

import logging
from collections import deque
from enum import Enum
from typing import Deque, List

from ..models.face import DetectedFace, MovementSample
from .thresholds import DEFAULT_THRESHOLDS, CaptureThresholds

logger = logging.getLogger(__name__)


class LivenessState(str, Enum):
    NOT_LIVE = "not_live"
    LIVE = "live"


class LivenessTracker:
    """Tracks the primary face position across frames.

    The subject counts as live once two consecutive samples are further apart
    (Manhattan distance) than ``movement_threshold``. The state only moves
    NOT_LIVE -> LIVE; ``reset`` is the single way back and belongs to retake.
    """

    def __init__(self, thresholds: CaptureThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds
        self._history: Deque[MovementSample] = deque(maxlen=thresholds.movement_history_length)
        self.state = LivenessState.NOT_LIVE

    @property
    def is_live(self) -> bool:
        return self.state is LivenessState.LIVE

    @property
    def history(self) -> List[MovementSample]:
        return list(self._history)

    def observe(self, face: DetectedFace) -> LivenessState:
        """Record the face position and update the liveness state."""
        sample = MovementSample(x=face.box.x, y=face.box.y)
        self._history.append(sample)

        if len(self._history) >= 2 and self.state is LivenessState.NOT_LIVE:
            movement = self._history[-1].distance_to(self._history[-2])
            if movement > self.thresholds.movement_threshold:
                self.state = LivenessState.LIVE
                logger.info(f"Liveness confirmed (movement {movement:.1f}px)")

        return self.state

    def reset(self) -> None:
        self._history.clear()
        self.state = LivenessState.NOT_LIVE
