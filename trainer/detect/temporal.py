from __future__ import annotations
import cv2
import numpy as np


class TemporalDiffer:
    """
    Keeps the previous frame's red mask and returns only the pixels that turned
    red since then. A light that stays on is "new" for exactly one frame.
    """

    def __init__(self):
        self._previous: np.ndarray | None = None

    @property
    def has_history(self) -> bool:
        return self._previous is not None

    def reset(self) -> None:
        self._previous = None

    def diff(self, current: np.ndarray | None) -> np.ndarray | None:
        """
        Returns max(0, current - previous) per pixel, or None when there is
        nothing to compare against yet. `current` always becomes the history.
        """
        if current is None:
            return None

        previous = self._previous
        self._previous = current
        if previous is None or previous.shape != current.shape:
            return None
        return cv2.subtract(current, previous)
