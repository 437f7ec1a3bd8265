from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple
import cv2
import numpy as np

from trainer import const

HSVRange = Tuple[Tuple[int, int, int], Tuple[int, int, int]]


@dataclass(frozen=True)
class RedThresholds:
    ranges: Tuple[HSVRange, ...] = (
        (const.LOW1, const.HIGH1),
        (const.LOW2, const.HIGH2),
    )
    red_green_min: int = const.RED_GREEN_MIN
    kernel_size: int = const.OPEN_KERNEL


class ColorSegmenter:
    """
    Turns one BGR (or BGRA) frame into a binary "bright red" mask (uint8 {0,255}).

    A pixel is kept when it falls in either red hue band AND its red channel
    beats its green channel by more than `red_green_min`. The result is opened
    with a square kernel to drop single-pixel noise. No state between calls.
    """

    def __init__(self, thresholds: RedThresholds | None = None):
        self.thresholds = thresholds or RedThresholds()
        k = self.thresholds.kernel_size
        self._kernel = np.ones((k, k), np.uint8) if k > 1 else None

    def _hsv_mask(self, frame_bgr: np.ndarray) -> np.ndarray:
        hsv = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2HSV)
        masks: List[np.ndarray] = [
            cv2.inRange(hsv, np.array(lo, np.uint8), np.array(hi, np.uint8))
            for lo, hi in self.thresholds.ranges
        ]
        mask = masks[0]
        for m in masks[1:]:
            mask = cv2.bitwise_or(mask, m)
        return mask

    def _red_green_mask(self, frame_bgr: np.ndarray) -> np.ndarray:
        _, g, r = cv2.split(frame_bgr)
        diff = cv2.subtract(r, g)  # saturates at 0
        _, mask = cv2.threshold(diff, self.thresholds.red_green_min, 255, cv2.THRESH_BINARY)
        return mask

    def segment(self, frame: np.ndarray | None) -> np.ndarray | None:
        """Returns the mask, or None for an empty frame."""
        if frame is None or frame.size == 0:
            return None
        if frame.ndim == 3 and frame.shape[2] == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
        elif frame.ndim == 2:
            # grayscale carries no colour; nothing can be red
            return np.zeros(frame.shape, dtype=np.uint8)

        mask = cv2.bitwise_and(self._hsv_mask(frame), self._red_green_mask(frame))
        if self._kernel is not None:
            mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, self._kernel, iterations=1)
        return mask

    __call__ = segment
