from __future__ import annotations
import sys
import cv2
import numpy as np
from typing import Tuple, Optional

from trainer.log import get_logger

log = get_logger("video")

# consecutive failed reads before we complain
READ_FAIL_WARN = 30


def to_processing(frame: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """Down-scale a camera frame to the processing size (w, h), dropping alpha."""
    if frame.ndim == 3 and frame.shape[2] == 4:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    w, h = size
    if frame.shape[1] == w and frame.shape[0] == h:
        return frame
    return cv2.resize(frame, (w, h), interpolation=cv2.INTER_AREA)


class Camera:
    """
    Webcam source that hands out processing-size frames.

    `latest` keeps the last good processing frame so the calibration timer
    can look at the same picture the hit pipeline saw without a second read.
    """

    def __init__(self, index: int, capture_size: Tuple[int, int],
                 proc_size: Tuple[int, int], fps: int = 60):
        self.index = index
        self.capture_size = capture_size
        self.proc_size = proc_size
        self.fps = fps
        self.cap: Optional[cv2.VideoCapture] = None
        self.latest: Optional[np.ndarray] = None
        self.misses = 0

    def open(self) -> bool:
        api = cv2.CAP_DSHOW if sys.platform.startswith("win") else cv2.CAP_ANY
        cap = cv2.VideoCapture(self.index, api)
        if not cap.isOpened():
            log.error("could not open camera %d", self.index)
            cap.release()
            return False
        cw, ch = self.capture_size
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, cw)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, ch)
        cap.set(cv2.CAP_PROP_FPS, self.fps)
        self.cap = cap
        log.info("camera %d open at %dx%d, processing at %dx%d", self.index,
                 int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)), int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                 *self.proc_size)
        return True

    def grab(self) -> Optional[np.ndarray]:
        """Next processing frame, or None when the device gave nothing."""
        if self.cap is None:
            return None
        ok, raw = self.cap.read()
        if not ok or raw is None:
            self.misses += 1
            if self.misses == READ_FAIL_WARN:
                log.warning("camera %d: %d reads in a row failed", self.index, self.misses)
            return None
        self.misses = 0
        self.latest = to_processing(raw, self.proc_size)
        return self.latest

    def close(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        self.latest = None
