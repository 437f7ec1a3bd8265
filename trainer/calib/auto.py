from __future__ import annotations
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from trainer import const
from trainer.api.errors import CalibrationError, ConfigError
from trainer.calib.homography import Calibration, Homography, HomographyCell, extremes_quad
from trainer.calib.squares import find_square_quads, to_gray
from trainer.calib.state import CalibrationState
from trainer.log import get_logger

log = get_logger("calib.auto")

MarkerDetector = Callable[[np.ndarray], List[np.ndarray]]


class ArucoMarkerDetector:
    """Returns one (4, 2) corner array per detected marker."""

    def __init__(self, dict_name: str = const.ARUCO_DICT):
        dict_id = getattr(cv2.aruco, dict_name, None)
        if dict_id is None:
            raise ConfigError(f"unknown ArUco dictionary {dict_name!r}")
        self.dictionary = cv2.aruco.getPredefinedDictionary(dict_id)
        self.params = cv2.aruco.DetectorParameters()
        self.detector = cv2.aruco.ArucoDetector(self.dictionary, self.params)

    def __call__(self, frame: np.ndarray) -> List[np.ndarray]:
        corners, ids, _ = self.detector.detectMarkers(to_gray(frame))
        if ids is None:
            return []
        return [np.asarray(c, dtype=np.float32).reshape(4, 2) for c in corners]


def mean_side_px(quads: Sequence[np.ndarray]) -> float:
    if not quads:
        return 0.0
    sides = []
    for q in quads:
        sides.extend(float(np.linalg.norm(q[i] - q[(i + 1) % 4])) for i in range(4))
    return float(np.mean(sides))


class AutoFiducialCalibration:
    """
    Continuous calibration, ticked on its own timer.

    Each tick: look for ArUco markers (>= min_markers), else optionally four
    printed squares, and rebuild the homography from the outermost corners.
    A failed tick never clears the published calibration; after `stale_after_s`
    without a refresh the engine reports Reacquiring, and after `stale_ticks`
    failed ticks in a row the calibration is flagged stale. Only
    `recalibrate()` throws it away.
    """

    def __init__(
        self,
        cell: HomographyCell,
        target_size: Tuple[int, int],
        square_fallback: bool = const.SQUARE_FALLBACK,
        stale_after_s: float = const.CALIB_STALE_MS / 1000.0,
        stale_ticks: int = const.CALIB_STALE_TICKS,
        min_markers: int = const.MIN_MARKERS,
        marker_detector: Optional[MarkerDetector] = None,
        square_finder: Callable[[np.ndarray], List[np.ndarray]] = find_square_quads,
    ):
        self.cell = cell
        self.target_size = target_size
        self.square_fallback = square_fallback
        self.stale_after_s = stale_after_s
        self.stale_ticks = stale_ticks
        self.min_markers = min_markers
        self.marker_detector = marker_detector or ArucoMarkerDetector()
        self.square_finder = square_finder

        self.state = CalibrationState.Calibrated if cell.current is not None else CalibrationState.Uncalibrated
        self.fail_streak = 0
        self.stale = False
        self.last_count = 0
        self.last_kind = "Markers"
        self.last_width_px = 0.0
        self.last_age_s: Optional[float] = None
        self.last_ok = False

    def recalibrate(self) -> None:
        self.cell.clear()
        self.fail_streak = 0
        self.stale = False
        self.last_ok = False
        self._set_state(CalibrationState.Calibrating)

    # ---------- Tick ----------
    def _observe(self, frame: np.ndarray) -> Tuple[str, List[np.ndarray]]:
        markers = self.marker_detector(frame)
        if len(markers) >= self.min_markers:
            return "fiducial", markers
        self.last_kind, self.last_count = "Markers", len(markers)
        self.last_width_px = mean_side_px(markers)
        if self.square_fallback:
            squares = self.square_finder(frame)
            if len(squares) >= const.SQUARE_COUNT:
                return "squares", squares[:const.SQUARE_COUNT]
        return "", []

    def tick(self, frame: Optional[np.ndarray], now: float) -> bool:
        """One calibration attempt. Returns True when a new homography was published."""
        quads: List[np.ndarray] = []
        source = ""
        if frame is not None and frame.size > 0:
            source, quads = self._observe(frame)

        if quads:
            self.last_kind = "Markers" if source == "fiducial" else "Squares"
            self.last_count = len(quads)
            self.last_width_px = mean_side_px(quads)
            try:
                corners = extremes_quad(np.concatenate(quads, axis=0))
                H = Homography.from_quad(corners, self.target_size)
            except CalibrationError as exc:
                log.debug("calibration tick rejected: %s", exc)
            else:
                self.cell.publish(Calibration(
                    H, tuple((float(x), float(y)) for x, y in corners), now, source))
                self.fail_streak = 0
                self.stale = False
                self.last_ok = True
                self.last_age_s = 0.0
                self._set_state(CalibrationState.Calibrated)
                return True

        self._on_failure(now)
        return False

    def _on_failure(self, now: float) -> None:
        self.fail_streak += 1
        self.last_ok = False
        age = self.cell.age(now)
        self.last_age_s = age
        if age is None:
            self._set_state(CalibrationState.Calibrating)
            return

        if age > self.stale_after_s:
            self._set_state(CalibrationState.Reacquiring)
        if not self.stale and self.fail_streak >= self.stale_ticks:
            self.stale = True
            log.warning("calibration flagged stale after %d failed ticks", self.fail_streak)

    def _set_state(self, state: CalibrationState) -> None:
        if state != self.state:
            log.info("calibration %s -> %s", self.state.value, state.value)
        self.state = state

    # ---------- Reporting ----------
    def status(self) -> str:
        head = f"{self.last_kind}: {self.last_count}"
        if self.last_width_px > 0:
            head += f" (~{self.last_width_px:.0f}px)"

        if self.state == CalibrationState.Reacquiring:
            msg = f"reacquiring, seeking markers (last fix {self.last_age_s or 0.0:.1f}s ago)"
        elif self.last_ok:
            msg = "calibrated"
        elif self.cell.current is not None:
            msg = "seeking markers, holding last calibration"
        else:
            msg = "seeking markers"
        if self.stale:
            msg += " | STALE"
        return f"{head} | {msg}"
