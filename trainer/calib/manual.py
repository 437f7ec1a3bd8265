from __future__ import annotations
from typing import Callable, List, Optional, Tuple
import time

import numpy as np

from trainer.api.errors import CalibrationError
from trainer.api.frame_data import Point2D
from trainer.calib.homography import (
    Calibration,
    Homography,
    HomographyCell,
    HomographyStore,
    is_convex_quad,
)
from trainer.calib.state import CalibrationState
from trainer.log import get_logger

log = get_logger("calib.manual")

LABELS = ("TL", "TR", "BR", "BL")


class ManualCornerCalibration:
    """
    One-shot calibration from four taps on the live preview.

    Taps arrive in display pixels and are scaled into processing-frame pixels.
    They are used strictly in tap order (TL, TR, BR, BL); nothing is reordered.
    An out-of-order set that is still non-degenerate is accepted with a warning.
    """

    def __init__(
        self,
        cell: HomographyCell,
        target_size: Tuple[int, int],
        display_scale: Tuple[float, float] = (1.0, 1.0),
        store: Optional[HomographyStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cell = cell
        self.target_size = target_size
        self.display_scale = display_scale
        self.store = store
        self.clock = clock

        self.taps: List[Point2D] = []
        self.state = CalibrationState.Calibrated if cell.current is not None else CalibrationState.Uncalibrated
        self.error: Optional[str] = None

    # ---------- Flow ----------
    def begin(self) -> None:
        self.taps = []
        self.error = None
        self.cell.clear()
        self._set_state(CalibrationState.Calibrating)

    def cancel(self) -> None:
        self.taps = []
        if self.state == CalibrationState.Calibrating:
            self._set_state(CalibrationState.Uncalibrated)

    def restore(self) -> bool:
        """Publish the stored calibration, if any. Returns True on success."""
        if self.store is None:
            return False
        cal = self.store.load(now=self.clock())
        if cal is None:
            return False
        self.cell.publish(cal)
        self._set_state(CalibrationState.Calibrated)
        return True

    def to_processing(self, x: float, y: float) -> Point2D:
        sx, sy = self.display_scale
        return Point2D(float(x) * sx, float(y) * sy)

    def add_tap(self, x: float, y: float) -> CalibrationState:
        """Record one tap (display pixels). The 4th tap builds the homography."""
        if self.state != CalibrationState.Calibrating:
            return self.state

        self.taps.append(self.to_processing(x, y))
        log.debug("tap %s at (%.1f, %.1f)", LABELS[len(self.taps) - 1],
                  self.taps[-1].x, self.taps[-1].y)
        if len(self.taps) == 4:
            self._finish()
        return self.state

    def _finish(self) -> None:
        taps, self.taps = self.taps, []
        quad = np.array([p.as_tuple() for p in taps], dtype=np.float32)
        try:
            H = Homography.from_quad(quad, self.target_size)
        except CalibrationError as exc:
            self.error = str(exc)
            log.warning("manual calibration failed: %s", exc)
            self._set_state(CalibrationState.Uncalibrated)
            return

        if not is_convex_quad(quad):
            log.warning("taps do not form a convex TL, TR, BR, BL quad; check the tap order")

        cal = Calibration(H, tuple(p.as_tuple() for p in taps), self.clock(), "manual")
        self.cell.publish(cal)
        self.error = None
        self._set_state(CalibrationState.Calibrated)
        if self.store is not None:
            try:
                self.store.save(cal)
            except OSError as exc:
                log.warning("could not save calibration: %s", exc)

    def _set_state(self, state: CalibrationState) -> None:
        if state != self.state:
            log.info("calibration %s -> %s", self.state.value, state.value)
        self.state = state

    # ---------- Reporting ----------
    @property
    def next_label(self) -> Optional[str]:
        if self.state != CalibrationState.Calibrating:
            return None
        return LABELS[len(self.taps)]

    def status(self) -> str:
        if self.state == CalibrationState.Calibrating:
            return f"Calibrating: tap {self.next_label} ({len(self.taps)}/4)"
        if self.state == CalibrationState.Calibrated:
            return "Calibrated"
        if self.error:
            return f"Calibration error: {self.error} (press C to retry)"
        return "Uncalibrated (press C, then tap TL, TR, BR, BL)"
