from __future__ import annotations
from typing import Optional, Tuple

import numpy as np

from trainer.api.config import TrainerConfig
from trainer.api.errors import NotCalibratedError
from trainer.api.frame_data import FrameResult, HitEvent, Point2D, SessionSummary
from trainer.calib.homography import HomographyCell
from trainer.detect.blobs import BlobSelector
from trainer.detect.color_tracker import ColorSegmenter
from trainer.detect.temporal import TemporalDiffer
from trainer.input.laser_input import Projector
from trainer.log import get_logger
from trainer.score.engine import ScoreEngine, SessionStatus, Target

log = get_logger("game_loop")


class GameLoop:
    """
    One call to `step` per delivered frame:
    segment -> diff -> pick blob -> project -> debounce -> score.

    Runs with or without a calibration; without one it only keeps the mask
    history warm and reports that it is seeking calibration.
    """

    def __init__(
        self,
        cfg: TrainerConfig,
        cell: HomographyCell,
        segmenter: Optional[ColorSegmenter] = None,
        differ: Optional[TemporalDiffer] = None,
        selector: Optional[BlobSelector] = None,
        scorer: Optional[ScoreEngine] = None,
    ):
        self.cfg = cfg
        self.cell = cell
        self.segmenter = segmenter or ColorSegmenter()
        self.differ = differ or TemporalDiffer()
        self.selector = selector or BlobSelector(cfg.min_blob_area, cfg.blob_sensitivity)
        self.projector = Projector(cell)
        self.scorer = scorer or ScoreEngine(Target.from_config(cfg), cfg.shots_goal)
        self.debounce_s = cfg.hit_debounce_ms / 1000.0
        self._last_hit_at: Optional[float] = None

    @property
    def stats(self):
        return self.scorer.stats

    # ---------- Session ----------
    def start_session(self, shots_goal: Optional[int] = None) -> None:
        self.differ.reset()
        self._last_hit_at = None
        self.scorer.start(shots_goal)

    def stop_session(self) -> None:
        self.differ.reset()
        self._last_hit_at = None
        self.scorer.stop()

    # ---------- Per frame ----------
    def detect(self, frame: np.ndarray) -> Optional[Point2D]:
        mask = self.segmenter.segment(frame)
        diff = self.differ.diff(mask)
        if diff is None:
            return None
        return self.selector.select(diff)

    def _debounced(self, now: float) -> bool:
        return self._last_hit_at is not None and (now - self._last_hit_at) < self.debounce_s

    def status(self) -> str:
        if self.cell.current is None:
            return "seeking calibration"
        s = self.scorer
        if s.status == SessionStatus.Running:
            return f"running ({s.stats.shots_fired}/{s.shots_goal})"
        if s.status == SessionStatus.Finished:
            return f"finished ({s.stats.shots_fired}/{s.shots_goal})"
        return s.status

    def _accept(self, cam_pt: Point2D, now: float) -> Tuple[Optional[HitEvent], Optional[SessionSummary]]:
        try:
            target_pt = self.projector.project(cam_pt)
        except NotCalibratedError:
            return None, None
        if target_pt is None:
            return None, None

        if self._debounced(now):
            log.debug("dropped detection %.0f ms after last hit",
                      (now - self._last_hit_at) * 1000.0)
            return None, None

        hit, summary = self.scorer.record(target_pt, now, camera_point=cam_pt)
        if hit is not None:
            self._last_hit_at = now
        return hit, summary

    def step(self, frame: np.ndarray, now: float) -> FrameResult:
        cam_pt = self.detect(frame)
        hit: Optional[HitEvent] = None
        summary: Optional[SessionSummary] = None
        if cam_pt is not None:
            hit, summary = self._accept(cam_pt, now)
        return FrameResult(hit=hit, summary=summary, status=self.status(), camera_point=cam_pt)

    def inject(self, cam_pt: Point2D, now: float) -> FrameResult:
        """Synthetic shot at a processing-frame point (debug clicks); skips detection."""
        hit, summary = self._accept(cam_pt, now)
        return FrameResult(hit=hit, summary=summary, status=self.status(), camera_point=cam_pt)
