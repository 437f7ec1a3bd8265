from __future__ import annotations
from typing import Optional

from trainer.api.errors import NotCalibratedError
from trainer.api.frame_data import Point2D
from trainer.calib.homography import HomographyCell


class Projector:
    """
    Maps a processing-frame point into target space through whatever
    homography the cell currently publishes. Holds no state of its own.
    """

    def __init__(self, cell: HomographyCell):
        self.cell = cell

    @property
    def ready(self) -> bool:
        return self.cell.current is not None

    def project(self, cam_pt: Point2D) -> Optional[Point2D]:
        """
        Raises NotCalibratedError without a published homography.
        Returns None if the point maps to infinity.
        """
        H = self.cell.homography  # read once
        if H is None:
            raise NotCalibratedError("no calibration published")
        return H.apply(cam_pt.x, cam_pt.y)
