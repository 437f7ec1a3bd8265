from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional
import cv2
import numpy as np

from trainer import const
from trainer.api.frame_data import Point2D


@dataclass(frozen=True)
class Blob:
    centroid: Point2D
    area: int


class BlobSelector:
    """
    Picks the single biggest 8-connected blob of a diff mask.

    Area is a pixel count; a blob only counts when it is strictly larger than
    both `min_area` and `sensitivity`. Equal areas keep the first blob in
    raster order.
    """

    def __init__(self, min_area: int = const.MIN_BLOB_AREA, sensitivity: int = const.BLOB_SENSITIVITY):
        self.min_area = int(min_area)
        self.sensitivity = int(sensitivity)

    @property
    def floor(self) -> int:
        return max(self.min_area, self.sensitivity)

    def blobs(self, mask: np.ndarray) -> List[Blob]:
        """All qualifying blobs, in label (raster) order."""
        n, labels, stats, _ = cv2.connectedComponentsWithStats(mask, connectivity=8)
        found = []
        floor = self.floor
        # label 0 is the background
        for label in range(1, n):
            area = int(stats[label, cv2.CC_STAT_AREA])
            if area <= 0 or area <= floor:
                continue
            ys, xs = np.nonzero(labels == label)
            first = (int(ys[0]), int(xs[0]))  # nonzero() walks in raster order
            found.append((first, Blob(Point2D(float(xs.sum()) / area, float(ys.sum()) / area), area)))
        found.sort(key=lambda t: t[0])
        return [b for _, b in found]

    def select(self, mask: np.ndarray | None) -> Optional[Point2D]:
        if mask is None or mask.size == 0 or not mask.any():
            return None
        best: Optional[Blob] = None
        for blob in self.blobs(mask):
            if best is None or blob.area > best.area:
                best = blob
        return best.centroid if best is not None else None

    def configure(self, min_area: int | None = None, sensitivity: int | None = None) -> None:
        if min_area is not None:
            self.min_area = int(min_area)
        if sensitivity is not None:
            self.sensitivity = int(sensitivity)
