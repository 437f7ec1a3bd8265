from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple
import zipfile
import cv2
import numpy as np

from trainer.api.errors import CalibrationError
from trainer.api.frame_data import Point2D
from trainer.log import get_logger

log = get_logger("calib.homography")

_EPS = 1e-9


def target_corners(target_size: Tuple[int, int]) -> np.ndarray:
    """TL, TR, BR, BL of the virtual target rectangle."""
    w, h = target_size
    return np.array([[0, 0], [w, 0], [w, h], [0, h]], dtype=np.float32)


def _triangle_area2(a, b, c) -> float:
    return float((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))


def is_convex_quad(quad: np.ndarray) -> bool:
    signs = []
    for i in range(4):
        cross = _triangle_area2(quad[i], quad[(i + 1) % 4], quad[(i + 2) % 4])
        signs.append(cross > 0)
    return all(signs) or not any(signs)


def _check_quad(quad: np.ndarray) -> None:
    if quad.shape != (4, 2):
        raise CalibrationError(f"need exactly 4 corner points, got shape {quad.shape}")
    if not np.all(np.isfinite(quad)):
        raise CalibrationError("corner points must be finite")
    for i in range(4):
        for j in range(i + 1, 4):
            for k in range(j + 1, 4):
                if abs(_triangle_area2(quad[i], quad[j], quad[k])) < 1e-6:
                    raise CalibrationError(
                        f"corner points {i}, {j}, {k} are collinear or repeated")


@dataclass(frozen=True, eq=False)
class Homography:
    """
    Immutable 3x3 camera -> target projective map.
    Construction fails with CalibrationError rather than yield a singular or
    non-finite matrix.
    """
    matrix: np.ndarray

    def __post_init__(self):
        m = np.array(self.matrix, dtype=np.float64)
        if m.shape != (3, 3):
            raise CalibrationError(f"homography must be 3x3, got {m.shape}")
        if not np.all(np.isfinite(m)):
            raise CalibrationError("homography contains non-finite values")
        det = float(np.linalg.det(m))
        if not np.isfinite(det) or abs(det) < _EPS:
            raise CalibrationError("homography is singular")
        m.setflags(write=False)
        object.__setattr__(self, "matrix", m)

    @classmethod
    def from_quad(cls, src: Sequence[Sequence[float]], target_size: Tuple[int, int]) -> "Homography":
        """Map src corners (TL, TR, BR, BL, in that order) onto the target rectangle."""
        quad = np.asarray(src, dtype=np.float32).reshape(-1, 2)
        _check_quad(quad)
        try:
            H = cv2.getPerspectiveTransform(quad, target_corners(target_size))
        except cv2.error as exc:
            raise CalibrationError(f"perspective transform failed: {exc}") from exc
        if H is None:
            raise CalibrationError("perspective transform failed")
        return cls(H)

    def apply(self, x: float, y: float) -> Optional[Point2D]:
        """None when the point maps to infinity."""
        v = self.matrix @ np.array([x, y, 1.0])
        if abs(v[2]) < _EPS:
            return None
        return Point2D(float(v[0] / v[2]), float(v[1] / v[2]))

    def apply_many(self, pts: np.ndarray) -> np.ndarray:
        pts = np.asarray(pts, dtype=np.float64).reshape(-1, 1, 2)
        return cv2.perspectiveTransform(pts, self.matrix).reshape(-1, 2)

    def inverse(self) -> "Homography":
        return Homography(np.linalg.inv(self.matrix))


def extremes_quad(points: np.ndarray) -> np.ndarray:
    """
    Pick TL, TR, BR, BL out of a cloud of corner points by the extremes of the
    two diagonals: TL = min(x+y), BR = max(x+y), TR = max(x-y), BL = min(x-y).
    Only sound for a roughly axis-aligned convex layout; large camera roll can
    swap corners.
    """
    pts = np.asarray(points, dtype=np.float32).reshape(-1, 2)
    if len(pts) < 4:
        raise CalibrationError(f"need at least 4 corner points, got {len(pts)}")
    s = pts[:, 0] + pts[:, 1]
    d = pts[:, 0] - pts[:, 1]
    return np.array([
        pts[int(np.argmin(s))],
        pts[int(np.argmax(d))],
        pts[int(np.argmax(s))],
        pts[int(np.argmin(d))],
    ], dtype=np.float32)


@dataclass(frozen=True, eq=False)
class Calibration:
    """What the HomographyCell publishes: one immutable record per refresh."""
    homography: Homography
    corners_cam: Tuple[Tuple[float, float], ...]
    published_at: float
    source: str  # "manual" | "fiducial" | "squares" | "stored"


class HomographyCell:
    """
    Single-writer / many-reader slot for the current calibration.
    The writer swaps whole immutable records; readers grab `current` once per
    use and never see a half-built value.
    """

    def __init__(self):
        self._current: Optional[Calibration] = None

    @property
    def current(self) -> Optional[Calibration]:
        return self._current

    @property
    def homography(self) -> Optional[Homography]:
        cal = self._current
        return cal.homography if cal is not None else None

    def publish(self, calibration: Calibration) -> Optional[Calibration]:
        """Swap in a new calibration; returns the one it replaced."""
        old, self._current = self._current, calibration
        return old

    def clear(self) -> Optional[Calibration]:
        old, self._current = self._current, None
        return old

    def age(self, now: float) -> Optional[float]:
        cal = self._current
        return None if cal is None else now - cal.published_at


class HomographyStore:
    def __init__(self, profile_name: str = "default", root: str | Path | None = None):
        if root is None:
            root = Path(__file__).resolve().parents[2] / "runtime" / "cache" / "homographies"
        self.root = Path(root)
        self.path = self.root / f"{profile_name}.npz"

    def load(self, now: float = 0.0) -> Optional[Calibration]:
        """
        Returns the stored calibration (source "stored") or None.
        A corrupt or singular file is logged and ignored.
        """
        if not self.path.exists():
            return None

        try:
            with np.load(self.path, allow_pickle=False) as data:
                H = Homography(data["H"])
                corners = data["corners_cam"].tolist() if "corners_cam" in data.files else []
        except (OSError, EOFError, KeyError, ValueError, zipfile.BadZipFile, CalibrationError) as exc:
            log.warning("ignoring calibration file %s: %s", self.path, exc)
            return None

        corners_cam = tuple((float(x), float(y)) for x, y in corners)
        return Calibration(H, corners_cam, now, "stored")

    def save(self, calibration: Calibration) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        H = np.array(calibration.homography.matrix)
        if calibration.corners_cam:
            np.savez_compressed(self.path, H=H, corners_cam=np.array(
                calibration.corners_cam, dtype=np.float32))
        else:
            np.savez_compressed(self.path, H=H)
        log.info("saved calibration to %s", self.path)
        return self.path
