from __future__ import annotations
from typing import List
import cv2
import numpy as np

from trainer import const


def to_gray(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return frame
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def _inside(pt, quad: np.ndarray) -> bool:
    contour = quad.reshape(-1, 1, 2).astype(np.float32)
    return cv2.pointPolygonTest(contour, (float(pt[0]), float(pt[1])), False) >= 0


def find_square_quads(
    frame: np.ndarray,
    count: int = const.SQUARE_COUNT,
    aspect_range=(const.SQUARE_ASPECT_MIN, const.SQUARE_ASPECT_MAX),
    min_area: float = const.SQUARE_MIN_AREA,
    max_area_frac: float = const.SQUARE_MAX_AREA_FRAC,
) -> List[np.ndarray]:
    """
    Finds up to `count` dark-on-light (or light-on-dark) square-ish quads.

    Adaptive threshold -> contours -> approxPolyDP. A quad survives when it is
    convex, its bounding box aspect is inside `aspect_range`, and its area is
    between `min_area` and `max_area_frac` of the frame. The outline of a
    printed square shows up twice (outer and inner edge); a quad whose centre
    lies inside a larger kept quad is dropped. Largest first.
    """
    gray = to_gray(frame)
    blur = cv2.GaussianBlur(gray, (5, 5), 0)
    binary = cv2.adaptiveThreshold(
        blur, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY_INV, 21, 7)

    cnts, _ = cv2.findContours(binary, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
    max_area = max_area_frac * gray.shape[0] * gray.shape[1]
    lo, hi = aspect_range

    candidates = []
    for c in cnts:
        peri = cv2.arcLength(c, True)
        if peri <= 0:
            continue
        approx = cv2.approxPolyDP(c, 0.04 * peri, True)
        if len(approx) != 4 or not cv2.isContourConvex(approx):
            continue
        area = cv2.contourArea(approx)
        if area < min_area or area > max_area:
            continue
        _, _, w, h = cv2.boundingRect(approx)
        if h == 0 or not (lo <= w / float(h) <= hi):
            continue
        candidates.append((area, approx.reshape(4, 2).astype(np.float32)))

    candidates.sort(key=lambda t: t[0], reverse=True)
    kept: List[np.ndarray] = []
    for _, quad in candidates:
        center = quad.mean(axis=0)
        if any(_inside(center, k) for k in kept):
            continue
        kept.append(quad)
        if len(kept) == count:
            break
    return kept
