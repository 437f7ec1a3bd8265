import cv2
import numpy as np
import pygame
from typing import Iterable, Sequence, Tuple

from trainer.calib.homography import Homography, target_corners
from trainer.score.engine import Target

LABELS = ("TL", "TR", "BR", "BL")


def draw_text(surface: pygame.Surface, text: str, pos: Tuple[int, int], color=(230, 230, 230), size=24):
    font = pygame.font.SysFont(None, size)
    surface.blit(font.render(text, True, color), pos)


def cv2_to_pygame_surface(img_bgr: np.ndarray, size: Tuple[int, int]) -> pygame.Surface:
    """BGR OpenCV image -> PyGame Surface scaled to `size` (w, h)."""
    img = cv2.resize(img_bgr, size, interpolation=cv2.INTER_LINEAR)
    img_rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    # surfarray wants (W, H, 3)
    return pygame.surfarray.make_surface(np.transpose(img_rgb, (1, 0, 2)))


def scale_point(pt: Tuple[float, float], scale: Tuple[float, float]) -> Tuple[int, int]:
    return (int(round(pt[0] * scale[0])), int(round(pt[1] * scale[1])))


def rings_in_camera(H: Homography, target: Target, samples: int = 72) -> list:
    """Each ring as a camera-space polyline (via the inverse homography)."""
    inv = H.inverse()
    theta = np.linspace(0, 2 * np.pi, samples, endpoint=False)
    out = []
    for r in target.rings:
        pts = np.stack([target.center.x + r * np.cos(theta),
                        target.center.y + r * np.sin(theta)], axis=1)
        out.append(inv.apply_many(pts))
    return out


def draw_calibration_overlay(surface: pygame.Surface, H: Homography, target: Target,
                             target_size: Tuple[int, int], scale: Tuple[float, float]) -> None:
    """Target outline and rings projected back onto the camera preview."""
    inv = H.inverse()
    quad = [scale_point(p, scale) for p in inv.apply_many(target_corners(target_size)).tolist()]
    pygame.draw.lines(surface, (0, 200, 0), True, quad, 2)
    for i, p in enumerate(quad):
        pygame.draw.circle(surface, (0, 255, 0), p, 5)
        draw_text(surface, LABELS[i], (p[0] + 8, p[1] - 18), (0, 255, 0), 20)
    for ring in rings_in_camera(H, target):
        pygame.draw.lines(surface, (255, 210, 0), True, [scale_point(p, scale) for p in ring.tolist()], 1)


def draw_taps(surface: pygame.Surface, taps: Sequence, scale: Tuple[float, float]) -> None:
    for i, p in enumerate(taps):
        q = scale_point((p.x, p.y), scale)
        pygame.draw.circle(surface, (0, 255, 0), q, 6)
        draw_text(surface, LABELS[i], (q[0] + 10, q[1] - 20), (0, 255, 0), 22)


def draw_hits(surface: pygame.Surface, hits: Iterable, scale: Tuple[float, float]) -> None:
    for hit in hits:
        if hit.camera_point is None:
            continue
        q = scale_point((hit.camera_point.x, hit.camera_point.y), scale)
        pygame.draw.circle(surface, (255, 80, 80), q, 7, width=2)
        draw_text(surface, str(hit.score), (q[0] + 9, q[1] - 9), (255, 220, 120), 22)
