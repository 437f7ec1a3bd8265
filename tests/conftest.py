import numpy as np
import pytest

from trainer.api.config import TrainerConfig
from trainer.calib.homography import Calibration, Homography, HomographyCell

RED = (0, 0, 255)       # BGR
BACKGROUND = (40, 40, 40)


def blank(w=320, h=240, color=BACKGROUND):
    frame = np.empty((h, w, 3), dtype=np.uint8)
    frame[:] = color
    return frame


def spot(frame, cx, cy, half=5, color=RED):
    """Paint a (2*half+1)^2 square centred on (cx, cy); returns the frame."""
    frame[cy - half:cy + half + 1, cx - half:cx + half + 1] = color
    return frame


@pytest.fixture
def make_frame():
    return blank


@pytest.fixture
def paint_spot():
    return spot


@pytest.fixture
def scaled_cfg():
    """450x600 processing frame onto a 900x1200 target: target = 2 * pixel."""
    return TrainerConfig(proc_size=(450, 600), target_size=(900, 1200), shots_goal=10)


@pytest.fixture
def scaled_cell():
    cell = HomographyCell()
    H = Homography(np.diag([2.0, 2.0, 1.0]))
    cell.publish(Calibration(H, (), 0.0, "manual"))
    return cell
