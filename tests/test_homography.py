import numpy as np
import pytest

from trainer.api.errors import CalibrationError
from trainer.calib.homography import (
    Calibration,
    Homography,
    HomographyCell,
    HomographyStore,
    extremes_quad,
    is_convex_quad,
)


def test_identity_quad_maps_corners_onto_themselves():
    H = Homography.from_quad([(0, 0), (900, 0), (900, 1200), (0, 1200)], (900, 1200))
    tl = H.apply(0, 0)
    br = H.apply(900, 1200)
    assert (tl.x, tl.y) == pytest.approx((0.0, 0.0), abs=1e-6)
    assert (br.x, br.y) == pytest.approx((900.0, 1200.0), abs=1e-6)
    mid = H.apply(450, 600)
    assert (mid.x, mid.y) == pytest.approx((450.0, 600.0), abs=1e-6)


def test_perspective_quad_maps_taps_to_rectangle_corners():
    taps = [(30, 20), (290, 35), (300, 230), (15, 210)]
    H = Homography.from_quad(taps, (900, 1200))
    mapped = H.apply_many(np.array(taps, np.float32))
    assert mapped == pytest.approx(np.array([[0, 0], [900, 0], [900, 1200], [0, 1200]]), abs=1e-3)


@pytest.mark.parametrize("taps", [
    [(0, 0), (10, 0), (20, 0), (30, 0)],          # all collinear
    [(0, 0), (10, 0), (10, 10), (10, 10)],        # repeated point
    [(0, 0), (5, 5), (10, 10), (0, 10)],          # three on a diagonal
])
def test_degenerate_quads_are_rejected(taps):
    with pytest.raises(CalibrationError):
        Homography.from_quad(taps, (900, 1200))


def test_singular_matrix_is_rejected():
    with pytest.raises(CalibrationError):
        Homography(np.zeros((3, 3)))
    with pytest.raises(CalibrationError):
        Homography(np.array([[1, 0, 0], [0, np.nan, 0], [0, 0, 1]]))


def test_matrix_is_read_only():
    H = Homography(np.eye(3))
    with pytest.raises(ValueError):
        H.matrix[0, 0] = 5.0


def test_inverse_round_trips_a_point():
    H = Homography.from_quad([(30, 20), (290, 35), (300, 230), (15, 210)], (900, 1200))
    p = H.apply(150, 120)
    back = H.inverse().apply(p.x, p.y)
    assert (back.x, back.y) == pytest.approx((150, 120), abs=1e-6)


def test_point_at_infinity_maps_to_none():
    H = Homography(np.array([[1.0, 0, 0], [0, 1.0, 0], [1.0, 0, 1.0]]))
    assert H.apply(-1.0, 5.0) is None


def test_extremes_pick_outer_corners():
    pts = np.array([
        [12, 10], [30, 11], [31, 29], [11, 30],        # near TL
        [280, 12], [300, 10], [301, 30], [281, 31],    # near TR
        [279, 200], [299, 201], [300, 221], [280, 220],  # near BR
        [10, 205], [30, 204], [31, 224], [11, 225],    # near BL
    ], dtype=np.float32)
    quad = extremes_quad(pts)
    assert quad.tolist() == [[12, 10], [300, 10], [300, 221], [11, 225]]
    assert is_convex_quad(quad)


def test_extremes_need_four_points():
    with pytest.raises(CalibrationError):
        extremes_quad(np.array([[0, 0], [1, 1]], np.float32))


def test_bow_tie_is_not_convex():
    assert not is_convex_quad(np.array([[0, 0], [10, 10], [10, 0], [0, 10]], np.float32))


def test_cell_swaps_whole_records():
    cell = HomographyCell()
    assert cell.current is None and cell.homography is None and cell.age(5.0) is None

    first = Calibration(Homography(np.eye(3)), (), 1.0, "manual")
    second = Calibration(Homography(np.diag([2.0, 2.0, 1.0])), (), 3.0, "fiducial")
    assert cell.publish(first) is None
    assert cell.publish(second) is first
    assert cell.current is second
    assert cell.age(4.5) == pytest.approx(1.5)
    assert cell.clear() is second
    assert cell.current is None


def test_store_saves_and_restores(tmp_path):
    store = HomographyStore(profile_name="lane1", root=tmp_path)
    assert store.load() is None

    H = Homography.from_quad([(30, 20), (290, 35), (300, 230), (15, 210)], (900, 1200))
    corners = ((30.0, 20.0), (290.0, 35.0), (300.0, 230.0), (15.0, 210.0))
    path = store.save(Calibration(H, corners, 12.0, "manual"))
    assert path == tmp_path / "lane1.npz"

    loaded = store.load(now=99.0)
    assert loaded.source == "stored"
    assert loaded.published_at == 99.0
    assert loaded.corners_cam == corners
    assert np.allclose(loaded.homography.matrix, H.matrix)


def test_store_ignores_garbage(tmp_path):
    store = HomographyStore(root=tmp_path)
    np.savez_compressed(store.path, H=np.zeros((3, 3)))
    assert store.load() is None


def test_store_ignores_truncated_archive(tmp_path):
    store = HomographyStore(root=tmp_path)
    np.savez_compressed(store.path, H=np.eye(3))
    data = store.path.read_bytes()
    store.path.write_bytes(data[:len(data) // 2])
    assert store.load() is None
