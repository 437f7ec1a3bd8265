import numpy as np
import pytest

from trainer.calib.homography import Calibration, Homography, HomographyCell, HomographyStore
from trainer.calib.manual import ManualCornerCalibration
from trainer.calib.state import CalibrationState


def _tap_all(cal, taps):
    for x, y in taps:
        cal.add_tap(x, y)


def test_four_taps_publish_a_homography():
    cell = HomographyCell()
    cal = ManualCornerCalibration(cell, (900, 1200), clock=lambda: 7.0)
    assert cal.state == CalibrationState.Uncalibrated

    cal.begin()
    assert cal.state == CalibrationState.Calibrating
    assert cal.next_label == "TL"
    _tap_all(cal, [(0, 0), (900, 0), (900, 1200)])
    assert cell.current is None
    assert "BL" in cal.status()

    cal.add_tap(0, 1200)
    assert cal.state == CalibrationState.Calibrated
    assert cell.current.source == "manual"
    assert cell.current.published_at == 7.0
    p = cell.homography.apply(900, 1200)
    assert (p.x, p.y) == pytest.approx((900, 1200), abs=1e-6)


def test_taps_are_scaled_from_display_to_processing_pixels():
    cell = HomographyCell()
    cal = ManualCornerCalibration(cell, (900, 1200), display_scale=(0.5, 0.25))
    cal.begin()
    _tap_all(cal, [(20, 40), (620, 40), (620, 840), (20, 840)])

    corners = cell.current.corners_cam
    assert corners == ((10.0, 10.0), (310.0, 10.0), (310.0, 210.0), (10.0, 210.0))
    p = cell.homography.apply(10, 10)
    assert (p.x, p.y) == pytest.approx((0, 0), abs=1e-6)


def test_tap_order_is_used_as_given():
    cell = HomographyCell()
    cal = ManualCornerCalibration(cell, (900, 1200))
    cal.begin()
    # TR tapped first: still accepted, TL of the target lands on the first tap
    _tap_all(cal, [(300, 10), (10, 10), (10, 230), (300, 230)])
    assert cal.state == CalibrationState.Calibrated
    p = cell.homography.apply(300, 10)
    assert (p.x, p.y) == pytest.approx((0, 0), abs=1e-6)


def test_degenerate_taps_report_error_and_reset():
    cell = HomographyCell()
    cal = ManualCornerCalibration(cell, (900, 1200))
    cal.begin()
    _tap_all(cal, [(0, 0), (10, 0), (20, 0), (30, 0)])
    assert cal.state == CalibrationState.Uncalibrated
    assert cell.current is None
    assert cal.status().startswith("Calibration error")
    assert cal.taps == []


def test_begin_discards_previous_calibration():
    cell = HomographyCell()
    cell.publish(Calibration(Homography(np.eye(3)), (), 0.0, "stored"))
    cal = ManualCornerCalibration(cell, (900, 1200))
    assert cal.state == CalibrationState.Calibrated

    cal.begin()
    assert cell.current is None
    cal.cancel()
    assert cal.state == CalibrationState.Uncalibrated


def test_taps_outside_calibration_are_ignored():
    cell = HomographyCell()
    cal = ManualCornerCalibration(cell, (900, 1200))
    assert cal.add_tap(5, 5) == CalibrationState.Uncalibrated
    assert cal.taps == []


def test_success_is_saved_and_restorable(tmp_path):
    store = HomographyStore(profile_name="p", root=tmp_path)
    cal = ManualCornerCalibration(HomographyCell(), (900, 1200), store=store)
    cal.begin()
    _tap_all(cal, [(30, 20), (290, 35), (300, 230), (15, 210)])
    assert store.path.exists()

    cell = HomographyCell()
    again = ManualCornerCalibration(cell, (900, 1200), store=store, clock=lambda: 3.0)
    assert again.restore()
    assert again.state == CalibrationState.Calibrated
    assert cell.current.source == "stored"
    p = cell.homography.apply(30, 20)
    assert (p.x, p.y) == pytest.approx((0, 0), abs=1e-3)


def test_restore_survives_half_written_file(tmp_path):
    store = HomographyStore(root=tmp_path)
    np.savez_compressed(store.path, H=np.eye(3))
    data = store.path.read_bytes()
    store.path.write_bytes(data[:len(data) // 2])

    cell = HomographyCell()
    cal = ManualCornerCalibration(cell, (900, 1200), store=store)
    assert not cal.restore()
    assert cell.current is None
    assert cal.state == CalibrationState.Uncalibrated
