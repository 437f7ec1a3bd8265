import numpy as np

from trainer.video.camera import READ_FAIL_WARN, Camera, to_processing


class FakeCapture:
    def __init__(self, frames):
        self.frames = list(frames)
        self.released = False

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True


def test_to_processing_resizes_and_drops_alpha():
    bgra = np.zeros((480, 640, 4), dtype=np.uint8)
    out = to_processing(bgra, (320, 240))
    assert out.shape == (240, 320, 3)


def test_to_processing_keeps_matching_frames():
    frame = np.zeros((240, 320, 3), dtype=np.uint8)
    assert to_processing(frame, (320, 240)) is frame


def test_grab_caches_latest_and_counts_misses():
    cam = Camera(0, (640, 480), (320, 240))
    assert cam.grab() is None

    cap = FakeCapture([np.full((480, 640, 3), 9, dtype=np.uint8)])
    cam.cap = cap
    frame = cam.grab()
    assert frame.shape == (240, 320, 3)
    assert cam.latest is frame

    for _ in range(READ_FAIL_WARN):
        assert cam.grab() is None
    assert cam.misses == READ_FAIL_WARN
    assert cam.latest is frame

    cam.close()
    assert cap.released and cam.cap is None and cam.latest is None
