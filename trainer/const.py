# -----------------------------
# Defaults (override via profiles/*.yaml or CLI flags)
# -----------------------------

CAM_INDEX = 0                       # Webcam index
CAM_WIDTH, CAM_HEIGHT = 640, 480    # Request these from the camera (best effort)
PROC_WIDTH, PROC_HEIGHT = 320, 240  # Down-scaled processing frame
DISPLAY_W, DISPLAY_H = 960, 720     # PyGame window size

# Virtual target plane (what the homography maps onto)
TARGET_W, TARGET_H = 900, 1200

# Concentric rings, innermost first; the last POINTS entry scores anything outside
RING_RADII = (120, 220, 320, 420)
RING_POINTS = (10, 9, 8, 7, 6)

# Red flash HSV thresholds (OpenCV hue is 0..179)
# Note: red wraps around the hue wheel, so we use two ranges and OR them.
LOW1 = (0, 110, 170)
HIGH1 = (12, 255, 255)
LOW2 = (160, 110, 170)
HIGH2 = (179, 255, 255)

# Red minus green must exceed this; rejects pink / orange / skin tones
RED_GREEN_MIN = 36
OPEN_KERNEL = 3

# Blob must be strictly larger than both of these (in processing pixels)
MIN_BLOB_AREA = 8
BLOB_SENSITIVITY = 4

# One physical flash -> one hit
HIT_DEBOUNCE_MS = 120

# Auto calibration
CALIB_TICK_MS = 60
CALIB_STALE_MS = 2000
CALIB_STALE_TICKS = 60
MIN_MARKERS = 2
ARUCO_DICT = "DICT_4X4_50"

# Square fallback
SQUARE_FALLBACK = True
SQUARE_ASPECT_MIN, SQUARE_ASPECT_MAX = 0.6, 1.4
SQUARE_MIN_AREA = 100               # px^2 in processing frame
SQUARE_MAX_AREA_FRAC = 0.2          # reject the target sheet / frame border
SQUARE_COUNT = 4

# Session
SHOTS_GOAL = 10
COUNTDOWN_SEC = 10
ARMED_SEC = 3                       # last N seconds of the countdown
GO_MS = 600
