from enum import Enum


class CalibrationState(Enum):
    Uncalibrated = "uncalibrated"
    Calibrating = "calibrating"
    Calibrated = "calibrated"
    Reacquiring = "reacquiring"  # auto mode: last good homography kept while markers are lost
