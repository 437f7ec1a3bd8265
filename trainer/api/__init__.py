from .frame_data import FrameResult, HitEvent, Point2D, SessionStats, SessionSummary
from .config import TrainerConfig
from .errors import CalibrationError, ConfigError, NotCalibratedError, TrainerError

__all__ = [
    "FrameResult", "HitEvent", "Point2D", "SessionStats", "SessionSummary",
    "TrainerConfig",
    "TrainerError", "ConfigError", "CalibrationError", "NotCalibratedError",
]
