class TrainerError(Exception):
    """Base class for everything raised by the trainer package."""


class ConfigError(TrainerError, ValueError):
    pass


class CalibrationError(TrainerError):
    """Calibration geometry could not produce a valid homography."""


class NotCalibratedError(TrainerError, RuntimeError):
    """A projection was requested before any homography was published."""
