from __future__ import annotations
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from trainer import const
from trainer.api.errors import ConfigError


@dataclass
class TrainerConfig:
    # camera / display
    cam_index: int = const.CAM_INDEX
    cam_size: Tuple[int, int] = (const.CAM_WIDTH, const.CAM_HEIGHT)
    proc_size: Tuple[int, int] = (const.PROC_WIDTH, const.PROC_HEIGHT)
    display_size: Tuple[int, int] = (const.DISPLAY_W, const.DISPLAY_H)

    # target plane + scoring
    target_size: Tuple[int, int] = (const.TARGET_W, const.TARGET_H)
    target_center: Optional[Tuple[float, float]] = None  # None -> middle of target_size
    rings: Tuple[float, ...] = const.RING_RADII
    points: Tuple[int, ...] = const.RING_POINTS

    # hit detection
    min_blob_area: int = const.MIN_BLOB_AREA
    blob_sensitivity: int = const.BLOB_SENSITIVITY
    hit_debounce_ms: int = const.HIT_DEBOUNCE_MS

    # calibration
    calib_mode: str = "manual"  # "manual" | "auto"
    calib_tick_ms: int = const.CALIB_TICK_MS
    calib_stale_ms: int = const.CALIB_STALE_MS
    calib_stale_ticks: int = const.CALIB_STALE_TICKS
    square_fallback: bool = const.SQUARE_FALLBACK
    aruco_dict: str = const.ARUCO_DICT
    calib_dir: Optional[str] = None  # None -> runtime/cache/homographies
    profile: str = "default"

    # session / front end
    shots_goal: int = const.SHOTS_GOAL
    countdown_sec: int = const.COUNTDOWN_SEC
    sound: bool = True

    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("cam_size", "proc_size", "display_size", "target_size"):
            value = tuple(int(v) for v in getattr(self, name))
            if len(value) != 2 or value[0] <= 0 or value[1] <= 0:
                raise ConfigError(f"{name} must be two positive ints, got {value}")
            setattr(self, name, value)

        self.rings = tuple(float(r) for r in self.rings)
        self.points = tuple(int(p) for p in self.points)
        if not self.rings:
            raise ConfigError("at least one ring radius is required")
        if any(b <= a for a, b in zip(self.rings, self.rings[1:])) or self.rings[0] <= 0:
            raise ConfigError(f"rings must be positive and strictly ascending: {self.rings}")
        if len(self.points) not in (len(self.rings), len(self.rings) + 1):
            raise ConfigError(
                f"need {len(self.rings)} or {len(self.rings) + 1} point values, got {len(self.points)}")

        if self.target_center is not None:
            cx, cy = self.target_center
            self.target_center = (float(cx), float(cy))

        if self.calib_mode not in ("manual", "auto"):
            raise ConfigError(f"calib_mode must be 'manual' or 'auto', got {self.calib_mode!r}")
        if self.shots_goal <= 0:
            raise ConfigError("shots_goal must be positive")
        for name in ("min_blob_area", "blob_sensitivity", "hit_debounce_ms",
                     "calib_stale_ms", "calib_stale_ticks", "countdown_sec"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")
        if self.calib_tick_ms <= 0:
            raise ConfigError("calib_tick_ms must be positive")

    @property
    def center(self) -> Tuple[float, float]:
        if self.target_center is not None:
            return self.target_center
        w, h = self.target_size
        return (w / 2.0, h / 2.0)

    @property
    def display_to_proc_scale(self) -> Tuple[float, float]:
        """Factors that turn a display (window) pixel into a processing-frame pixel."""
        pw, ph = self.proc_size
        dw, dh = self.display_size
        return (pw / float(dw), ph / float(dh))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainerConfig":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in (data or {}).items() if k in known}
        unknown = {k: v for k, v in (data or {}).items() if k not in known}
        kwargs["extra"] = {**(kwargs.get("extra") or {}), **unknown}
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as exc:
            if isinstance(exc, ConfigError):
                raise
            raise ConfigError(str(exc)) from exc

    def with_overrides(self, **overrides: Any) -> "TrainerConfig":
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return TrainerConfig.from_dict(data)
