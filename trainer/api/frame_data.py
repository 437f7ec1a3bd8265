from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Point2D:
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class HitEvent:
    target_point: Point2D
    score: int
    timestamp: float
    # where the flash was seen, in processing-frame pixels
    camera_point: Optional[Point2D] = None


@dataclass(frozen=True)
class SessionSummary:
    total: int
    avg: float
    shots: int


@dataclass
class SessionStats:
    shots_fired: int = 0
    total_score: int = 0
    last_score: Optional[int] = None

    @property
    def avg_score(self) -> float:
        if self.shots_fired == 0:
            return 0.0
        return self.total_score / self.shots_fired

    def add(self, score: int) -> None:
        self.shots_fired += 1
        self.total_score += score
        self.last_score = score

    def reset(self) -> None:
        self.shots_fired = 0
        self.total_score = 0
        self.last_score = None


@dataclass(frozen=True)
class FrameResult:
    """Everything one GameLoop iteration produced."""
    hit: Optional[HitEvent]
    summary: Optional[SessionSummary]
    status: str
    # raw centroid this frame (before debounce / calibration), processing pixels
    camera_point: Optional[Point2D] = None
