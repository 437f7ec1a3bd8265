from __future__ import annotations
from dataclasses import dataclass, field
import math
from typing import Any, Dict, Optional, Tuple

from trainer.api.config import TrainerConfig
from trainer.api.errors import ConfigError
from trainer.api.frame_data import HitEvent, Point2D, SessionStats, SessionSummary
from trainer.log import get_logger

log = get_logger("score")


@dataclass(frozen=True)
class Target:
    center: Point2D
    rings: Tuple[float, ...]
    points: Tuple[int, ...]

    def __post_init__(self):
        if not self.rings:
            raise ConfigError("target needs at least one ring")
        if any(b <= a for a, b in zip(self.rings, self.rings[1:])):
            raise ConfigError(f"ring radii must be strictly ascending: {self.rings}")
        if len(self.points) not in (len(self.rings), len(self.rings) + 1):
            raise ConfigError("one point value per ring (plus an optional miss value) expected")

    @classmethod
    def from_config(cls, cfg: TrainerConfig) -> "Target":
        cx, cy = cfg.center
        return cls(Point2D(cx, cy), tuple(cfg.rings), tuple(cfg.points))

    @property
    def miss_value(self) -> int:
        return self.points[-1]

    def distance(self, pt: Point2D) -> float:
        return math.hypot(pt.x - self.center.x, pt.y - self.center.y)

    def score(self, pt: Point2D) -> int:
        d = self.distance(pt)
        for radius, value in zip(self.rings, self.points):
            if d <= radius:
                return value
        return self.miss_value


class SessionStatus:
    Idle = "idle"
    Running = "running"
    Finished = "finished"
    Stopped = "stopped"


@dataclass
class ScoreEngine:
    """Scores hits against the target and runs one shot-goal session at a time."""
    target: Target
    shots_goal: int = 10
    stats: SessionStats = field(default_factory=SessionStats)
    status: str = SessionStatus.Idle
    summary: Optional[SessionSummary] = None

    @property
    def running(self) -> bool:
        return self.status == SessionStatus.Running

    def score(self, pt: Point2D) -> int:
        return self.target.score(pt)

    def start(self, shots_goal: Optional[int] = None) -> None:
        if shots_goal is not None:
            if shots_goal <= 0:
                raise ConfigError("shots goal must be positive")
            self.shots_goal = int(shots_goal)
        self.stats.reset()
        self.summary = None
        self.status = SessionStatus.Running
        log.info("session started: %d shots", self.shots_goal)

    def stop(self) -> None:
        self.stats.reset()
        self.summary = None
        self.status = SessionStatus.Stopped

    def record(self, pt: Point2D, now: float,
               camera_point: Optional[Point2D] = None) -> Tuple[Optional[HitEvent], Optional[SessionSummary]]:
        """
        Scores one accepted hit. Returns (hit, summary); summary is set exactly
        once, on the shot that reaches the goal. Outside a running session
        nothing is scored.
        """
        if not self.running:
            return None, None

        value = self.score(pt)
        self.stats.add(value)
        hit = HitEvent(target_point=pt, score=value, timestamp=now, camera_point=camera_point)
        log.info("hit %d/%d at (%.0f, %.0f): %d",
                 self.stats.shots_fired, self.shots_goal, pt.x, pt.y, value)

        if self.stats.shots_fired >= self.shots_goal:
            self.status = SessionStatus.Finished
            self.summary = SessionSummary(
                total=self.stats.total_score,
                avg=self.stats.avg_score,
                shots=self.stats.shots_fired,
            )
            log.info("session finished: total %d, avg %.2f", self.summary.total, self.summary.avg)
            return hit, self.summary
        return hit, None

    def snapshot(self) -> Dict[str, Any]:
        """Stats in the shape the remote-control front end polls for."""
        return {
            "running": self.running,
            "status": self.status,
            "shots": self.stats.shots_fired,
            "shots_goal": self.shots_goal,
            "last_score": self.stats.last_score,
            "total_score": self.stats.total_score,
            "avg_score": round(self.stats.avg_score, 2),
        }
