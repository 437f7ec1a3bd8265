from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Optional, Tuple

from trainer import const


class CountdownPhase(Enum):
    Standby = "STANDBY"
    Armed = "ARMED"
    Go = "ENGAGE"
    Done = ""


@dataclass
class Countdown:
    """
    N..1 second countdown, then GO for `go_ms`. The last `armed_sec` numbers
    are ARMED, earlier ones STANDBY. `update` reports a beep once per number
    and once for GO.
    """
    seconds: int
    started_at: float
    armed_sec: int = const.ARMED_SEC
    go_ms: int = const.GO_MS

    _last_text: Optional[str] = field(default=None, init=False, repr=False)

    def phase_at(self, now: float) -> Tuple[CountdownPhase, str]:
        elapsed = max(0.0, now - self.started_at)
        if elapsed < self.seconds:
            remaining = self.seconds - int(math.floor(elapsed))
            phase = CountdownPhase.Armed if remaining <= self.armed_sec else CountdownPhase.Standby
            return phase, str(remaining)
        if elapsed < self.seconds + self.go_ms / 1000.0:
            return CountdownPhase.Go, "GO"
        return CountdownPhase.Done, ""

    def update(self, now: float) -> Tuple[CountdownPhase, str, bool]:
        """(phase, big text, beep now?)"""
        phase, text = self.phase_at(now)
        beep = phase != CountdownPhase.Done and text != self._last_text
        self._last_text = text
        return phase, text, beep

    def done(self, now: float) -> bool:
        return self.phase_at(now)[0] == CountdownPhase.Done
