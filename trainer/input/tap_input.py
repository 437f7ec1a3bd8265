from __future__ import annotations
import pygame
from typing import List, Tuple

_BTN_NAME = {1: "left", 2: "middle", 3: "right"}


class TapInput:
    """
    Collects mouse taps on the preview window, in window pixels.

    - Left click: calibration tap (consumed by ManualCornerCalibration).
    - Right click with debug on: synthetic shot at that spot.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._taps: List[Tuple[float, float]] = []
        self._shots: List[Tuple[float, float]] = []

    def handle_pygame_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.MOUSEBUTTONDOWN:
            if event.type == pygame.WINDOWFOCUSLOST:
                self._taps.clear()
                self._shots.clear()
            return

        btn_name = _BTN_NAME.get(event.button)
        x, y = float(event.pos[0]), float(event.pos[1])
        if btn_name == "left":
            self._taps.append((x, y))
        elif btn_name == "right" and self.debug:
            self._shots.append((x, y))

    def take_taps(self) -> List[Tuple[float, float]]:
        taps, self._taps = self._taps, []
        return taps

    def take_shots(self) -> List[Tuple[float, float]]:
        shots, self._shots = self._shots, []
        return shots
