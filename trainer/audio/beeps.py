from __future__ import annotations
from typing import Dict, Optional, Sequence
import numpy as np
import pygame

from trainer.log import get_logger

log = get_logger("audio")

SAMPLE_RATE = 44100


def tone(freqs: Sequence[float], duration_s: float, peak: float = 0.5,
         attack_s: float = 0.01, floor: float = 1e-4,
         sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """
    Sum of sines with a linear attack and an exponential decay down to `floor`.
    Returns int16 mono samples.
    """
    n = max(1, int(duration_s * sample_rate))
    t = np.arange(n) / float(sample_rate)
    wave = sum(np.sin(2 * np.pi * f * t) for f in freqs) / max(1, len(freqs))

    env = np.empty(n)
    attack = t < attack_s
    env[attack] = peak * t[attack] / attack_s if attack_s > 0 else peak
    decay_t = t[~attack] - attack_s
    span = max(duration_s - attack_s, 1e-6)
    env[~attack] = peak * np.power(floor / peak, decay_t / span)
    return np.clip(wave * env * 32767, -32768, 32767).astype(np.int16)


def beep_samples(sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    return tone([880.0], 0.14, sample_rate=sample_rate)


def steel_samples(sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    return tone([1400.0, 2200.0], 0.18, peak=0.7, attack_s=0.0, sample_rate=sample_rate)


class Sounds:
    """Countdown beep and hit "steel" ring. Silent if the mixer is unavailable."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._sounds: Dict[str, pygame.mixer.Sound] = {}
        if enabled:
            self._load()

    def _load(self) -> None:
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
            freq, _, channels = pygame.mixer.get_init()
        except pygame.error as exc:
            log.warning("audio disabled: %s", exc)
            self.enabled = False
            return

        for name, build in (("beep", beep_samples), ("steel", steel_samples)):
            samples = build(freq)
            if channels > 1:
                samples = np.repeat(samples[:, None], channels, axis=1)
            self._sounds[name] = pygame.sndarray.make_sound(np.ascontiguousarray(samples))

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if enabled and not self._sounds:
            self._load()

    def play(self, name: str) -> None:
        if not self.enabled:
            return
        snd: Optional[pygame.mixer.Sound] = self._sounds.get(name)
        if snd is not None:
            snd.play()

    def beep(self) -> None:
        self.play("beep")

    def steel(self) -> None:
        self.play("steel")
