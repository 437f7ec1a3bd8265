import numpy as np

from trainer.audio.beeps import Sounds, beep_samples, steel_samples, tone


def test_tone_length_and_type():
    s = tone([440.0], 0.5, sample_rate=8000)
    assert s.dtype == np.int16
    assert s.shape == (4000,)


def test_tone_decays():
    s = tone([440.0], 0.5, peak=0.5, sample_rate=8000).astype(np.int32)
    head = np.abs(s[:800]).max()
    tail = np.abs(s[-800:]).max()
    assert head > 10000
    assert tail < head / 10


def test_builtin_sounds():
    assert beep_samples(22050).shape == (int(0.14 * 22050),)
    steel = steel_samples(22050)
    assert steel.dtype == np.int16
    assert np.abs(steel.astype(np.int32)).max() <= 32767


def test_disabled_sounds_are_silent():
    sounds = Sounds(enabled=False)
    sounds.beep()
    sounds.steel()
    assert not sounds.enabled
