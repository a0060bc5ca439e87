import numpy as np
import pytest

from audio.decode import SampleBuffer
from audio.engine import AudioEngine
from instruments.piano import PianoPlayer
from samples.cache import SampleCache

# 1 kHz keeps every timing a whole number of frames: 0.05 s == 50 frames
SR = 1000


def make_buffer(seconds=2.0, value=1.0, sr=SR, channels=1):
    data = np.full((int(round(seconds * sr)), channels), value, dtype=np.float32)
    data.setflags(write=False)
    return SampleBuffer(data=data, sample_rate=sr)


@pytest.fixture
def engine():
    return AudioEngine(sr=SR, blocksize=10, channels=1)


@pytest.fixture
def buffer_factory():
    return make_buffer


class FakeSamples:
    """In-memory fetch + decode. Sample i decodes to a constant-valued buffer."""

    def __init__(self, seconds=2.0, fail_on=()):
        self.seconds = seconds
        self.fail_on = set(fail_on)
        self.fetched = []

    def fetch(self, index):
        self.fetched.append(index)
        if index in self.fail_on:
            raise OSError(f"no such sample: {index}.mp3")
        return str(index).encode()

    def decode(self, raw):
        return make_buffer(self.seconds, value=int(raw.decode()) / 100.0)


@pytest.fixture
def samples_factory():
    return FakeSamples


@pytest.fixture
def fake_samples():
    return FakeSamples()


@pytest.fixture
def player(engine, fake_samples):
    cache = SampleCache(fake_samples.fetch, fake_samples.decode, max_workers=4)
    return PianoPlayer(engine, cache=cache)


@pytest.fixture
def ready_player(player):
    assert player.init()
    return player
