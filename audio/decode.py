import io
from dataclasses import dataclass

import numpy as np
import soundfile as sf

from audio.dsp import match_channels, resample_linear


@dataclass(frozen=True)
class SampleBuffer:
    """
    Decoded, read-only audio for one pitch.
    `data` is float32 with shape (frames, channels) at `sample_rate`.
    The same buffer may back any number of simultaneous voices.
    """
    data: np.ndarray
    sample_rate: int

    def __len__(self) -> int:
        return int(self.data.shape[0])

    @property
    def channels(self) -> int:
        return int(self.data.shape[1])

    @property
    def duration(self) -> float:
        return len(self) / float(self.sample_rate)


def decode_sample(raw: bytes, sample_rate: int, channels: int) -> SampleBuffer:
    """
    Decode an encoded file (mp3, wav, flac, ...) held in memory into a buffer
    matching the engine's rate and channel count.
    """
    data, sr = sf.read(io.BytesIO(raw), dtype='float32', always_2d=True)
    data = match_channels(data, channels)
    data = resample_linear(data, int(sr), int(sample_rate))
    data = np.ascontiguousarray(data, dtype=np.float32)
    data.setflags(write=False)
    return SampleBuffer(data=data, sample_rate=int(sample_rate))
