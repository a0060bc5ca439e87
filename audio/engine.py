import logging
import threading
from typing import List

import numpy as np

from audio.decode import SampleBuffer, decode_sample
from audio.dsp import soft_clip
from audio.nodes import OutputPath

logger = logging.getLogger(__name__)


class AudioEngine:
    """
    Block renderer with a virtual clock.

    The clock is the number of frames rendered so far divided by the sample
    rate. Output paths are scheduled against it and mixed in `render()`,
    which the sounddevice callback drives in real time. Tests call
    `render()` directly without opening a device.
    """

    def __init__(self, sr=44100, blocksize=256, channels=2,
                 pre_gain=1.0, limiter_drive=1.3, device=None):
        self.sr = int(sr)
        self.blocksize = int(blocksize)
        self.channels = int(channels)
        self.device = device

        # processing
        self.pre_gain = float(pre_gain)
        self.limiter_drive = float(limiter_drive)

        # graph + clock, shared with the nodes
        self.lock = threading.RLock()
        self._frame = 0
        self._paths: List[OutputPath] = []

        # coordinated shutdown
        self._stop_evt = threading.Event()
        self.stream = None

    ###########################################################################
    ##                                 CLOCK                                 ##
    ###########################################################################
    @property
    def frame(self) -> int:
        return self._frame

    @property
    def current_time(self) -> float:
        return self._frame / self.sr

    ###########################################################################
    ##                                 GRAPH                                 ##
    ###########################################################################
    def decode(self, raw: bytes) -> SampleBuffer:
        return decode_sample(raw, self.sr, self.channels)

    def create_output_path(self, buffer: SampleBuffer) -> OutputPath:
        if buffer.sample_rate != self.sr:
            raise ValueError(f"buffer rate {buffer.sample_rate} Hz != engine rate {self.sr} Hz")
        return OutputPath(self, buffer)

    def _connect(self, path: OutputPath) -> None:
        with self.lock:
            self._paths.append(path)

    def num_active_paths(self) -> int:
        with self.lock:
            return len(self._paths)

    ###########################################################################
    ##                              LIFECYCLE                                ##
    ###########################################################################
    def start(self):
        import sounddevice as sd

        self._stop_evt.clear()
        self.stream = sd.OutputStream(
            channels=self.channels,
            samplerate=self.sr,
            blocksize=self.blocksize,
            device=self.device,
            callback=self._cb,
            latency='low'
        )
        self.stream.start()
        logger.info("started: %d Hz, %d ch, block %d", self.sr, self.channels, self.blocksize)

    def stop(self):
        self._stop_evt.set()
        if self.stream is None:
            return

        # abort() is immediate; stop() drains
        for action in ("abort", "stop", "close"):
            try:
                getattr(self.stream, action)()
            except Exception as e:
                logger.debug("stream.%s() failed: %s", action, e)
        self.stream = None
        logger.info("stopped at t=%.3fs", self.current_time)

    @property
    def running(self) -> bool:
        return self.stream is not None and not self._stop_evt.is_set()

    ###########################################################################
    ##                               RENDERING                               ##
    ###########################################################################
    def render(self, frames: int) -> np.ndarray:
        """
        Mix the next `frames` frames of every started path and advance the
        clock. End notifications fire after the lock is released.
        """
        mix = np.zeros((frames, self.channels), dtype=np.float32)
        with self.lock:
            f0 = self._frame
            alive: List[OutputPath] = []
            ended: List[OutputPath] = []
            for p in self._paths:
                p.render_into(mix, f0)
                (ended if p.ended else alive).append(p)
            self._paths = alive
            self._frame = f0 + frames

        for p in ended:
            p._notify_ended()
        return mix

    def _cb(self, outdata, frames, time_info, status):
        if status:
            logger.warning("stream status: %s", status)
        # if we are stopping, output silence and return—do not do work
        if self._stop_evt.is_set():
            outdata.fill(0)
            return

        mix = self.render(frames)

        if self.pre_gain != 1.0:
            mix *= self.pre_gain

        # limiter
        mix = soft_clip(mix, drive=self.limiter_drive)
        peak = float(np.max(np.abs(mix))) if mix.size else 0.0
        if peak > 1.0:
            mix /= peak

        outdata[:] = mix
