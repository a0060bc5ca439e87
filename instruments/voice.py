import logging
import math
from typing import Callable, Optional

from audio.decode import SampleBuffer
from audio.engine import AudioEngine
from audio.nodes import InvalidStateError, OutputPath
from instruments.config import END_MARGIN, FADE_TIME, RELEASE_DELAY
from instruments.pitch import pitch_to_note_name

logger = logging.getLogger(__name__)


class SampleVoice:
    """
    One playback of a decoded sample through its own gain envelope.

    Gain is held at 1 and only ever ramped down: over the last `fade_time`
    seconds of a requested duration, or over `fade_time` after a forced
    stop. The hard stop is always scheduled after the ramp has landed.
    """

    def __init__(self, engine: AudioEngine, buffer: SampleBuffer, pitch: Optional[int] = None,
                 fade_time: float = FADE_TIME, end_margin: float = END_MARGIN,
                 release_delay: float = RELEASE_DELAY):
        self.engine = engine
        self.buffer = buffer
        self.pitch = pitch
        self.fade_time = float(fade_time)
        self.end_margin = float(end_margin)
        self.release_delay = float(release_delay)

        # called once with this voice when playback has ended
        self.on_finished: Optional[Callable[["SampleVoice"], None]] = None

        self._path: Optional[OutputPath] = None
        self._stopping = False
        self._finished = False

    def start(self, duration: Optional[float] = None) -> None:
        if self._path is not None:
            raise InvalidStateError("a voice can only be started once")
        # None, non-positive and infinite durations all mean "play it out"
        timed = bool(duration) and math.isfinite(duration) and duration > 0

        path = self.engine.create_output_path(self.buffer)
        path.on_ended = self._ended
        with self.engine.lock:
            now = self.engine.current_time
            path.gain.set_value_at_time(1.0, now)
            path.start(now)

            if timed:
                end = now + float(duration)
                path.gain.set_value_at_time(1.0, max(now, end - self.fade_time))
                path.gain.linear_ramp_to_value_at_time(0.0, end)
                path.stop(end + self.end_margin)
            self._path = path

        logger.debug("start %r duration=%s", self, duration)

    def stop(self) -> None:
        """Fade out from the current gain and stop. Safe to call repeatedly."""
        path = self._path
        if path is None or self._stopping or self._finished:
            return
        self._stopping = True

        try:
            with self.engine.lock:
                now = self.engine.current_time
                current = path.gain.value
                path.gain.cancel_scheduled_values(now)
                path.gain.set_value_at_time(current, now)
                path.gain.linear_ramp_to_value_at_time(0.0, now + self.fade_time)
                path.stop(now + self.release_delay)
        except InvalidStateError as e:
            # ended between our check and the stop: nothing left to silence
            logger.debug("stop %r ignored: %s", self, e)
            return

        logger.debug("stop %r at t=%.3f", self, now)

    def _ended(self) -> None:
        self._finished = True
        cb = self.on_finished
        if cb is not None:
            cb(self)

    # ---- state ----
    @property
    def path(self) -> Optional[OutputPath]:
        return self._path

    @property
    def stopping(self) -> bool:
        return self._stopping

    def finished(self) -> bool:
        return self._finished

    def __repr__(self) -> str:
        name = pitch_to_note_name(self.pitch) if self.pitch is not None else "?"
        return f"<SampleVoice {name}>"
