from __future__ import annotations
import bisect
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, List, Optional

import numpy as np

from audio.decode import SampleBuffer

if TYPE_CHECKING:
    from audio.engine import AudioEngine

logger = logging.getLogger(__name__)


class InvalidStateError(RuntimeError):
    """A node was asked to do something its lifecycle no longer allows."""


class AutomationKind(Enum):
    SET = auto()           # jump to value at time
    LINEAR_RAMP = auto()   # linear from previous event, reaching value at time


@dataclass(frozen=True)
class AutomationEvent:
    kind: AutomationKind
    time: float
    value: float


class GainParam:
    """
    Sample-accurate gain automation on the engine clock.

    Events are kept sorted by time. Between two events the value holds
    (after a SET) or moves linearly (towards a LINEAR_RAMP). Before the first
    event the default value applies; after the last one its value holds.
    """

    def __init__(self, engine: "AudioEngine", default: float = 1.0):
        self._engine = engine
        self.default = float(default)
        self._events: List[AutomationEvent] = []

    # ---- scheduling ----
    def set_value_at_time(self, value: float, when: float) -> None:
        with self._engine.lock:
            self._insert(AutomationEvent(AutomationKind.SET, float(when), float(value)))

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        end_time = float(end_time)
        with self._engine.lock:
            if not self._events or self._events[0].time > end_time:
                # ramp needs a starting point: anchor the current value now
                now = self._engine.current_time
                self._insert(AutomationEvent(AutomationKind.SET, now, self.value_at(now)))
            self._insert(AutomationEvent(AutomationKind.LINEAR_RAMP, end_time, float(value)))

    def cancel_scheduled_values(self, when: float) -> None:
        """Drop every event at or after `when`."""
        with self._engine.lock:
            self._events = [e for e in self._events if e.time < when]

    def _insert(self, ev: AutomationEvent) -> None:
        # same-time events keep insertion order
        i = bisect.bisect_right([e.time for e in self._events], ev.time)
        self._events.insert(i, ev)

    # ---- reading ----
    @property
    def value(self) -> float:
        """Value at the engine's current time."""
        with self._engine.lock:
            return self.value_at(self._engine.current_time)

    def value_at(self, t: float) -> float:
        return float(self.render(np.array([t], dtype=np.float64))[0])

    @property
    def events(self) -> List[AutomationEvent]:
        with self._engine.lock:
            return list(self._events)

    def prune(self, t: float) -> None:
        """Forget events that can no longer influence values at or after `t`."""
        keep_from = 0
        for i, e in enumerate(self._events):
            if e.time <= t:
                keep_from = i
            else:
                break
        if keep_from:
            del self._events[:keep_from]

    def render(self, times: np.ndarray) -> np.ndarray:
        out = np.full(times.shape[0], self.default, dtype=np.float64)
        prev_t, prev_v = -np.inf, self.default

        for ev in self._events:
            mask = (times >= prev_t) & (times < ev.time)
            if ev.kind is AutomationKind.LINEAR_RAMP and np.isfinite(prev_t) and ev.time > prev_t:
                out[mask] = prev_v + (ev.value - prev_v) * (times[mask] - prev_t) / (ev.time - prev_t)
            else:
                out[mask] = prev_v
            prev_t, prev_v = ev.time, ev.value

        out[times >= prev_t] = prev_v
        return out.astype(np.float32)


class OutputPath:
    """
    One decoded buffer played once through its own gain stage into the
    engine output. Created by AudioEngine.create_output_path(); single use.
    """

    def __init__(self, engine: "AudioEngine", buffer: SampleBuffer):
        self._engine = engine
        self.buffer = buffer
        self.gain = GainParam(engine)
        self.on_ended: Optional[Callable[[], None]] = None

        self._start_frame: Optional[int] = None
        self._stop_frame: Optional[int] = None
        self._ended = False

    # ---- control ----
    def start(self, when: float = 0.0) -> None:
        with self._engine.lock:
            if self._start_frame is not None:
                raise InvalidStateError("output path already started")
            self._start_frame = max(self._engine.frame, self._to_frame(when))
            self._engine._connect(self)

    def stop(self, when: float = 0.0) -> None:
        """Schedule (or reschedule) the hard stop. The latest call wins."""
        with self._engine.lock:
            if self._start_frame is None:
                raise InvalidStateError("stop() called before start()")
            if self._ended:
                raise InvalidStateError("output path already ended")
            self._stop_frame = max(self._start_frame, self._to_frame(when))

    # ---- state ----
    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def started(self) -> bool:
        return self._start_frame is not None

    @property
    def end_frame(self) -> Optional[int]:
        if self._start_frame is None:
            return None
        end = self._start_frame + len(self.buffer)
        if self._stop_frame is not None:
            end = min(end, self._stop_frame)
        return end

    def _to_frame(self, when: float) -> int:
        return int(round(float(when) * self._engine.sr))

    # ---- render (engine lock held) ----
    def render_into(self, out: np.ndarray, f0: int) -> None:
        if self._ended or self._start_frame is None:
            return
        frames = out.shape[0]
        sr = self._engine.sr
        start = self._start_frame
        end = self.end_frame

        lo = max(f0, start)
        hi = min(f0 + frames, end)
        if lo < hi:
            self.gain.prune(lo / sr)
            gain = self.gain.render(np.arange(lo, hi, dtype=np.float64) / sr)
            out[lo - f0:hi - f0] += self.buffer.data[lo - start:hi - start] * gain[:, None]

        if f0 + frames >= end:
            self._ended = True

    def _notify_ended(self) -> None:
        cb = self.on_ended
        if cb is None:
            return
        try:
            cb()
        except Exception:
            logger.exception("on_ended callback failed")
