import logging
import threading
from typing import Iterator, List, Sequence, Set

from .voice import SampleVoice

logger = logging.getLogger(__name__)


class VoiceRegistry:
    """
    Thread-safe, unordered set of sounding voices.
    Removal is idempotent: natural end and a global stop may both try to
    deregister the same voice.
    """

    def __init__(self):
        self._voices: Set[SampleVoice] = set()
        self._lock = threading.Lock()

    def register(self, voice: SampleVoice) -> None:
        with self._lock:
            self._voices.add(voice)

    def deregister(self, voice: SampleVoice) -> bool:
        """True if the voice was present."""
        with self._lock:
            if voice in self._voices:
                self._voices.remove(voice)
                return True
            return False

    def stop_all(self) -> int:
        with self._lock:
            voices = list(self._voices)
            self._voices.clear()
        # stop outside the lock: a voice ending now calls deregister()
        for v in voices:
            v.stop()
        if voices:
            logger.debug("stopped %d voices", len(voices))
        return len(voices)

    def num_active_voices(self) -> int:
        with self._lock:
            return len(self._voices)

    def __len__(self) -> int:
        return self.num_active_voices()

    def __contains__(self, voice) -> bool:
        with self._lock:
            return voice in self._voices

    def __iter__(self) -> Iterator[SampleVoice]:
        with self._lock:
            return iter(list(self._voices))


class VoiceHandle:
    """Stops exactly one voice. Calling it more than once is harmless."""

    def __init__(self, voice: SampleVoice, registry: VoiceRegistry):
        self.voice = voice
        self._registry = registry

    def stop(self) -> None:
        self.voice.stop()
        self._registry.deregister(self.voice)

    def __call__(self) -> None:
        self.stop()

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"VoiceHandle({self.voice!r})"


class _SilentHandle:
    """Returned when nothing was played; falsy, stopping it does nothing."""

    def stop(self) -> None:
        pass

    def __call__(self) -> None:
        pass

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "SILENT"


SILENT = _SilentHandle()


class ChordHandle:
    """Stops every voice that actually started as part of a chord."""

    def __init__(self, handles: Sequence[VoiceHandle]):
        self.handles: List[VoiceHandle] = list(handles)

    def stop(self) -> None:
        for h in self.handles:
            h.stop()

    def __call__(self) -> None:
        self.stop()

    def __len__(self) -> int:
        return len(self.handles)

    def __bool__(self) -> bool:
        return bool(self.handles)

    def __repr__(self) -> str:
        return f"ChordHandle({[h.voice for h in self.handles]!r})"
