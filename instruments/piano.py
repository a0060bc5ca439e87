"""
Sampled piano: 88 pre-decoded notes, A0 (21) to C8 (108).

    engine = AudioEngine()
    engine.start()
    piano = PianoPlayer(engine, config=PianoConfig(sounds_path="piano_sounds/"))
    if piano.init():
        stop = piano.play_chord(["C4", "E4", "G4"], duration=1.5)
        ...
        stop()

Playing never raises: anything that cannot sound (not loaded yet, unknown
name, pitch outside the keyboard) returns a falsy no-op stopper.
"""
import logging
import threading
from enum import Enum, auto
from typing import Callable, Iterable, Optional, Union

from audio.engine import AudioEngine
from samples.cache import SampleCache
from samples.fetch import make_sample_source
from .config import PianoConfig
from .pitch import note_name_to_pitch
from .polyphonic import SILENT, ChordHandle, VoiceHandle, VoiceRegistry
from .voice import SampleVoice

logger = logging.getLogger(__name__)

Note = Union[int, str]


class PlayerState(Enum):
    UNINITIALIZED = auto()
    LOADING = auto()
    READY = auto()
    FAILED = auto()


class PianoPlayer:
    def __init__(self, engine: AudioEngine,
                 cache: Optional[SampleCache] = None,
                 config: Optional[PianoConfig] = None,
                 registry: Optional[VoiceRegistry] = None):
        self.config = config if config is not None else PianoConfig()
        self.engine = engine
        if cache is None:
            cache = SampleCache(
                make_sample_source(self.config.sounds_path, self.config.extension),
                engine.decode,
                lowest_pitch=self.config.lowest_pitch,
                sample_count=self.config.sample_count,
                max_workers=self.config.max_workers,
            )
        self.cache = cache
        self.registry = registry if registry is not None else VoiceRegistry()

        self._state = PlayerState.UNINITIALIZED
        self._lock = threading.Lock()

    ###########################################################################
    ##                              LIFECYCLE                                ##
    ###########################################################################
    @property
    def state(self) -> PlayerState:
        return self._state

    def is_ready(self) -> bool:
        return self._state is PlayerState.READY

    def init(self, on_ready: Optional[Callable[[], None]] = None,
             on_error: Optional[Callable[[Exception], None]] = None) -> bool:
        """
        Load every sample; blocks until done. Exactly one of `on_ready` /
        `on_error(exc)` is called. Returns readiness.
        """
        with self._lock:
            if self._state in (PlayerState.LOADING, PlayerState.READY):
                logger.warning("init() ignored, player is %s", self._state.name)
                return self.is_ready()
            self._state = PlayerState.LOADING

        try:
            self.cache.load()
        except Exception as e:
            self._state = PlayerState.FAILED
            logger.error("piano failed to initialize: %s", e)
            if on_error:
                on_error(e)
            return False

        self._state = PlayerState.READY
        logger.info("piano ready (%d samples)", len(self.cache))
        if on_ready:
            on_ready()
        return True

    def init_in_background(self, on_ready: Optional[Callable[[], None]] = None,
                           on_error: Optional[Callable[[Exception], None]] = None) -> threading.Thread:
        th = threading.Thread(target=self.init, args=(on_ready, on_error),
                              name="PianoInit", daemon=True)
        th.start()
        return th

    ###########################################################################
    ##                                PLAYING                                ##
    ###########################################################################
    def play_pitch(self, pitch: int, duration: Optional[float] = None):
        if not self.is_ready():
            return SILENT
        buf = self.cache.lookup(pitch)
        if buf is None:
            return SILENT

        voice = SampleVoice(self.engine, buf, pitch,
                            fade_time=self.config.fade_time,
                            end_margin=self.config.end_margin,
                            release_delay=self.config.release_delay)
        voice.on_finished = self.registry.deregister
        # register first: a very short sample may end before start() returns
        self.registry.register(voice)
        try:
            voice.start(duration)
        except Exception as e:
            self.registry.deregister(voice)
            logger.error("could not start %r: %s", voice, e)
            return SILENT
        return VoiceHandle(voice, self.registry)

    def play_by_name(self, name: str, duration: Optional[float] = None):
        pitch = note_name_to_pitch(name)
        if pitch is None:
            return SILENT
        return self.play_pitch(pitch, duration)

    def play_note(self, note: Note, duration: Optional[float] = None):
        if isinstance(note, str):
            return self.play_by_name(note, duration)
        return self.play_pitch(note, duration)

    def play_chord(self, notes: Iterable[Note], duration: Optional[float] = None) -> ChordHandle:
        """Members that cannot sound are skipped."""
        handles = []
        for n in notes:
            h = self.play_note(n, duration)
            if h:
                handles.append(h)
        return ChordHandle(handles)

    def stop_all(self) -> int:
        return self.registry.stop_all()

    def num_active_voices(self) -> int:
        return self.registry.num_active_voices()
