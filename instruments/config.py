from dataclasses import dataclass

from instruments.pitch import LOWEST_PITCH, SAMPLE_COUNT

FADE_TIME = 0.05       # gain ramp to silence before any hard stop
END_MARGIN = 0.01      # hard stop after a scheduled (duration) fade
RELEASE_DELAY = 0.06   # hard stop after a forced stop, must exceed FADE_TIME


@dataclass
class PianoConfig:
    """Where the samples live and how voices are faded."""
    sounds_path: str = "piano_sounds/"
    extension: str = ".mp3"
    lowest_pitch: int = LOWEST_PITCH
    sample_count: int = SAMPLE_COUNT
    fade_time: float = FADE_TIME
    end_margin: float = END_MARGIN
    release_delay: float = RELEASE_DELAY
    max_workers: int = 8

    def __post_init__(self):
        if self.fade_time <= 0:
            raise ValueError("fade_time must be positive")
        if self.release_delay <= self.fade_time:
            raise ValueError("release_delay must be longer than fade_time")
        if self.end_margin < 0:
            raise ValueError("end_margin must not be negative")
        if self.sample_count < 1:
            raise ValueError("sample_count must be at least 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
