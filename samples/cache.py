import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, Optional, Tuple

from audio.decode import SampleBuffer
from instruments.pitch import (LOWEST_PITCH, SAMPLE_COUNT,
                               pitch_to_sample_index, sample_index_to_pitch)
from samples.fetch import SampleSource

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes], SampleBuffer]


class SampleLoadError(Exception):
    """Fetching or decoding one sample failed; the whole load is void."""

    def __init__(self, index: int, cause: BaseException):
        super().__init__(f"sample {index} failed to load: {cause!r}")
        self.index = index
        self.cause = cause


class SampleCache:
    """
    pitch -> decoded SampleBuffer for the whole keyboard.

    `load()` fetches and decodes every sample concurrently and publishes the
    result only if all of them succeeded. After that the mapping is never
    mutated, so lookups need no locking.
    """

    def __init__(self, fetch: SampleSource, decode: Decoder,
                 lowest_pitch: int = LOWEST_PITCH,
                 sample_count: int = SAMPLE_COUNT,
                 max_workers: int = 8):
        self._fetch = fetch
        self._decode = decode
        self.lowest_pitch = int(lowest_pitch)
        self.sample_count = int(sample_count)
        self.max_workers = int(max_workers)

        self._buffers: Dict[int, SampleBuffer] = {}
        self._loaded = threading.Event()

    @property
    def loaded(self) -> bool:
        return self._loaded.is_set()

    def _load_one(self, index: int) -> Tuple[int, SampleBuffer]:
        try:
            raw = self._fetch(index)
            buf = self._decode(raw)
        except Exception as e:
            raise SampleLoadError(index, e) from e
        return sample_index_to_pitch(index, self.lowest_pitch, self.sample_count), buf

    def load(self) -> None:
        """
        Fetch + decode every sample in parallel and block until all are
        settled. If any failed, raises SampleLoadError for the lowest failing
        index and leaves the cache empty.
        """
        logger.info("loading %d samples (%d workers)", self.sample_count, self.max_workers)
        loaded: Dict[int, SampleBuffer] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="SampleLoader") as pool:
            futures = [pool.submit(self._load_one, i) for i in range(1, self.sample_count + 1)]
            done, _ = wait(futures)

            errors = [f.exception() for f in done if f.exception() is not None]
            if errors:
                first = min(errors, key=lambda e: e.index)
                logger.error("sample load aborted: %s", first)
                raise first

            for f in done:
                pitch, buf = f.result()
                loaded[pitch] = buf

        self._buffers = loaded
        self._loaded.set()
        logger.info("loaded %d samples", len(loaded))

    def lookup(self, pitch: int) -> Optional[SampleBuffer]:
        if pitch_to_sample_index(pitch, self.lowest_pitch, self.sample_count) is None:
            return None
        return self._buffers.get(pitch)

    def __len__(self) -> int:
        return len(self._buffers)

    def __contains__(self, pitch) -> bool:
        return self.lookup(pitch) is not None
