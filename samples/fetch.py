"""
Byte sources for the sample set.

Sample `i` (1-based, 1 = A0 ... 88 = C8) lives at `<base><i><extension>`,
e.g. `piano_sounds/1.mp3`. A source is any callable `(index) -> bytes`.
"""
import logging
import urllib.request
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

SampleSource = Callable[[int], bytes]

DEFAULT_EXTENSION = ".mp3"


class DirectorySampleSource:
    def __init__(self, base_path: Union[str, Path], extension: str = DEFAULT_EXTENSION):
        self.base_path = Path(base_path)
        self.extension = extension

    def path_for(self, index: int) -> Path:
        return self.base_path / f"{int(index)}{self.extension}"

    def __call__(self, index: int) -> bytes:
        return self.path_for(index).read_bytes()

    def __repr__(self) -> str:
        return f"DirectorySampleSource({str(self.base_path)!r}, {self.extension!r})"


class HttpSampleSource:
    # No timeout by default: a stalled request keeps the load pending.
    def __init__(self, base_url: str, extension: str = DEFAULT_EXTENSION,
                 timeout: Optional[float] = None):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.extension = extension
        self.timeout = timeout

    def url_for(self, index: int) -> str:
        return f"{self.base_url}{int(index)}{self.extension}"

    def __call__(self, index: int) -> bytes:
        url = self.url_for(index)
        with urllib.request.urlopen(url, timeout=self.timeout) as resp:
            data = resp.read()
        logger.debug("fetched %s (%d bytes)", url, len(data))
        return data

    def __repr__(self) -> str:
        return f"HttpSampleSource({self.base_url!r}, {self.extension!r})"


def make_sample_source(location: Union[str, Path],
                       extension: str = DEFAULT_EXTENSION) -> SampleSource:
    """http(s) URLs are fetched over the network, anything else from disk."""
    if isinstance(location, str) and location.lower().startswith(("http://", "https://")):
        return HttpSampleSource(location, extension)
    return DirectorySampleSource(location, extension)
