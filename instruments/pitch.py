import re
from typing import Optional

LOWEST_PITCH = 21    # A0, sample 1
HIGHEST_PITCH = 108  # C8, sample 88
SAMPLE_COUNT = HIGHEST_PITCH - LOWEST_PITCH + 1

NOTE_TO_SEMITONE = {
    'C': 0, 'C#': 1, 'DB': 1, 'D': 2, 'D#': 3, 'EB': 3,
    'E': 4, 'F': 5, 'F#': 6, 'GB': 6, 'G': 7, 'G#': 8,
    'AB': 8, 'A': 9, 'A#': 10, 'BB': 10, 'B': 11,
}
SEMITONE_TO_NAME = ('C', 'C#', 'D', 'D#', 'E', 'F',
                    'F#', 'G', 'G#', 'A', 'A#', 'B')

_NOTE_NAME = re.compile(r"([A-Ga-g])([#b]?)(-?\d+)", re.ASCII)


def note_name_to_pitch(name: str) -> Optional[int]:
    """
    Parse "C4", "C#4", "Db3", "a0"... into a MIDI pitch (C4 = 60).
    Returns None for anything that does not follow <letter>[#|b]<octave>.
    """
    if not isinstance(name, str):
        return None
    m = _NOTE_NAME.fullmatch(name)
    if not m:
        return None
    letter, acc, octave = m.groups()
    semi = NOTE_TO_SEMITONE.get(letter.upper() + acc.upper())
    if semi is None:
        return None
    return (int(octave) + 1) * 12 + semi


def pitch_to_sample_index(pitch: int,
                          lowest: int = LOWEST_PITCH,
                          count: int = SAMPLE_COUNT) -> Optional[int]:
    """1-based index of the sample backing `pitch`, None when out of range."""
    if not isinstance(pitch, int):
        return None
    index = pitch - lowest + 1
    if index < 1 or index > count:
        return None
    return index


def sample_index_to_pitch(index: int,
                          lowest: int = LOWEST_PITCH,
                          count: int = SAMPLE_COUNT) -> Optional[int]:
    if not isinstance(index, int) or index < 1 or index > count:
        return None
    return lowest + index - 1


def pitch_to_note_name(pitch: int) -> str:
    # sharps only: 61 -> "C#4"
    return f"{SEMITONE_TO_NAME[pitch % 12]}{pitch // 12 - 1}"
