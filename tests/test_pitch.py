import pytest

from instruments.pitch import (HIGHEST_PITCH, LOWEST_PITCH, SAMPLE_COUNT,
                               note_name_to_pitch, pitch_to_note_name,
                               pitch_to_sample_index, sample_index_to_pitch)


def test_keyboard_range():
    assert (LOWEST_PITCH, HIGHEST_PITCH, SAMPLE_COUNT) == (21, 108, 88)


def test_sample_index_is_a_bijection_onto_1_88():
    indices = [pitch_to_sample_index(p) for p in range(LOWEST_PITCH, HIGHEST_PITCH + 1)]
    assert indices == list(range(1, 89))
    assert pitch_to_sample_index(LOWEST_PITCH) == 1
    assert pitch_to_sample_index(HIGHEST_PITCH) == 88


@pytest.mark.parametrize("pitch", [LOWEST_PITCH - 1, HIGHEST_PITCH + 1, 0, -5, 127])
def test_out_of_range_pitch_has_no_sample(pitch):
    assert pitch_to_sample_index(pitch) is None


def test_non_integer_pitch_has_no_sample():
    assert pitch_to_sample_index(60.5) is None
    assert pitch_to_sample_index("60") is None


def test_sample_index_to_pitch_inverts():
    for p in range(LOWEST_PITCH, HIGHEST_PITCH + 1):
        assert sample_index_to_pitch(pitch_to_sample_index(p)) == p
    assert sample_index_to_pitch(0) is None
    assert sample_index_to_pitch(89) is None


@pytest.mark.parametrize("name, pitch", [
    ("A0", 21),
    ("C8", 108),
    ("C4", 60),
    ("A4", 69),
    ("c4", 60),
    ("Bb3", 58),
    ("bb3", 58),
    ("B3", 59),
    ("C-1", 0),
])
def test_note_names(name, pitch):
    assert note_name_to_pitch(name) == pitch


def test_enharmonic_spellings_agree():
    assert note_name_to_pitch("C#4") == note_name_to_pitch("Db4") == 61
    assert note_name_to_pitch("G#2") == note_name_to_pitch("Ab2")


@pytest.mark.parametrize("name", ["H4", "C", "C#", "4C", "", "C##4", "Cb4", "E#4", "C4 ", "Cx4", None, 60])
def test_malformed_names_resolve_to_none(name):
    assert note_name_to_pitch(name) is None


def test_pitch_to_note_name():
    assert pitch_to_note_name(60) == "C4"
    assert pitch_to_note_name(61) == "C#4"
    assert pitch_to_note_name(21) == "A0"
    assert pitch_to_note_name(108) == "C8"
