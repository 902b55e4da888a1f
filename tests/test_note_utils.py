"""Tests for pitch spelling, interval naming and key arithmetic."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

note_utils = importlib.import_module("cantus_generator.note_utils")
Pitch = note_utils.Pitch
Key = note_utils.Key


def p(name):
    return Pitch.from_name(name)


def test_note_to_midi_boundaries():
    """``note_to_midi`` accepts the full MIDI range and rejects values beyond it."""

    assert note_utils.note_to_midi("C4") == 60
    assert note_utils.note_to_midi("C-1") == 0
    assert note_utils.note_to_midi("G9") == 127
    with pytest.raises(ValueError):
        note_utils.note_to_midi("G#9")


def test_invalid_note_name_logs_and_raises(caplog):
    """Malformed names raise ``ValueError`` and are logged."""

    with pytest.raises(ValueError):
        Pitch.from_name("H4")
    assert "Invalid note format" in caplog.text


def test_pitch_parsing_and_naming():
    """Accidentals are parsed into signed offsets and written back unchanged."""

    bb = p("Bb4")
    assert (bb.letter, bb.accidental, bb.octave) == ("B", -1, 4)
    assert bb.name == "Bb4"
    assert bb.midi == 70
    assert p("f#3").name == "F#3"


@pytest.mark.parametrize(
    "low, high, expected",
    [
        ("E4", "F4", "m2"),
        ("C4", "E4", "M3"),
        ("F4", "B4", "A4"),
        ("B3", "F4", "d5"),
        ("C4", "G4", "P5"),
        ("E4", "C5", "m6"),
        ("C4", "C5", "P8"),
    ],
)
def test_interval_names(low, high, expected):
    """Interval names carry quality and diatonic size in either direction."""

    assert p(low).interval(p(high)) == expected
    assert p(high).interval(p(low)) == expected


def test_interval_size_is_diatonic():
    assert p("C4").interval_size(p("C4")) == 1
    assert p("C4").interval_size(p("E4")) == 3
    assert p("G4").interval_size(p("C4")) == 5


def test_key_spelling_uses_signature():
    """Scale degrees follow the key signature of the mode."""

    assert Key(p("F4"), "major").interval_from_pitch(p("F4"), 4) == p("Bb4")
    assert Key(p("G4"), "major").spelling["F"] == 1
    assert all(acc == 0 for acc in Key(p("D4"), "dorian").spelling.values())
    assert all(acc == 0 for acc in Key(p("E4"), "phrygian").spelling.values())


def test_interval_from_pitch_moves_by_signed_size():
    key = Key(p("C4"), "major")
    assert key.interval_from_pitch(p("C4"), 2) == p("D4")
    assert key.interval_from_pitch(p("C4"), -2) == p("B3")
    assert key.interval_from_pitch(p("C4"), 8) == p("C5")
    assert key.interval_from_pitch(p("C4"), -8) == p("C3")
    assert key.interval_from_pitch(p("C4"), 1) == p("C4")
    with pytest.raises(ValueError):
        key.interval_from_pitch(p("C4"), 0)


def test_key_membership():
    key = Key(p("C4"), "major")
    assert key.contains(p("F4"))
    assert not key.contains(p("F#4"))


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        Key(p("C4"), "bogus")


def test_key_str_omits_octave():
    assert str(Key(p("F#4"), "minor")) == "F# minor"


def test_public_names_are_the_pitch_and_key_helpers():
    """Only the helpers the search and MIDI export use are exported."""

    assert sorted(note_utils.__all__) == ["Key", "MODE_PATTERNS", "Pitch", "note_to_midi"]
    for name in ("midi_to_note", "get_interval", "NOTES"):
        assert not hasattr(note_utils, name)
    assert not hasattr(Key, "degree")
