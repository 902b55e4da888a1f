"""Pitch spelling, interval naming and key arithmetic.

This module groups helpers dealing with note representation. A
:class:`Pitch` is a spelled note (letter, accidental, octave) and a
:class:`Key` knows how to move a pitch by a diatonic interval while keeping
the result in key. The functions are separated from the search so they can be
reused by the CLI and MIDI export without pulling in the generator.

Example
-------
>>> from cantus_generator.note_utils import Key, Pitch, note_to_midi
>>> note_to_midi("C4")
60
>>> key = Key(Pitch.from_name("F4"), "major")
>>> key.interval_from_pitch(Pitch.from_name("F4"), 4).name
'Bb4'
>>> Pitch.from_name("C4").interval(Pitch.from_name("E4"))
'M3'

Design Notes
------------
- Intervals are measured in diatonic *sizes* (``2`` is a second, ``8`` an
  octave). Signed sizes move up (positive) or down (negative); ``1`` and
  ``-1`` both mean the unison.
- ``note_to_midi`` validates the ``0-127`` MIDI range and raises
  ``ValueError`` for anything outside it, while :attr:`Pitch.midi` is plain
  arithmetic so the search can reason about pitches near the boundaries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Tuple

__all__ = [
    "Pitch",
    "Key",
    "MODE_PATTERNS",
    "note_to_midi",
]

LETTERS = "CDEFGAB"

# Semitone offset of each natural letter above C.
NATURAL_SEMITONES: Dict[str, int] = {
    "C": 0,
    "D": 2,
    "E": 4,
    "F": 5,
    "G": 7,
    "A": 9,
    "B": 11,
}

_ACCIDENTALS = {"": 0, "#": 1, "##": 2, "b": -1, "bb": -2}

# Semitone offsets from the tonic for every supported mode.
MODE_PATTERNS: Dict[str, Tuple[int, ...]] = {
    "major": (0, 2, 4, 5, 7, 9, 11),
    "ionian": (0, 2, 4, 5, 7, 9, 11),
    "dorian": (0, 2, 3, 5, 7, 9, 10),
    "phrygian": (0, 1, 3, 5, 7, 8, 10),
    "lydian": (0, 2, 4, 6, 7, 9, 11),
    "mixolydian": (0, 2, 4, 5, 7, 9, 10),
    "minor": (0, 2, 3, 5, 7, 8, 10),
    "aeolian": (0, 2, 3, 5, 7, 8, 10),
}

# Semitones spanned by the major/perfect form of each simple interval size.
_REFERENCE_SEMITONES = {1: 0, 2: 2, 3: 4, 4: 5, 5: 7, 6: 9, 7: 11}
_PERFECT_SIZES = {1, 4, 5}

_NOTE_PATTERN = re.compile(r"([A-Ga-g])(##|#|bb|b)?(-?\d+)")


@dataclass(frozen=True)
class Pitch:
    """A spelled pitch in scientific pitch notation (``C4`` is middle C)."""

    letter: str
    accidental: int
    octave: int

    @classmethod
    def from_name(cls, name: str) -> "Pitch":
        """Parse ``name`` such as ``"C4"``, ``"F#3"`` or ``"Bb4"``.

        Raises
        ------
        ValueError
            If ``name`` is not a letter ``A``-``G`` followed by an optional
            accidental (``#``, ``##``, ``b``, ``bb``) and an integer octave.
        """

        match = _NOTE_PATTERN.fullmatch(name.strip())
        if not match:
            logging.error("Invalid note format: %s", name)
            raise ValueError(f"Invalid note format: {name}")
        letter, accidental, octave = match.groups()
        return cls(letter.upper(), _ACCIDENTALS[accidental or ""], int(octave))

    @property
    def name(self) -> str:
        if self.accidental >= 0:
            sign = "#" * self.accidental
        else:
            sign = "b" * -self.accidental
        return f"{self.letter}{sign}{self.octave}"

    @property
    def step(self) -> int:
        """Diatonic position counted in letter names from ``C0``."""

        return self.octave * 7 + LETTERS.index(self.letter)

    @property
    def midi(self) -> int:
        # MIDI octave numbers are offset by one relative to scientific pitch
        # notation, hence the ``+ 1``.
        return (self.octave + 1) * 12 + NATURAL_SEMITONES[self.letter] + self.accidental

    def is_lower(self, other: "Pitch") -> bool:
        return self.midi < other.midi

    def is_higher(self, other: "Pitch") -> bool:
        return self.midi > other.midi

    def interval_size(self, other: "Pitch") -> int:
        """Return the unsigned diatonic size between ``self`` and ``other``."""

        return abs(other.step - self.step) + 1

    def interval(self, other: "Pitch") -> str:
        """Return the unsigned interval name such as ``"m3"`` or ``"P5"``.

        Qualities are ``P`` (perfect), ``M``/``m`` (major/minor) and
        ``A``/``d`` (augmented/diminished, repeated for doubly altered
        intervals). Compound intervals keep their full size, e.g. ``"M9"``.
        """

        low, high = sorted((self, other), key=lambda p: (p.step, p.midi))
        size = high.step - low.step + 1
        octaves, remainder = divmod(size - 1, 7)
        simple = remainder + 1
        delta = (high.midi - low.midi) - (_REFERENCE_SEMITONES[simple] + 12 * octaves)
        if simple in _PERFECT_SIZES:
            if delta == 0:
                quality = "P"
            elif delta > 0:
                quality = "A" * delta
            else:
                quality = "d" * -delta
        else:
            if delta == 0:
                quality = "M"
            elif delta == -1:
                quality = "m"
            elif delta > 0:
                quality = "A" * delta
            else:
                quality = "d" * (-delta - 1)
        return f"{quality}{size}"

    def __str__(self) -> str:
        return self.name


@lru_cache(maxsize=None)
def _spelled_scale(letter: str, accidental: int, mode: str) -> Dict[str, int]:
    """Return ``{letter: accidental}`` for the seven degrees of a mode.

    Each degree uses the next letter name so the scale never repeats or skips
    a letter, which is what keeps diatonic arithmetic on :attr:`Pitch.step`
    consistent.
    """

    if mode not in MODE_PATTERNS:
        raise ValueError(f"Unknown mode: {mode}")
    tonic_pc = NATURAL_SEMITONES[letter] + accidental
    start = LETTERS.index(letter)
    spelling: Dict[str, int] = {}
    for degree, offset in enumerate(MODE_PATTERNS[mode]):
        name = LETTERS[(start + degree) % 7]
        target = (tonic_pc + offset) % 12
        # Wrap the difference into -6..5 so e.g. B# in C# major is +1, not -11.
        spelling[name] = (target - NATURAL_SEMITONES[name] + 6) % 12 - 6
    return spelling


@dataclass(frozen=True)
class Key:
    """Tonal context: a tonic pitch and a mode name."""

    tonic: Pitch
    mode: str

    def __post_init__(self) -> None:
        if self.mode not in MODE_PATTERNS:
            raise ValueError(f"Unknown mode: {self.mode}")

    @property
    def spelling(self) -> Dict[str, int]:
        return _spelled_scale(self.tonic.letter, self.tonic.accidental, self.mode)

    def contains(self, pitch: Pitch) -> bool:
        return self.spelling[pitch.letter] == pitch.accidental

    def pitch_at_step(self, step: int) -> Pitch:
        octave, index = divmod(step, 7)
        letter = LETTERS[index]
        return Pitch(letter, self.spelling[letter], octave)

    def interval_from_pitch(self, pitch: Pitch, size: int) -> Pitch:
        """Move ``pitch`` by the signed diatonic ``size`` within this key.

        ``2`` is one scale step up, ``-3`` a third down and ``8`` an octave
        up. ``size`` may not be ``0`` because no interval has that size.
        """

        if size == 0:
            raise ValueError("interval size must be non-zero")
        offset = size - 1 if size > 0 else size + 1
        return self.pitch_at_step(pitch.step + offset)

    def __str__(self) -> str:
        tonic = self.tonic.name.rstrip("-0123456789")
        return f"{tonic} {self.mode}"


@lru_cache(maxsize=None)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` into a MIDI number.

    Parameters
    ----------
    note:
        Note name including octave. Octaves may be negative or contain
        multiple digits.

    Returns
    -------
    int
        MIDI note number in the range ``0-127``.

    Raises
    ------
    ValueError
        If ``note`` is not properly formatted or if the computed MIDI value
        falls outside the allowed ``0-127`` range.
    """

    midi_val = Pitch.from_name(note).midi

    # Typical cases:
    #   * ``C-1`` -> 0 (valid lower boundary)
    #   * ``G9``  -> 127 (valid upper boundary)
    if not 0 <= midi_val <= 127:
        logging.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {note}"
        )

    return midi_val

