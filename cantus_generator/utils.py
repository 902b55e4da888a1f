"""Validation helpers shared by the search driver, the CLI and batch jobs.

Each helper raises ``ValueError`` with a message suitable for showing to an
end user, so the CLI can log it verbatim and exit.

Usage Example
-------------
>>> from cantus_generator.utils import canonical_mode, parse_seed
>>> canonical_mode("Dorian")
'dorian'
>>> str(parse_seed("G4", "mixolydian"))
'G4'
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Sequence

from .cantus import CantusFirmus
from .note_utils import MODE_PATTERNS, Key, Pitch

__all__ = ["canonical_mode", "parse_seed", "validate_search_config"]

# Shortest line for which both the penultimate (degree 2) and final (tonic)
# rules can be applied after the free second note.
MIN_TARGET_LENGTH = 4


@lru_cache(maxsize=None)
def canonical_mode(mode: str) -> str:
    """Return the lower-case mode name or raise ``ValueError`` if unknown."""

    name = mode.strip().lower()
    if name not in MODE_PATTERNS:
        logging.error("Unknown mode: %s", mode)
        raise ValueError(
            f"Unknown mode: {mode}. Choose from {', '.join(sorted(MODE_PATTERNS))}"
        )
    return name


def parse_seed(tonic: str, mode: str, notes: Sequence[str] = ()) -> CantusFirmus:
    """Build a seed sequence from note names.

    @param tonic (str): Tonic pitch including octave, e.g. ``"C4"``.
    @param mode (str): Mode name, case-insensitive.
    @param notes (Sequence[str]): Optional further notes following the tonic.
    @returns CantusFirmus: The seed sequence.
    """

    cantus = CantusFirmus.start(Pitch.from_name(tonic), canonical_mode(mode))
    for name in notes:
        cantus = cantus.add_note(Pitch.from_name(name))
    return cantus


def validate_search_config(
    seed: CantusFirmus, target_length: int, max_range: int, start_branches: int = 1
) -> None:
    """Raise ``ValueError`` when the search parameters cannot be satisfied.

    Parameters
    ----------
    seed:
        Starting sequence. Must begin on the tonic of its key and contain only
        pitches from that key.
    target_length:
        Number of notes in the finished line. Must be at least ``4`` and
        longer than the seed.
    max_range:
        Largest allowed diatonic size between lowest and highest note.
    start_branches:
        How many second notes the search may explore. Must be positive.
    """

    if target_length < MIN_TARGET_LENGTH:
        raise ValueError(f"target_length must be at least {MIN_TARGET_LENGTH}")
    if max_range < 1:
        raise ValueError("max_range must be a positive integer")
    if start_branches < 1:
        raise ValueError("start_branches must be a positive integer")
    # CantusFirmus itself rejects seeds that do not start on the tonic.
    key: Key = seed.key
    for pitch in seed:
        if not key.contains(pitch):
            raise ValueError(f"{pitch} is not in {key}")
    if len(seed) >= target_length:
        raise ValueError("seed must be shorter than target_length")
