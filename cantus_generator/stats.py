"""Derived statistics for a (partial) cantus firmus.

:func:`compute_stats` summarises a sequence snapshot into the numbers the
scorer and the candidate generator consult: the pitch range, how often each
pitch and interval size was used, and the shape of the current directional
run ("outline").

Example
-------
>>> from cantus_generator.cantus import CantusFirmus
>>> from cantus_generator.note_utils import Pitch
>>> cf = CantusFirmus.start(Pitch.from_name("C4"), "major")
>>> for name in ["D4", "E4", "G4"]:
...     cf = cf.add_note(Pitch.from_name(name))
>>> stats = compute_stats(cf)
>>> stats.range, stats.unique_notes, stats.leaps
(5, 4, 1)

Design Notes
------------
- Interval sizes are diatonic (``2`` is a second) and unsigned; direction is
  tracked separately through ``is_ascending``.
- Note weights are the usage counts of every scale step between the lowest
  and highest pitch, unused steps included, so a line that hammers one pitch
  while skipping others shows a large standard deviation.
- NumPy is used for the per-step arithmetic. The statistics object is built
  once per sequence and never mutated afterwards.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict

import numpy as np

from .cantus import CantusFirmus
from .note_utils import Pitch

__all__ = ["NoteWeights", "CantusStats", "compute_stats"]


@dataclass(frozen=True)
class NoteWeights:
    """Mean and population standard deviation of per-step usage counts."""

    mean: float
    std_deviation: float


@dataclass
class CantusStats:
    """Summary of a sequence used for scoring and constraint checks."""

    lowest_note: Pitch
    highest_note: Pitch
    note_usage: Dict[Pitch, int]
    times_notes_used: Counter
    interval_usage: Counter
    range: int
    unique_notes: int
    last_interval: int
    last_outline_length: int
    outlined_interval: str
    outlined_interval_size: int
    is_ascending: bool
    leaps: int
    note_weights: NoteWeights


def compute_stats(cantus: CantusFirmus) -> CantusStats:
    """Return :class:`CantusStats` for ``cantus``.

    ``times_notes_used[k]`` counts the distinct pitches used exactly ``k``
    times, and both counters return ``0`` for missing keys. For a one-note
    sequence ``last_interval`` is ``0``, the outline is the note itself and
    the direction defaults to ascending.
    """

    notes = cantus.notes
    steps = np.fromiter((p.step for p in notes), dtype=np.int64, count=len(notes))

    low_idx = int(np.argmin(steps))
    high_idx = int(np.argmax(steps))
    lowest = notes[low_idx]
    highest = notes[high_idx]

    note_usage: Counter = Counter(notes)
    times_notes_used: Counter = Counter(note_usage.values())

    diffs = np.diff(steps)
    sizes = np.abs(diffs) + 1
    interval_usage: Counter = Counter(int(s) for s in sizes)
    leaps = int(np.count_nonzero(sizes > 2))

    if diffs.size:
        last_interval = int(sizes[-1])
        is_ascending = bool(diffs[-1] > 0)
        # Walk back from the end while the motion keeps the same direction.
        signs = np.sign(diffs)
        run = 0
        for sign in signs[::-1]:
            if sign != signs[-1]:
                break
            run += 1
    else:
        last_interval = 0
        is_ascending = True
        run = 0

    outline_start = notes[-1 - run]
    span = int(steps[high_idx] - steps[low_idx]) + 1
    counts = np.bincount(steps - steps[low_idx], minlength=span)

    return CantusStats(
        lowest_note=lowest,
        highest_note=highest,
        note_usage=note_usage,
        times_notes_used=times_notes_used,
        interval_usage=interval_usage,
        range=span,
        unique_notes=len(note_usage),
        last_interval=last_interval,
        last_outline_length=run + 1,
        outlined_interval=outline_start.interval(notes[-1]),
        outlined_interval_size=outline_start.interval_size(notes[-1]),
        is_ascending=is_ascending,
        leaps=leaps,
        note_weights=NoteWeights(float(counts.mean()), float(counts.std())),
    )
