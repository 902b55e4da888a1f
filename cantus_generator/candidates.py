"""Next-note candidate generation for the cantus firmus search.

Given a partial line and its statistics, this module works out which pitches
may legally follow and in what order the search should try them. It encodes
the melodic rules of species counterpoint:

* only consonant melodic intervals (seconds, thirds, perfect fourths and
  fifths, sixths and the octave) are allowed between consecutive notes;
* a leap larger than a third must be recovered by a step or third in the
  opposite direction;
* a single direction may continue for at most five notes and outline at most
  an octave, and the outline must be consonant before the line turns;
* short oscillations (``1 3 1``, ``2 1 2 1``, ``3 2 1 3 2 1``) are forbidden;
* every pitch inside the range is visited before the final note and no pitch
  is overused early.

Candidate lists are ordered: earlier entries should be expanded first. A
return value of ``None`` means the branch is dead and must not be extended.

Design Notes
------------
- Randomness only decides order, never validity: weighted draws come from
  :class:`~cantus_generator.sampling.WeightedBag` and the pool-order coin flip
  uses the same injected ``rng``.
- The blacklist is rebuilt for every expansion so it never leaks between
  branches of the search.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .cantus import CantusFirmus
from .note_utils import Pitch
from .sampling import WeightedBag
from .stats import CantusStats

__all__ = [
    "MELODIC_INTERVALS",
    "NoteConstraints",
    "build_constraints",
    "start_candidates",
    "next_note_candidates",
]

# Consonant melodic intervals.
MELODIC_INTERVALS = frozenset({"m2", "M2", "m3", "M3", "P4", "P5", "m6", "M6", "P8"})
MAX_OUTLINE_LENGTH = 5  # max number of notes in a single direction in a row
MAX_OUTLINE_SIZE = 8  # largest size notes can move in a single direction
# Octave start leaps need room to be recovered.
OCTAVE_START_MIN_LENGTH = 10

INTERVAL_WEIGHT_AT_START = {
    2: 4,
    3: 4,
    4: 3,
    5: 4,
    6: 4,
    8: 1,
    -2: 3,
    -3: 1,
    -4: 3,
    -5: 1,
    -6: 3,
    -8: 0.5,
}
INTERVAL_WEIGHT_AFTER_LEAP = {2: 2, 3: 1}
INTERVAL_WEIGHT_DIRECTION_CHANGE = {2: 2, 3: 2, 4: 2, 5: 2, 6: 2, 8: 1}
INTERVAL_WEIGHT_SAME_DIRECTION = {2: 7, 3: 3, 4: 1, 5: 1}

# Probability of continuing in the same direction when there is a choice.
CONTINUE_DIRECTION_PROBABILITY = 0.65


@dataclass
class NoteConstraints:
    """Range window and blacklist for the note following ``last_note``."""

    last_note: Pitch
    min_note: Pitch
    max_note: Pitch
    blacklist: Set[Pitch] = field(default_factory=set)

    def forms_valid_interval(self, pitch: Pitch) -> bool:
        return self.last_note.interval(pitch) in MELODIC_INTERVALS

    def in_range(self, pitch: Pitch) -> bool:
        if pitch.is_lower(self.max_note) and pitch.is_higher(self.min_note):
            return True
        return pitch == self.max_note or pitch == self.min_note

    def is_valid(self, pitch: Pitch) -> bool:
        return (
            self.forms_valid_interval(pitch)
            and self.in_range(pitch)
            and pitch not in self.blacklist
        )


def build_constraints(
    cantus: CantusFirmus, stats: CantusStats, target_length: int, max_range: int
) -> Optional[NoteConstraints]:
    """Return the constraints for the next note or ``None`` for a dead branch.

    Parameters
    ----------
    cantus:
        Partial line with at least two notes.
    stats:
        Statistics of ``cantus``.
    target_length:
        Total number of notes the finished line must have.
    max_range:
        Largest allowed diatonic size between the lowest and highest notes.
    """

    key = cantus.key
    length = len(cantus)

    max_note = key.interval_from_pitch(stats.lowest_note, max_range)
    min_note = key.interval_from_pitch(stats.highest_note, -max_range)
    # A repeated high note is no climax, so leave room to go one step higher.
    if stats.note_usage[stats.highest_note] > 1:
        min_note = key.interval_from_pitch(min_note, 2)
        if length == target_length - 1:
            return None

    constraints = NoteConstraints(cantus[-1], min_note, max_note)
    blacklist = constraints.blacklist

    # 1 3 1 or 2 5 2
    if length >= 2 and stats.last_interval in (3, 4):
        blacklist.add(cantus[-2])
    # 2 1 2 1
    if length >= 3 and cantus[-3] == cantus[-1]:
        blacklist.add(cantus[-2])
    # 3 2 1 3 2 1
    if length >= 5 and cantus[-5] == cantus[-2] and cantus[-4] == cantus[-1]:
        blacklist.add(cantus[-3])

    unused = stats.range - stats.unique_notes
    if target_length - length > 1:
        # The last note is the tonic, so every pitch in range must appear
        # before it.
        notes_left = target_length - length - 1
        if notes_left <= unused:
            if notes_left < unused:
                return None
            blacklist.update(stats.note_usage)
        elif 0 < stats.times_notes_used[2] <= 3:
            # no note is used a third time until more than three are used twice
            blacklist.update(p for p, count in stats.note_usage.items() if count == 2)
    elif unused != 0:
        return None

    return constraints


def start_candidates(
    cantus: CantusFirmus,
    target_length: int,
    max_range: int,
    rng: random.Random,
) -> List[Pitch]:
    """Return the weighted order of possible second notes.

    Octave leaps are left out for lines shorter than
    ``OCTAVE_START_MIN_LENGTH`` notes, as are intervals wider than
    ``max_range`` or dissonant from the tonic in the current mode.
    """

    key = cantus.key
    first = cantus[-1]
    bag: WeightedBag[Pitch] = WeightedBag(rng)
    for interval, weight in INTERVAL_WEIGHT_AT_START.items():
        if abs(interval) == 8 and target_length < OCTAVE_START_MIN_LENGTH:
            continue
        if abs(interval) > max_range:
            continue
        note = key.interval_from_pitch(first, interval)
        if first.interval(note) in MELODIC_INTERVALS:
            bag.add(note, weight)
    return bag.drain()


def next_note_candidates(
    cantus: CantusFirmus,
    stats: CantusStats,
    target_length: int,
    max_range: int,
    rng: random.Random,
) -> Optional[List[Pitch]]:
    """Return legal next pitches in expansion order, or ``None`` when dead.

    After a leap larger than a third only the recovery moves are offered.
    Otherwise two pools are built, one turning the line around and one
    continuing in the same direction, and a biased coin decides which pool
    comes first.
    """

    constraints = build_constraints(cantus, stats, target_length, max_range)
    if constraints is None:
        return None

    key = cantus.key
    last = cantus[-1]
    direction = 1 if stats.is_ascending else -1
    can_change_direction = stats.outlined_interval in MELODIC_INTERVALS

    if stats.last_interval > 3:
        if not can_change_direction:
            return None
        bag: WeightedBag[Pitch] = WeightedBag(rng)
        for interval, weight in INTERVAL_WEIGHT_AFTER_LEAP.items():
            note = key.interval_from_pitch(last, interval * -direction)
            if constraints.is_valid(note):
                bag.add(note, weight)
        return bag.drain()

    changing: List[Pitch] = []
    if can_change_direction:
        # Turning after a third or fourth must not outline a triad.
        if stats.last_interval == 3:
            constraints.blacklist.add(key.interval_from_pitch(last, 5 * -direction))
            constraints.blacklist.add(key.interval_from_pitch(last, 6 * -direction))
        if stats.last_interval == 4:
            constraints.blacklist.add(key.interval_from_pitch(last, 6 * -direction))
        bag = WeightedBag(rng)
        for interval, weight in INTERVAL_WEIGHT_DIRECTION_CHANGE.items():
            note = key.interval_from_pitch(last, interval * -direction)
            if constraints.is_valid(note):
                bag.add(note, weight)
        changing = bag.drain()

    continuing: List[Pitch] = []
    if stats.last_outline_length < MAX_OUTLINE_LENGTH:
        interval_choices = [2]
        if stats.last_interval == 2:
            if stats.last_outline_length > 2:
                interval_choices.append(3)
            else:
                interval_choices.extend([3, 4, 5])
        bag = WeightedBag(rng)
        for interval in interval_choices:
            if interval + stats.outlined_interval_size - 1 > MAX_OUTLINE_SIZE:
                continue
            note = key.interval_from_pitch(last, interval * direction)
            if constraints.is_valid(note):
                bag.add(note, INTERVAL_WEIGHT_SAME_DIRECTION[interval])
        continuing = bag.drain()

    if rng.random() < CONTINUE_DIRECTION_PROBABILITY:
        return continuing + changing
    return changing + continuing
