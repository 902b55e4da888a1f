"""Heuristic used to decide how good (balanced) a cantus firmus is.

The score starts at the sequence length and subtracts penalties, so longer
sequences are preferred during the best-first search until they start to
break the balance rules. Only the relative order of scores matters.

Summary of penalties
--------------------
* uneven emphasis: standard deviation of note weights above ``1``;
* too few steps: seconds should make up at least ``1 / 1.85`` (about 54%)
  of the intervals;
* more than one octave leap;
* more than four leaps, or fewer than one leap per four notes.

Example
-------
>>> from cantus_generator.cantus import CantusFirmus
>>> from cantus_generator.note_utils import Pitch
>>> cf = CantusFirmus.start(Pitch.from_name("C4"), "major")
>>> for name in ["D4", "E4", "F4", "G4"]:
...     cf = cf.add_note(Pitch.from_name(name))
>>> CantusScorer().score(cf)
2.5
"""

from __future__ import annotations

from typing import Callable, Dict

from .cantus import CantusFirmus
from .stats import CantusStats, compute_stats

__all__ = ["score_cantus", "CantusScorer"]

# Target ratio of intervals to seconds: (length - 1) / 1.85 seconds wanted.
SECONDS_RATIO = 1.85
MAX_LEAPS = 4


def score_cantus(length: int, stats: CantusStats) -> float:
    """Return the heuristic score for a sequence of ``length`` notes."""

    score = float(length)

    std_deviation = stats.note_weights.std_deviation
    if std_deviation > 1 and length > 2:
        score -= (std_deviation - 1) * length

    if length > 3:
        desired_seconds = (length - 1) / SECONDS_RATIO
        seconds = stats.interval_usage[2]
        if seconds < desired_seconds:
            score -= desired_seconds - seconds

    octave_leaps = stats.interval_usage[8]
    if octave_leaps > 1:
        score -= octave_leaps - 1

    if stats.leaps > MAX_LEAPS:
        score -= stats.leaps - MAX_LEAPS
    elif length >= 5:
        # 2-4 leaps for lines of 8-16 notes; doubled for weight, never a bonus
        deduction = (stats.leaps - length / 4) * 2
        if deduction < 0:
            score += deduction

    return score


class CantusScorer:
    """Memoizing front end for :func:`score_cantus`.

    Scores and statistics are cached in side tables keyed by the sequence
    itself. Because :class:`~cantus_generator.cantus.CantusFirmus` hashes
    structurally, the injected ``stats_provider`` runs at most once per
    distinct sequence no matter how often the frontier or the final ranking
    asks for it.
    """

    def __init__(
        self, stats_provider: Callable[[CantusFirmus], CantusStats] = compute_stats
    ) -> None:
        self._stats_provider = stats_provider
        self._stats: Dict[CantusFirmus, CantusStats] = {}
        self._scores: Dict[CantusFirmus, float] = {}

    def stats(self, cantus: CantusFirmus) -> CantusStats:
        cached = self._stats.get(cantus)
        if cached is None:
            cached = self._stats[cantus] = self._stats_provider(cantus)
        return cached

    def score(self, cantus: CantusFirmus) -> float:
        cached = self._scores.get(cantus)
        if cached is None:
            cached = self._scores[cantus] = score_cantus(len(cantus), self.stats(cantus))
        return cached

    def __len__(self) -> int:
        return len(self._scores)
