"""Stochastic best-first search for a cantus firmus.

The search starts from a seed (normally the tonic alone) and repeatedly
extends the most promising partial line. Promise is measured by
:class:`~cantus_generator.scoring.CantusScorer`; legal extensions come from
:mod:`cantus_generator.candidates`. When a line reaches its target length it is
added to a pool of completed candidates and the best of those is returned.

Algorithm Pseudocode
--------------------
::

    frontier = [seed]
    while frontier and len(completed) < pool_size:
        cf = frontier.pop_max()
        if len(cf) == 1:
            push the first ``start_branches`` weighted start notes
        else:
            options = next_note_candidates(cf)
            if options is None: continue          # dead branch
            if len(cf) == target - 2: push only the second scale degree
            elif len(cf) == target - 1: complete with the tonic
            else: push every option
    return best(completed) or None

Example
-------
>>> import random
>>> cf = build_cantus_firmus(parse_seed("C4", "major"), 8, 10, rng=random.Random(1))
>>> cf is None or (len(cf) == 8 and cf[-1] == cf[0])
True

Design Notes
------------
- Candidates are pushed in reverse order. The frontier pops the newest entry
  among equal scores, so the first weighted draw is explored first.
- The completed pool is ranked with a stable sort, so equal scores keep the
  order in which lines were completed.
- Exhausting the frontier is a normal outcome and returns ``None``.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

from . import (
    DEFAULT_MAX_LENGTH,
    DEFAULT_MAX_RANGE,
    DEFAULT_MIN_LENGTH,
    DEFAULT_MODES,
    DEFAULT_TONICS,
    NUMBER_CF_TO_BUILD,
)
from .candidates import next_note_candidates, start_candidates
from .cantus import CantusFirmus
from .frontier import Frontier
from .scoring import CantusScorer
from .utils import parse_seed, validate_search_config

__all__ = ["CantusSearch", "build_cantus_firmus"]


class CantusSearch:
    """Best-first search producing one cantus firmus per :meth:`run`.

    Parameters
    ----------
    target_length:
        Number of notes in the finished line.
    max_range:
        Largest diatonic size allowed between the lowest and highest note.
    rng:
        Source of randomness for candidate order. A fresh
        :class:`random.Random` is used when omitted.
    scorer:
        Memoizing scorer. Passing one in lets tests count statistics calls.
    pool_size:
        Number of completed lines collected before the search stops.
    start_branches:
        How many second notes are explored from a one-note seed.
    """

    def __init__(
        self,
        target_length: int,
        max_range: int,
        *,
        rng: Optional[random.Random] = None,
        scorer: Optional[CantusScorer] = None,
        pool_size: int = NUMBER_CF_TO_BUILD,
        start_branches: int = 1,
    ) -> None:
        self.target_length = target_length
        self.max_range = max_range
        self.rng = rng if rng is not None else random.Random()
        self.scorer = scorer if scorer is not None else CantusScorer()
        self.pool_size = pool_size
        self.start_branches = start_branches

    def run(self, seed: CantusFirmus) -> Optional[CantusFirmus]:
        """Search from ``seed`` and return the best completed line or ``None``."""

        frontier: Frontier[CantusFirmus] = Frontier(self.scorer.score)
        frontier.insert(seed)
        completed: List[CantusFirmus] = []

        while not frontier.is_empty() and len(completed) < self.pool_size:
            cantus = frontier.pop_max()
            logging.debug("%s (%.2f)", cantus, self.scorer.score(cantus))

            if len(cantus) == 1:
                starts = start_candidates(
                    cantus, self.target_length, self.max_range, self.rng
                )[: self.start_branches]
                for pitch in reversed(starts):
                    frontier.insert(cantus.add_note(pitch))
                continue

            options = next_note_candidates(
                cantus,
                self.scorer.stats(cantus),
                self.target_length,
                self.max_range,
                self.rng,
            )
            if not options:
                logging.debug("Dead end after %s", cantus)
                continue

            if len(cantus) == self.target_length - 2:
                # Penultimate note is the second scale degree.
                supertonic = cantus.key.interval_from_pitch(cantus[0], 2)
                options = [p for p in options if p == supertonic]
            elif len(cantus) == self.target_length - 1:
                for pitch in options:
                    if pitch == cantus[0]:
                        completed.append(cantus.add_note(pitch))
                continue

            for pitch in reversed(options):
                frontier.insert(cantus.add_note(pitch))

        if not completed:
            logging.info("Search exhausted without a complete cantus firmus")
            return None

        ranked = sorted(completed, key=self.scorer.score, reverse=True)
        for rank, cantus in enumerate(ranked, start=1):
            logging.info("#%d %s (%.2f)", rank, cantus, self.scorer.score(cantus))
        return ranked[0]


def build_cantus_firmus(
    seed: Optional[CantusFirmus] = None,
    target_length: Optional[int] = None,
    max_range: Optional[int] = None,
    *,
    rng: Optional[random.Random] = None,
    start_branches: int = 1,
) -> Optional[CantusFirmus]:
    """Generate a cantus firmus, filling in defaults from ``rng``.

    @param seed (CantusFirmus | None): Starting line. When omitted a tonic is
        drawn from ``DEFAULT_TONICS`` and a mode from ``DEFAULT_MODES``.
    @param target_length (int | None): Notes in the result, random in
        ``DEFAULT_MIN_LENGTH``-``DEFAULT_MAX_LENGTH`` when omitted.
    @param max_range (int | None): Maximum range, ``DEFAULT_MAX_RANGE`` when
        omitted.
    @param rng (random.Random | None): Injected randomness.
    @param start_branches (int): Second notes explored from a one-note seed.
    @returns CantusFirmus | None: Best line found, ``None`` when the search
        is exhausted.
    @raises ValueError: If the configuration cannot be satisfied.
    """

    rng = rng if rng is not None else random.Random()
    if seed is None:
        tonic = rng.choice(DEFAULT_TONICS)
        mode = rng.choice(DEFAULT_MODES)
        seed = parse_seed(tonic, mode)
    if target_length is None:
        target_length = rng.randint(DEFAULT_MIN_LENGTH, DEFAULT_MAX_LENGTH)
    if max_range is None:
        max_range = DEFAULT_MAX_RANGE

    validate_search_config(seed, target_length, max_range, start_branches)
    logging.info(
        "Building a %d note cantus firmus in %s (max range %d)",
        target_length,
        seed.key,
        max_range,
    )
    search = CantusSearch(
        target_length, max_range, rng=rng, start_branches=start_branches
    )
    return search.run(seed)
