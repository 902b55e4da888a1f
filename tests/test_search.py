"""End-to-end tests for the best-first cantus firmus search."""

import importlib
import logging
import random
import sys
from collections import Counter
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

cantus_generator = importlib.import_module("cantus_generator")
search = importlib.import_module("cantus_generator.search")
stats_mod = importlib.import_module("cantus_generator.stats")
scoring = importlib.import_module("cantus_generator.scoring")
candidates = importlib.import_module("cantus_generator.candidates")
utils = importlib.import_module("cantus_generator.utils")
Pitch = importlib.import_module("cantus_generator.note_utils").Pitch


def _results(tonic, mode, length, max_range, seeds=range(10)):
    found = []
    for seed in seeds:
        cf = search.build_cantus_firmus(
            utils.parse_seed(tonic, mode), length, max_range, rng=random.Random(seed)
        )
        if cf is not None:
            found.append(cf)
    return found


def _assert_well_formed(cf, length, max_range):
    """Check the melodic rules every completed line must satisfy."""

    assert len(cf) == length
    assert cf[0] == cf.key.tonic
    assert cf[-1] == cf.key.tonic
    assert cf[-2] == cf.key.interval_from_pitch(cf[0], 2)

    for first, second in zip(cf, list(cf)[1:]):
        assert first.interval(second) in candidates.MELODIC_INTERVALS

    steps = [pitch.step for pitch in cf]
    assert max(steps) - min(steps) + 1 <= max_range
    assert set(range(min(steps), max(steps) + 1)) <= set(steps[:-1])

    # A third use of any pitch requires more than three pitches used twice.
    for n in range(1, length - 1):
        usage = Counter(cf.notes[:n])
        if usage[cf[n]] == 2:
            assert sum(1 for count in usage.values() if count == 2) > 3


def test_c_major_length_eight():
    """C4 major, eight notes, range of a tenth: tonic frame with D before the end."""

    results = _results("C4", "major", 8, 10)

    assert results
    for cf in results:
        _assert_well_formed(cf, 8, 10)
        assert cf[6] == Pitch.from_name("D4")
        assert cf.names()[0] == cf.names()[-1] == "C4"


@pytest.mark.parametrize("tonic, mode, length", [("D4", "dorian", 11), ("A4", "minor", 12)])
def test_other_modes_follow_rules(tonic, mode, length):
    results = _results(tonic, mode, length, 10)

    assert results
    for cf in results:
        _assert_well_formed(cf, length, 10)
        assert all(cf.key.contains(pitch) for pitch in cf)


def test_range_of_one_is_exhausted_not_error():
    """No start interval fits a range of one, so the search returns ``None``."""

    seed = utils.parse_seed("C4", "major")
    assert search.build_cantus_firmus(seed, 8, 1, rng=random.Random(0)) is None


def test_same_seed_same_result():
    first = _results("C4", "major", 9, 10, seeds=[3])
    second = _results("C4", "major", 9, 10, seeds=[3])
    assert first == second


def test_defaults_drawn_from_rng():
    """Without arguments the tonic, mode and length come from the defaults."""

    for seed in range(20):
        cf = search.build_cantus_firmus(rng=random.Random(seed))
        if cf is not None:
            break

    assert cf is not None
    assert cf.tonic.name in cantus_generator.DEFAULT_TONICS
    assert cf.mode in cantus_generator.DEFAULT_MODES
    assert cantus_generator.DEFAULT_MIN_LENGTH <= len(cf) <= cantus_generator.DEFAULT_MAX_LENGTH
    _assert_well_formed(cf, len(cf), cantus_generator.DEFAULT_MAX_RANGE)


def test_statistics_computed_once_per_sequence():
    """The search never asks the provider twice for the same sequence."""

    calls = []

    def provider(cf):
        calls.append(cf)
        return stats_mod.compute_stats(cf)

    runner = search.CantusSearch(
        8, 10, rng=random.Random(0), scorer=scoring.CantusScorer(provider)
    )
    runner.run(utils.parse_seed("C4", "major"))

    assert calls
    assert len(calls) == len(set(calls))


def test_start_branches_widen_first_step(monkeypatch):
    """Every requested start note is pushed onto the frontier."""

    pushed = []
    original = search.Frontier.insert

    def spy(self, item):
        if len(item) == 2:
            pushed.append(item[1])
        original(self, item)

    monkeypatch.setattr(search.Frontier, "insert", spy)
    runner = search.CantusSearch(8, 10, rng=random.Random(0), start_branches=3)
    runner.run(utils.parse_seed("C4", "major"))

    assert len(set(pushed)) >= 3


def test_result_ranking_is_logged(caplog):
    caplog.set_level(logging.INFO)

    results = _results("C4", "major", 8, 10)

    assert results
    assert "#1" in caplog.text
    assert "Building a 8 note cantus firmus in C major" in caplog.text


@pytest.mark.parametrize(
    "kwargs",
    [
        {"target_length": 3},
        {"max_range": 0},
        {"start_branches": 0},
    ],
)
def test_invalid_configuration_rejected(kwargs):
    params = {"target_length": 8, "max_range": 10, "start_branches": 1}
    params.update(kwargs)
    seed = utils.parse_seed("C4", "major")

    with pytest.raises(ValueError):
        search.build_cantus_firmus(
            seed,
            params["target_length"],
            params["max_range"],
            start_branches=params["start_branches"],
        )


def test_invalid_seeds_rejected():
    with pytest.raises(ValueError):
        search.build_cantus_firmus(utils.parse_seed("C4", "major", ["F#4"]), 8, 10)
    with pytest.raises(ValueError):
        search.build_cantus_firmus(utils.parse_seed("C4", "major", ["D4", "E4", "D4"]), 4, 10)
    with pytest.raises(ValueError):
        cantus_generator.CantusFirmus(
            (Pitch.from_name("D4"),), cantus_generator.Key(Pitch.from_name("C4"), "major")
        )
    with pytest.raises(ValueError):
        utils.parse_seed("C4", "locrian-ish")


class RecordingScorer(scoring.CantusScorer):
    """Scorer that remembers every finished line it is asked to rank."""

    def __init__(self, target_length):
        super().__init__()
        self.target_length = target_length
        self.completed = set()

    def score(self, cantus):
        if len(cantus) == self.target_length:
            self.completed.add(cantus)
        return super().score(cantus)


def _run_recorded(seed, length, pool_size):
    scorer = RecordingScorer(length)
    runner = search.CantusSearch(
        length, 10, rng=random.Random(seed), scorer=scorer, pool_size=pool_size
    )
    return runner.run(utils.parse_seed("C4", "major")), scorer.completed, scorer


@pytest.mark.parametrize("pool_size", [cantus_generator.NUMBER_CF_TO_BUILD, 1])
def test_search_stops_at_pool_size_and_returns_best(pool_size):
    """At most ``pool_size`` lines are finished and the top-scoring one wins."""

    found = 0
    for seed in range(20):
        result, completed, scorer = _run_recorded(seed, 10, pool_size)
        if result is None:
            assert not completed
            continue
        found += 1
        assert 1 <= len(completed) <= pool_size
        assert result in completed
        assert scorer.score(result) == max(scorer.score(cf) for cf in completed)

    assert found


def test_single_line_pool_returns_first_completion():
    for seed in range(20):
        result, completed, _ = _run_recorded(seed, 10, 1)
        if result is not None:
            assert completed == {result}
