import importlib
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

batch = importlib.import_module("cantus_generator.batch_generation")
utils = importlib.import_module("cantus_generator.utils")


def test_generate_batch_uses_process_pool(monkeypatch):
    """``generate_batch`` should create a ``ProcessPoolExecutor`` when workers>1."""

    calls = {}

    class DummyFuture:
        def __init__(self, value):
            self._value = value

        def result(self):
            return self._value

    class DummyExec:
        def __init__(self, max_workers=None):
            calls["workers"] = max_workers

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            pass

        def submit(self, fn, cfg):
            return DummyFuture(fn(cfg))

    monkeypatch.setattr(batch, "ProcessPoolExecutor", DummyExec)
    monkeypatch.setattr(batch, "_generate_single", lambda cfg: cfg["random_seed"])

    result = batch.generate_batch(
        [{"random_seed": 1}, {"random_seed": 2}], workers=2
    )

    assert calls["workers"] == 2
    assert result == [1, 2]


def test_generate_batch_serial_without_pool(monkeypatch):
    """``workers=1`` runs in-process without touching the executor."""

    def fail(*_a, **_k):
        raise AssertionError("process pool should not be used")

    monkeypatch.setattr(batch, "ProcessPoolExecutor", fail)
    monkeypatch.setattr(batch, "_generate_single", lambda cfg: cfg["target_length"])

    assert batch.generate_batch(
        [{"target_length": 8}, {"target_length": 9}], workers=1
    ) == [8, 9]


@pytest.mark.parametrize("workers", [0, -2])
def test_workers_must_be_positive(workers):
    with pytest.raises(ValueError):
        batch.generate_batch([{}], workers=workers)


def test_unknown_config_keys_rejected():
    with pytest.raises(ValueError, match="notes"):
        batch.generate_batch([{"notes": 8}], workers=1)


def test_generate_single_builds_seed_and_rng(monkeypatch):
    """Each configuration gets its own seeded generator and seed line."""

    seen = {}

    def fake_build(seed, target_length, max_range, *, rng, start_branches):
        seen.update(
            seed=seed,
            target_length=target_length,
            max_range=max_range,
            draw=rng.random(),
            start_branches=start_branches,
        )
        return seed

    monkeypatch.setattr(batch, "build_cantus_firmus", fake_build)
    batch._generate_single(
        {"tonic": "D4", "mode": "Dorian", "target_length": 10, "random_seed": 5}
    )

    assert str(seen["seed"]) == "D4"
    assert seen["seed"].mode == "dorian"
    assert seen["target_length"] == 10
    assert seen["max_range"] is None
    assert seen["start_branches"] == 1
    assert seen["draw"] == random.Random(5).random()


def test_defaults_when_no_tonic(monkeypatch):
    seen = {}
    monkeypatch.setattr(
        batch, "build_cantus_firmus", lambda seed, *a, **k: seen.setdefault("seed", seed)
    )
    batch._generate_single({"random_seed": 1})
    assert seen["seed"] is None


def test_serial_batch_is_reproducible():
    """Identical configurations with the same ``random_seed`` give identical lines."""

    cfg = {"tonic": "C4", "mode": "major", "target_length": 8, "random_seed": 4}
    first, second = batch.generate_batch([cfg, dict(cfg)], workers=1)

    assert first == second
    if first is not None:
        assert len(first) == 8
        assert first[0] == first[-1] == utils.parse_seed("C4", "major")[0]
