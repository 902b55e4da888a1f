"""Parallel cantus firmus generation helpers.

Modification summary
--------------------
* Configurations accept ``random_seed`` so each worker builds its own
  :class:`random.Random` and batches are reproducible regardless of the
  order in which worker processes finish.

This module provides a small convenience function for producing many lines
concurrently. It offloads each search to a worker process via
:class:`concurrent.futures.ProcessPoolExecutor` so CPU bound work scales with
the number of available cores.

Example
-------
>>> configs = [
...     {"tonic": "C4", "mode": "major", "target_length": 8, "random_seed": 1},
...     {"tonic": "D4", "mode": "dorian", "target_length": 10, "random_seed": 2},
... ]
>>> generate_batch(configs, workers=2)  # doctest: +SKIP
[CantusFirmus(...), CantusFirmus(...)]

Design Notes
------------
``generate_batch`` avoids custom process management and proxies each
configuration to :func:`~cantus_generator.search.build_cantus_firmus`.
Searches share no state: every worker owns its frontier, scorer cache and
random generator. Unknown configuration keys raise ``ValueError`` before any
work is scheduled.
"""

from __future__ import annotations

import os
import random
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from .cantus import CantusFirmus
from .search import build_cantus_firmus
from .utils import parse_seed

__all__ = ["generate_batch"]

_CONFIG_KEYS = {
    "tonic",
    "mode",
    "target_length",
    "max_range",
    "start_branches",
    "random_seed",
}


def _generate_single(config: Dict[str, Any]) -> Optional[CantusFirmus]:
    """Wrapper used by worker processes to build one cantus firmus."""

    rng = random.Random(config.get("random_seed"))
    seed = None
    if "tonic" in config or "mode" in config:
        seed = parse_seed(config.get("tonic", "C4"), config.get("mode", "major"))
    return build_cantus_firmus(
        seed,
        config.get("target_length"),
        config.get("max_range"),
        rng=rng,
        start_branches=config.get("start_branches", 1),
    )


def generate_batch(
    configs: Iterable[Dict[str, Any]], *, workers: Optional[int] = None
) -> List[Optional[CantusFirmus]]:
    """Generate multiple lines in parallel.

    Parameters
    ----------
    configs:
        Iterable of dictionaries with any of the keys ``tonic``, ``mode``,
        ``target_length``, ``max_range``, ``start_branches`` and
        ``random_seed``. Missing values fall back to the search defaults.
    workers:
        Optional number of worker processes. When ``None`` the CPU count is
        used. ``1`` disables multiprocessing and runs serially. ``ValueError``
        is raised when ``workers`` is ``0`` or a negative value.

    Returns
    -------
    List[Optional[CantusFirmus]]
        One result per configuration, in input order. ``None`` marks a search
        that was exhausted.
    """

    cfg_list = [dict(cfg) for cfg in configs]
    if workers is not None and workers <= 0:
        raise ValueError("workers must be positive")
    for cfg in cfg_list:
        unknown = set(cfg) - _CONFIG_KEYS
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
    if workers is None:
        workers = os.cpu_count() or 1
    if workers <= 1 or len(cfg_list) <= 1:
        # Serial fallback keeps unit tests free of subprocesses.
        return [_generate_single(cfg) for cfg in cfg_list]

    with ProcessPoolExecutor(max_workers=workers) as pool:
        futs = [pool.submit(_generate_single, cfg) for cfg in cfg_list]
        return [f.result() for f in futs]
