#!/usr/bin/env python3
"""Cantus Generator library.

This package builds a *cantus firmus*: the fixed, mostly stepwise melody that
species counterpoint exercises are written against. A typical workflow is to
call :func:`build_cantus_firmus` with a seed (the tonic in a mode), a target
length and a maximum range, then feed the result into
:func:`create_midi_file` to hear it. The ``cantus-generator`` console command
wraps both calls.

Underlying Algorithm
--------------------
Generation is a stochastic best-first search. Partial lines sit in a priority
queue ordered by a heuristic that rewards length and penalises unbalanced
lines (uneven note emphasis, too few steps, too many or too few leaps). The
best partial line is extended with every note the counterpoint rules allow,
tried in a weighted random order. Lines that reach the target length are
collected and the highest scoring one is returned.

Algorithm Pseudocode
--------------------
::

    frontier = [tonic]
    while frontier and len(completed) < NUMBER_CF_TO_BUILD:
        cf = frontier.pop_max()
        for note in legal_next_notes(cf):
            frontier.insert(cf + note)
    return best(completed)

Features include:
- Eight diatonic modes with correct key spelling.
- Reproducible output through an injected :class:`random.Random`.
- MIDI export via ``mido`` and parallel batch generation.
- Persisted CLI defaults in a JSON settings file.

Author: Austin Boone
Modified: October 19, 2026
"""

__version__ = "0.1.0"

# ---------------------------------------------------------------
# Modification Summary
# ---------------------------------------------------------------
# * ``load_settings`` and ``save_settings`` resolve ``DEFAULT_SETTINGS_FILE``
#   when called so tests and the CLI can redirect the settings path without
#   reloading the package.
# * ``save_settings`` creates the parent directory of the settings file.
# * Search defaults live here so the CLI, batch helpers and the search driver
#   agree on them.

import json
import logging
import os
from pathlib import Path
from typing import Optional

# Tonics and modes drawn from when no seed is supplied.
DEFAULT_TONICS = ("G4", "F4", "A4")
DEFAULT_MODES = ("major", "minor", "dorian", "mixolydian")

# Inclusive bounds for a randomly chosen line length.
DEFAULT_MIN_LENGTH = 8
DEFAULT_MAX_LENGTH = 16

# Largest diatonic size between the lowest and highest note (a tenth).
DEFAULT_MAX_RANGE = 10

# Completed lines collected before the best one is chosen.
NUMBER_CF_TO_BUILD = 3

# Default path for storing user preferences
# The file lives in the user's home directory so settings persist
# between runs of the application.
env_path = os.environ.get("CANTUS_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".cantus_generator_settings.json"


def load_settings(path: Optional[Path] = None) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path | None): Location of the settings file, defaults to
        ``DEFAULT_SETTINGS_FILE``.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    path = Path(path) if path is not None else DEFAULT_SETTINGS_FILE
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error("Could not load settings: %s", exc)
            return {}
        if isinstance(data, dict):
            return data
        logging.error("Ignoring settings file %s: expected a JSON object", path)
    return {}


def save_settings(settings: dict, path: Optional[Path] = None) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path | None): Destination file path, defaults to
        ``DEFAULT_SETTINGS_FILE``.
    @returns None: Function does not return a value.
    """
    # Failing to save preferences never prevents generation.
    path = Path(path) if path is not None else DEFAULT_SETTINGS_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as exc:
        logging.error("Could not save settings: %s", exc)


from .note_utils import Key, Pitch, note_to_midi  # noqa: E402,F401
from .cantus import CantusFirmus  # noqa: E402,F401
from .stats import CantusStats, compute_stats  # noqa: E402,F401
from .scoring import CantusScorer, score_cantus  # noqa: E402,F401
from .utils import canonical_mode, parse_seed, validate_search_config  # noqa: E402,F401
from .search import CantusSearch, build_cantus_firmus  # noqa: E402,F401
from . import midi_io  # noqa: E402,F401
from .midi_io import create_midi_file  # noqa: E402,F401
from .batch_generation import generate_batch  # noqa: E402,F401


def run_cli(argv=None) -> None:
    from .cli import run_cli as _run_cli

    _run_cli(argv)


def main(argv=None) -> None:
    from .cli import main as _main

    _main(argv)
