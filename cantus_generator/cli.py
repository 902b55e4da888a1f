"""Command line helpers for Cantus Generator.

Modification summary
--------------------
* ``--count`` generates several lines at once through
  :func:`~cantus_generator.batch_generation.generate_batch`; ``--workers``
  controls the process pool.
* ``--save-settings`` stores the explicit options of the current run so later
  invocations reuse them as defaults.
* Exit status ``2`` distinguishes "no line satisfies these constraints" from
  invalid input (status ``1``).

This module implements the console entry points for the project. The
``run_cli`` function parses command line arguments, runs the search and
prints every line together with its score. :func:`main` configures logging
first so ``run_cli`` can be reused by tests without touching global logging
state.

Example
-------
Running ``python -m cantus_generator --tonic D4 --mode dorian --length 11 \
    --seed 7 --output out/dorian.mid`` prints an 11 note dorian cantus firmus
and writes it to ``out/dorian.mid`` as whole notes at 60 BPM.
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional

from . import (
    DEFAULT_MAX_RANGE,
    DEFAULT_MODES,
    DEFAULT_TONICS,
    load_settings,
    save_settings,
)
from .batch_generation import generate_batch
from .cantus import CantusFirmus
from .midi_io import create_midi_file
from .note_utils import MODE_PATTERNS
from .scoring import score_cantus
from .search import build_cantus_firmus
from .stats import compute_stats
from .utils import canonical_mode, parse_seed

__all__ = ["run_cli", "main"]

# Options persisted by ``--save-settings``; keys match the argparse dests.
_SAVED_OPTIONS = ("tonic", "mode", "length", "max_range", "start_branches", "bpm", "instrument")
# Saved options parsed as integers; the rest are note or mode names.
_INT_OPTIONS = {"length", "max_range", "start_branches", "bpm", "instrument"}

DEFAULT_BPM = 60


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cantus-generator",
        description="Generate a cantus firmus for species counterpoint.",
    )
    parser.add_argument("--list-modes", action="store_true", help="List all supported modes and exit")
    parser.add_argument("--tonic", type=str, help="Tonic pitch with octave (e.g., C4, F#3).")
    parser.add_argument("--mode", type=str, help="Mode name (e.g., major, dorian).")
    parser.add_argument("--length", type=int, help="Number of notes (default: random 8-16).")
    parser.add_argument("--max-range", type=int, help=f"Maximum range as a diatonic size (default: {DEFAULT_MAX_RANGE}).")
    parser.add_argument("--start-branches", type=int, help="Number of second notes to explore (default: 1).")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--count", type=int, default=1, help="Number of lines to generate (default: 1).")
    parser.add_argument("--workers", type=int, help="Worker processes used when --count is above 1")
    parser.add_argument("--output", type=str, help="Output MIDI file path.")
    parser.add_argument("--bpm", type=int, help=f"Beats per minute for MIDI output (default: {DEFAULT_BPM}).")
    parser.add_argument("--instrument", type=int, help="MIDI program number for the MIDI output")
    parser.add_argument("--settings-file", type=str, help="JSON file with saved default options")
    parser.add_argument("--save-settings", action="store_true", help="Save the given options as defaults")
    parser.add_argument("--verbose", action="store_true", help="Log the search trace")
    return parser


def _output_paths(output: str, count: int) -> List[Path]:
    """Return one path per line, numbering them when ``count`` exceeds one."""

    path = Path(output).expanduser()
    if count == 1:
        return [path]
    return [path.with_name(f"{path.stem}_{i}{path.suffix}") for i in range(1, count + 1)]


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse CLI arguments, build cantus firmi and optionally write MIDI.

    @param argv (list[str] | None): Arguments without the program name,
        ``sys.argv[1:]`` when omitted.
    @returns None: Exits with status ``1`` on invalid input or write
        failures and ``2`` when no line could be built.
    """

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.list_modes:
        print("\n".join(MODE_PATTERNS))
        return

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else None
    settings = load_settings(settings_path)
    for name in _SAVED_OPTIONS:
        if getattr(args, name) is None and name in settings:
            value = settings[name]
            convert = int if name in _INT_OPTIONS else str
            try:
                value = convert(value)
            except (TypeError, ValueError):
                logging.error("Invalid value for %s in settings file: %r", name, value)
                sys.exit(1)
            setattr(args, name, value)

    if args.count < 1:
        logging.error("Count must be a positive integer.")
        sys.exit(1)
    if args.workers is not None and args.workers < 1:
        logging.error("Workers must be a positive integer.")
        sys.exit(1)
    bpm = args.bpm if args.bpm is not None else DEFAULT_BPM
    if bpm <= 0:
        logging.error("BPM must be a positive integer.")
        sys.exit(1)
    program = args.instrument if args.instrument is not None else 0
    if not 0 <= program <= 127:
        logging.error("Instrument must be between 0 and 127.")
        sys.exit(1)

    rng = random.Random(args.seed)
    if args.seed is not None:
        logging.info("Using random seed %d", args.seed)

    tonic, mode = args.tonic, args.mode
    if tonic is not None or mode is not None:
        tonic = tonic or rng.choice(DEFAULT_TONICS)
        mode = mode or rng.choice(DEFAULT_MODES)

    start_branches = args.start_branches if args.start_branches is not None else 1
    try:
        if args.count == 1:
            seed = parse_seed(tonic, mode) if tonic is not None else None
            results = [
                build_cantus_firmus(
                    seed,
                    args.length,
                    args.max_range,
                    rng=rng,
                    start_branches=start_branches,
                )
            ]
        else:
            configs = []
            for _ in range(args.count):
                cfg = {"random_seed": rng.randrange(2**32), "start_branches": start_branches}
                if tonic is not None:
                    cfg["tonic"] = tonic
                    cfg["mode"] = canonical_mode(mode)
                if args.length is not None:
                    cfg["target_length"] = args.length
                if args.max_range is not None:
                    cfg["max_range"] = args.max_range
                configs.append(cfg)
            results = generate_batch(configs, workers=args.workers)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    built: List[CantusFirmus] = []
    for index, cantus in enumerate(results, start=1):
        if cantus is None:
            logging.warning("Line %d: no cantus firmus satisfies these constraints", index)
            continue
        built.append(cantus)
        score = score_cantus(len(cantus), compute_stats(cantus))
        print(f"{cantus}  ({cantus.key}, score {score:.2f})")

    if not built:
        logging.error("No cantus firmus could be built with these settings.")
        sys.exit(2)

    if args.output:
        for cantus, path in zip(built, _output_paths(args.output, len(built))):
            try:
                create_midi_file(cantus, bpm, str(path), program=program)
            except OSError as exc:
                logging.error("Could not write MIDI file: %s", exc)
                sys.exit(1)

    if args.save_settings:
        data = dict(settings)
        data.update(
            {name: getattr(args, name) for name in _SAVED_OPTIONS if getattr(args, name) is not None}
        )
        save_settings(data, settings_path)
        logging.info("Settings saved.")

    logging.info("Cantus firmus generation complete.")


def main(argv: Optional[List[str]] = None) -> None:
    """Console entry point: configure logging and run the CLI."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli(argv)
