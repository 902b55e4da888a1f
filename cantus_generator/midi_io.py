"""Utilities for writing a cantus firmus to a MIDI file.

Modification summary
--------------------
* ``create_midi_file`` creates the destination directory automatically so
  callers can pass a path in a new folder without preparing it.
* ``create_midi_file`` validates ``bpm``, ``time_signature``, ``note_value``,
  ``program`` and ``velocity`` before building any events.
* ``create_midi_file`` names the track after the key so notation software
  shows e.g. "Cantus firmus in D dorian" when the file is imported.

Every note of the line is written as one ``note_on``/``note_off`` pair on a
single track. A cantus firmus is traditionally notated in whole notes, so the
default ``note_value`` is ``1.0`` (a whole note); ``0.25`` gives quarter notes.

Example
-------
>>> from cantus_generator import build_cantus_firmus, parse_seed
>>> cf = build_cantus_firmus(parse_seed("D4", "dorian"), 10, 10)
>>> create_midi_file(cf, 90, "out/cantus.mid")  # doctest: +SKIP
<midi file ...>
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

import mido
from mido import Message, MetaMessage, MidiFile, MidiTrack

from .cantus import CantusFirmus
from .note_utils import note_to_midi

__all__ = ["create_midi_file", "TICKS_PER_BEAT"]

TICKS_PER_BEAT = 480

_VALID_DENOMINATORS = {1, 2, 4, 8, 16}


def create_midi_file(
    cantus: CantusFirmus,
    bpm: int,
    output_file: str,
    *,
    time_signature: Tuple[int, int] = (4, 4),
    note_value: float = 1.0,
    program: int = 0,
    velocity: int = 64,
) -> MidiFile:
    """Write ``cantus`` to ``output_file`` and return the ``MidiFile``.

    Parameters
    ----------
    cantus:
        Line to render. Every pitch must map to a MIDI number in ``0-127``.
    bpm:
        Tempo in quarter-note beats per minute.
    output_file:
        Destination path. Missing parent directories are created.
    time_signature:
        ``(numerator, denominator)`` written as a meta event.
    note_value:
        Duration of every note as a fraction of a whole note.
    program:
        General MIDI instrument number (``0`` is acoustic grand piano).
    velocity:
        Loudness of every note.

    Returns
    -------
    MidiFile
        In-memory representation of the written file.

    Raises
    ------
    ValueError
        If any parameter is out of range or a pitch has no MIDI number.
    """

    if bpm <= 0:
        raise ValueError("bpm must be a positive integer")
    numerator, denominator = time_signature
    if numerator <= 0 or denominator not in _VALID_DENOMINATORS:
        raise ValueError(
            "time_signature denominator must be one of 1, 2, 4, 8 or 16 and numerator must be > 0"
        )
    if note_value <= 0:
        raise ValueError("note_value must be positive")
    if not 0 <= program <= 127:
        raise ValueError("program must be between 0 and 127")
    if not 1 <= velocity <= 127:
        raise ValueError("velocity must be between 1 and 127")

    # Convert up front so an unplayable pitch fails before anything is written.
    midi_notes = [note_to_midi(pitch.name) for pitch in cantus]
    duration = int(round(note_value * TICKS_PER_BEAT * 4))

    mid = MidiFile(ticks_per_beat=TICKS_PER_BEAT)
    track = MidiTrack()
    mid.tracks.append(track)
    track.append(MetaMessage("track_name", name=f"Cantus firmus in {cantus.key}", time=0))
    track.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))
    track.append(
        MetaMessage(
            "time_signature", numerator=numerator, denominator=denominator, time=0
        )
    )
    track.append(Message("program_change", program=program, time=0))

    for note in midi_notes:
        track.append(Message("note_on", note=note, velocity=velocity, time=0))
        track.append(Message("note_off", note=note, velocity=0, time=duration))

    # Ensure the destination directory exists so ``mid.save`` succeeds even
    # when callers point at a new folder.
    path = Path(output_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    mid.save(str(path))
    logging.info("MIDI file saved to %s", output_file)
    return mid
