"""Immutable cantus firmus sequence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from .note_utils import Key, Pitch

__all__ = ["CantusFirmus"]


@dataclass(frozen=True)
class CantusFirmus:
    """An ordered, append-only melody in a fixed key.

    Extending a sequence with :meth:`add_note` returns a new value, so the
    search frontier may hold many variants that share a common prefix. Equality
    and hashing are structural (key plus notes), which lets the scorer cache
    results per logical sequence rather than per object.
    """

    notes: Tuple[Pitch, ...]
    key: Key

    def __post_init__(self) -> None:
        if not self.notes:
            raise ValueError("a cantus firmus needs at least one note")
        if self.notes[0] != self.key.tonic:
            raise ValueError(
                f"a cantus firmus must start on the tonic {self.key.tonic}, not {self.notes[0]}"
            )

    @classmethod
    def start(cls, tonic: Pitch, mode: str) -> "CantusFirmus":
        """Return a one-note sequence on ``tonic`` in ``mode``."""

        return cls((tonic,), Key(tonic, mode))

    @property
    def tonic(self) -> Pitch:
        return self.key.tonic

    @property
    def mode(self) -> str:
        return self.key.mode

    def add_note(self, pitch: Pitch) -> "CantusFirmus":
        return CantusFirmus(self.notes + (pitch,), self.key)

    def names(self) -> list[str]:
        return [p.name for p in self.notes]

    def __len__(self) -> int:
        return len(self.notes)

    def __getitem__(self, index: int) -> Pitch:
        return self.notes[index]

    def __iter__(self) -> Iterator[Pitch]:
        return iter(self.notes)

    def __str__(self) -> str:
        return " ".join(self.names())
