"""Ordered key/value accumulator carrying values between tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional


@dataclass(frozen=True)
class TransferVariable:
    name: str
    value: Any


class TransferVariableList:
    """Append-only list of ``(name, value)`` pairs.

    Duplicate names are allowed. Reads are last-write-wins while every
    appended entry stays available for ordered iteration.
    """

    def __init__(self) -> None:
        self._entries: list[TransferVariable] = []

    def append(self, name: str, value: Any) -> TransferVariable:
        entry = TransferVariable(name=str(name), value=value)
        self._entries.append(entry)
        return entry

    def lookup(self, name: str) -> Any:
        """Return the most recently appended value for ``name``.

        Raises:
            KeyError: If nothing was appended under ``name``.
        """
        for entry in reversed(self._entries):
            if entry.name == name:
                return entry.value
        raise KeyError(name)

    def get(self, name: str, default: Optional[Any] = None) -> Any:
        try:
            return self.lookup(name)
        except KeyError:
            return default

    def history(self, name: str) -> list[Any]:
        """Every value appended under ``name``, oldest first."""
        return [entry.value for entry in self._entries if entry.name == name]

    def names(self) -> list[str]:
        """Distinct names in order of first appearance."""
        seen: dict[str, None] = {}
        for entry in self._entries:
            seen.setdefault(entry.name, None)
        return list(seen)

    def to_dict(self) -> dict[str, Any]:
        return {entry.name: entry.value for entry in self._entries}

    def __contains__(self, name: object) -> bool:
        return any(entry.name == name for entry in self._entries)

    def __iter__(self) -> Iterator[TransferVariable]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TransferVariableList({[(e.name, e.value) for e in self._entries]!r})"
