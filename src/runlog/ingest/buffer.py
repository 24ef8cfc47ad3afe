"""Ingest buffer — stages pending writes in memory until a stage commits them."""

from __future__ import annotations

from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class IngestBuffer(Generic[K, V]):
    """Keyed write-behind buffer with stable insertion order.

    Overwriting a key replaces its value but keeps the position of the first
    ``set``, so a flush always replays keys in first-staged order. The buffer
    does no locking and holds no reference to the store; a single stage owns
    it at a time.
    """

    def __init__(self) -> None:
        # dict keeps insertion order and an overwrite does not move the key
        self._entries: dict[K, V] = {}

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the staged value for ``key``, or ``default`` on a miss."""
        return self._entries.get(key, default)

    def has(self, key: K) -> bool:
        return key in self._entries

    def set(self, key: K, value: V) -> None:
        self._entries[key] = value

    def values(self) -> list[V]:
        """Snapshot of staged values in insertion order. Does not clear."""
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"IngestBuffer(entries={len(self._entries)})"
