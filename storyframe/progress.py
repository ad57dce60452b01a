"""Incremental rendering state for a streamed multi-scene run."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Literal

from .ndjson import LineBuffer, decode_line
from .pipeline import SceneOutcome


@dataclass
class SceneSlot:
    index: int
    state: Literal["pending", "ok", "error"] = "pending"
    url: str | None = None
    error: str | None = None


class SceneResultSet:
    """Successful outcomes, collected in arrival order, read back by index."""

    def __init__(self) -> None:
        self._items: list[SceneOutcome] = []

    def add(self, outcome: SceneOutcome) -> None:
        self._items.append(outcome)

    def sorted(self) -> list[SceneOutcome]:
        return sorted(self._items, key=lambda o: o.index)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


def percent(completed: int, total: int) -> int:
    """completed/total as a whole percentage, halves rounded up."""
    if total <= 0:
        return 0
    return math.floor(completed / total * 100 + 0.5)


class SceneProgress:
    """Consumes the NDJSON scene stream and tracks per-scene state.

    Slots are created up front for every scene. Each record updates the slot
    for its own index, while ``completed`` counts records as they arrive.
    """

    def __init__(
        self,
        total: int,
        on_update: Callable[[SceneSlot, "SceneProgress"], None] | None = None,
    ):
        self.total = total
        self.slots = [SceneSlot(index=i) for i in range(total)]
        self.completed = 0
        self.results = SceneResultSet()
        self.on_update = on_update
        self._buffer = LineBuffer()
        self._finished = False

    @property
    def percent(self) -> int:
        return percent(self.completed, self.total)

    @property
    def has_results(self) -> bool:
        return bool(self.results)

    def feed(self, chunk: bytes | str) -> list[SceneOutcome]:
        """Process a chunk of the body; returns the outcomes it completed."""
        return self._apply(self._buffer.feed(chunk))

    def finish(self) -> list[SceneOutcome]:
        """Handle the last unterminated line and return successes by index."""
        if not self._finished:
            self._finished = True
            self._apply([self._buffer.flush()])
        return self.results.sorted()

    def _apply(self, lines: list[str]) -> list[SceneOutcome]:
        applied = []
        for line in lines:
            record = decode_line(line)
            if record is None:
                continue
            try:
                outcome = SceneOutcome.from_dict(record)
            except ValueError:
                continue
            if outcome.index >= self.total:
                continue
            self._update(outcome)
            applied.append(outcome)
        return applied

    def _update(self, outcome: SceneOutcome) -> None:
        slot = self.slots[outcome.index]
        if outcome.ok:
            slot.state, slot.url = "ok", outcome.url
            self.results.add(outcome)
        else:
            slot.state, slot.error = "error", outcome.error
        self.completed += 1
        if self.on_update:
            self.on_update(slot, self)
