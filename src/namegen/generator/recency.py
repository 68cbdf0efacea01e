"""Bounded recency sets used to reduce immediate name repetition."""

import random


class RecencyFilter:
    """Two capped sets of recently generated first and last names.

    This is an approximate anti-repetition heuristic, not an LRU: when a set
    grows past ``capacity`` one random element is evicted.

    Only names the generator actually returned are ever remembered.
    """

    def __init__(self, capacity: int = 100, rng: random.Random | None = None) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._rng = rng if rng is not None else random.Random()
        self._first: set[str] = set()
        self._last: set[str] = set()

    def remember(self, first_name: str, last_name: str) -> None:
        """Record a returned name pair, evicting at random past capacity."""
        self._first.add(first_name)
        self._last.add(last_name)
        self._evict(self._first)
        self._evict(self._last)

    def _evict(self, names: set[str]) -> None:
        if len(names) > self.capacity:
            # Sorted so eviction is reproducible under a seeded rng
            names.discard(self._rng.choice(sorted(names)))

    def contains_first(self, name: str) -> bool:
        return name in self._first

    def contains_last(self, name: str) -> bool:
        return name in self._last

    @property
    def len_first(self) -> int:
        return len(self._first)

    @property
    def len_last(self) -> int:
        return len(self._last)

    def clear(self) -> None:
        self._first.clear()
        self._last.clear()

    def snapshot(self) -> tuple[frozenset[str], frozenset[str]]:
        """Immutable copy of both sets (first names, last names)."""
        return frozenset(self._first), frozenset(self._last)
