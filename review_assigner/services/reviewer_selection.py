"""
Reviewer selection.

Pure functions over an ordered candidate list. Callers filter candidates
(active, not the author, not already assigned) before calling; nothing here
touches storage.

Randomness is an injected capability with a single method ``intn(n)``
returning an int in ``[0, n)``. Passing ``None`` selects deterministically
from the head of the list, which keeps tests and dry runs reproducible.

Pair draw:
    i = intn(n)
    j = intn(n - 1); if j >= i: j += 1
Both draws are uniform over their ranges and ``i != j`` always holds, so
every ordered pair of distinct candidates is reachable.
"""

from __future__ import annotations

import random
import threading
from typing import Protocol, Sequence

from review_assigner.domain import MAX_REVIEWERS, User


class RandomSource(Protocol):
    def intn(self, n: int) -> int:
        ...


class SystemRandomSource:
    """``random.Random`` behind a lock so one instance can serve all requests."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._lock = threading.Lock()

    def intn(self, n: int) -> int:
        if n <= 0:
            raise ValueError("intn requires n > 0")
        with self._lock:
            return self._rng.randrange(n)


def choose_reviewers(candidates: Sequence[User], rand: RandomSource | None) -> list[str]:
    """Pick up to MAX_REVIEWERS distinct reviewer ids."""
    n = len(candidates)
    if n == 0:
        return []
    if n == 1:
        return [candidates[0].id]
    if rand is None:
        return [c.id for c in candidates[:MAX_REVIEWERS]]

    i = rand.intn(n)
    j = rand.intn(n - 1)
    if j >= i:
        j += 1
    return [candidates[i].id, candidates[j].id]


def choose_one(candidates: Sequence[User], rand: RandomSource | None) -> str | None:
    """Pick a single replacement reviewer id, or None when there is no candidate."""
    if not candidates:
        return None
    if rand is None:
        return candidates[0].id
    return candidates[rand.intn(len(candidates))].id
