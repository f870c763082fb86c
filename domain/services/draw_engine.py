from __future__ import annotations

from domain.models import DrawResult, DrawState, Exhausted, Picked, Pool
from domain.ports.randomness import RandomIndexSource


class DrawEngine:
    """Single state transition of a draw: clear exactly one available bit.

    The engine keeps no state between calls. Two calls on the same input may
    pick different items; each result is valid for the copy it was made from.
    """

    def __init__(self, pool: Pool, random_source: RandomIndexSource) -> None:
        self._pool = pool
        self._random = random_source

    @property
    def pool(self) -> Pool:
        return self._pool

    def draw(self, state: DrawState) -> DrawResult:
        available = state.available_indices(self._pool)
        if not available:
            return Exhausted(state=state)
        index = available[self._random.randbelow(len(available))]
        next_state = DrawState(
            remaining=state.remaining & ~(1 << index),
            created_at=state.created_at,
        )
        return Picked(item=self._pool[index], next=next_state)
