from __future__ import annotations

from typing import Protocol


class RandomIndexSource(Protocol):
    def randbelow(self, upper: int) -> int:
        """Return an integer drawn uniformly from ``range(upper)``."""
        ...
