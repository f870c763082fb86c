from __future__ import annotations

import random
import secrets


class SystemRandomSource:
    def __init__(self) -> None:
        self._random = secrets.SystemRandom()

    def randbelow(self, upper: int) -> int:
        return self._random.randrange(upper)


class SeededRandomSource:
    """Reproducible source for demos and tests."""

    def __init__(self, seed: int | str) -> None:
        self._random = random.Random(seed)

    def randbelow(self, upper: int) -> int:
        return self._random.randrange(upper)
