from __future__ import annotations


class ScriptedRandomSource:
    """Replays a fixed list of indices; used to pin picks in tests."""

    def __init__(self, picks: list[int]) -> None:
        self._picks = list(picks)
        self.calls: list[int] = []

    def randbelow(self, upper: int) -> int:
        self.calls.append(upper)
        if not self._picks:
            msg = "ScriptedRandomSource ran out of picks"
            raise IndexError(msg)
        pick = self._picks.pop(0)
        if not 0 <= pick < upper:
            msg = f"Scripted pick {pick} is outside range({upper})"
            raise ValueError(msg)
        return pick
