from __future__ import annotations

from typing import Protocol

from domain.models import DrawState


class StateCodecPort(Protocol):
    def encode(self, state: DrawState) -> str: ...

    def decode(self, token: str | None) -> DrawState | None: ...
