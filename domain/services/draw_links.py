from __future__ import annotations

import logging
from dataclasses import dataclass

from domain.models import DrawState, Exhausted, Pool, PoolItem
from domain.ports.codec import StateCodecPort
from domain.services.draw_engine import DrawEngine
from domain.services.share_links import ShareLinkBuilder

logger = logging.getLogger(__name__)


class DrawError(Exception):
    pass


class LinkEncodingError(DrawError):
    pass


@dataclass(frozen=True)
class LinkView:
    token: str
    url: str
    state: DrawState
    remaining_items: list[PoolItem]

    @property
    def remaining_count(self) -> int:
        return len(self.remaining_items)

    @property
    def is_exhausted(self) -> bool:
        return self.state.is_exhausted

    def to_dict(self) -> dict[str, object]:
        return {
            "token": self.token,
            "url": self.url,
            "remaining": self.state.remaining,
            "created_at": self.state.created_at,
            "remaining_count": self.remaining_count,
            "remaining_items": [item.to_dict() for item in self.remaining_items],
            "exhausted": self.is_exhausted,
        }


@dataclass(frozen=True)
class DrawOutcome:
    picked: PoolItem | None
    link: LinkView

    @property
    def exhausted(self) -> bool:
        return self.picked is None

    def to_dict(self) -> dict[str, object]:
        return {
            "picked": self.picked.to_dict() if self.picked is not None else None,
            "exhausted": self.exhausted,
            "link": self.link.to_dict(),
        }


class DrawLinks:
    """Runs decode, draw, encode and link building for one participant."""

    def __init__(
        self,
        codec: StateCodecPort,
        engine: DrawEngine,
        links: ShareLinkBuilder,
    ) -> None:
        self._codec = codec
        self._engine = engine
        self._links = links

    @property
    def pool(self) -> Pool:
        return self._engine.pool

    def create(self, now_ms: int | None = None) -> LinkView:
        state = DrawState.full(self.pool, created_at=now_ms)
        view = self._view(state)
        logger.info("Created draw link %s for %d items", view.token, self.pool.size)
        return view

    def inspect(self, token: str | None) -> LinkView | None:
        state = self._codec.decode(token)
        if state is None:
            return None
        return self._view(state)

    def draw(self, token: str | None) -> DrawOutcome | None:
        state = self._codec.decode(token)
        if state is None:
            return None
        result = self._engine.draw(state)
        if isinstance(result, Exhausted):
            logger.info("Draw requested on exhausted link %s", token)
            return DrawOutcome(picked=None, link=self._view(result.state))
        view = self._view(result.next)
        logger.info(
            "Drew from link %s, %d items left, next link %s",
            token,
            view.remaining_count,
            view.token,
        )
        return DrawOutcome(picked=result.item, link=view)

    def _view(self, state: DrawState) -> LinkView:
        token = self._codec.encode(state)
        if not token:
            msg = f"Unable to encode draw state with mask {state.remaining}"
            raise LinkEncodingError(msg)
        return LinkView(
            token=token,
            url=self._links.build(token),
            state=state,
            remaining_items=state.remaining_items(self.pool),
        )
