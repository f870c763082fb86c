from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

MAX_POOL_SIZE = 32
DEFAULT_THEMES: Tuple[str, ...] = (
    "Basketball",
    "Baseball",
    "Swimming",
    "Golf",
    "Gym",
    "Badminton",
    "Cycling",
    "Soccer",
    "Fencing",
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolItem:
    index: int
    id: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "label": self.label}


@dataclass(frozen=True)
class Pool:
    """Ordered, fixed set of drawable items.

    Position is the identity used by the compact token grammar, so reordering
    the labels invalidates every compact link already handed out.
    """

    items: Tuple[PoolItem, ...]

    @classmethod
    def from_labels(cls, labels: Iterable[str]) -> Pool:
        cleaned = [str(label).strip() for label in labels]
        if not cleaned:
            msg = "Pool must contain at least one item"
            raise ValueError(msg)
        if len(cleaned) > MAX_POOL_SIZE:
            msg = f"Pool supports at most {MAX_POOL_SIZE} items, got {len(cleaned)}"
            raise ValueError(msg)
        if any(not label for label in cleaned):
            msg = "Pool labels must be non-empty"
            raise ValueError(msg)
        duplicates = sorted(label for label, count in Counter(cleaned).items() if count > 1)
        if duplicates:
            # Legacy tokens match by label, so these items cannot be told apart there.
            logger.warning("Pool contains duplicate labels: %s", ", ".join(duplicates))
        return cls(
            items=tuple(
                PoolItem(index=index, id=str(index), label=label)
                for index, label in enumerate(cleaned)
            )
        )

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def full_mask(self) -> int:
        return (1 << self.size) - 1

    def labels(self) -> List[str]:
        return [item.label for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[PoolItem]:
        return iter(self.items)

    def __getitem__(self, index: int) -> PoolItem:
        return self.items[index]


DEFAULT_POOL = Pool.from_labels(DEFAULT_THEMES)


@dataclass(frozen=True)
class DrawState:
    remaining: int
    created_at: Optional[int] = None  # epoch milliseconds, advisory only

    @classmethod
    def full(cls, pool: Pool, created_at: Optional[int] = None) -> DrawState:
        return cls(remaining=pool.full_mask, created_at=created_at)

    @property
    def is_exhausted(self) -> bool:
        return self.remaining == 0

    def available_indices(self, pool: Pool) -> List[int]:
        return [index for index in range(pool.size) if (self.remaining >> index) & 1]

    def remaining_items(self, pool: Pool) -> List[PoolItem]:
        return [pool[index] for index in self.available_indices(pool)]


@dataclass(frozen=True)
class Picked:
    item: PoolItem
    next: DrawState


@dataclass(frozen=True)
class Exhausted:
    state: DrawState


DrawResult = Union[Picked, Exhausted]


class LegacyItem(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str = ""
    label: str = ""


class LegacyMeta(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    created_at: Optional[float] = Field(default=None, alias="createdAt", allow_inf_nan=False)

    @field_validator("created_at", mode="wrap")
    @classmethod
    def drop_unreadable_created_at(
        cls, value: object, handler: ValidatorFunctionWrapHandler
    ) -> Optional[float]:
        # Advisory only; a bad timestamp must not invalidate the items.
        try:
            return handler(value)
        except ValidationError:
            return None


class LegacyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    items: List[LegacyItem]
    meta: LegacyMeta = Field(default_factory=LegacyMeta)

    @field_validator("items", mode="before")
    @classmethod
    def drop_null_items(cls, value: object) -> object:
        if isinstance(value, list):
            return [item for item in value if item is not None]
        return value

    @field_validator("meta", mode="before")
    @classmethod
    def default_unreadable_meta(cls, value: object) -> object:
        if isinstance(value, (dict, LegacyMeta)):
            return value
        return {}

    def mask_for(self, pool: Pool) -> int:
        ids = {item.id for item in self.items}
        labels = {item.label for item in self.items}
        mask = 0
        for pool_item in pool:
            if pool_item.id in ids or pool_item.label in labels:
                mask |= 1 << pool_item.index
        return mask

    @classmethod
    def from_state(
        cls, state: DrawState, pool: Pool, session_id: Optional[str] = None
    ) -> LegacyPayload:
        return cls(
            id=session_id,
            items=[
                LegacyItem(id=item.id, label=item.label) for item in state.remaining_items(pool)
            ],
            meta=LegacyMeta(created_at=state.created_at),
        )

    def to_wire(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "items": [item.model_dump() for item in self.items],
            "meta": {},
        }
        if self.id is not None:
            payload["id"] = self.id
        if self.meta.created_at is not None:
            created_at = self.meta.created_at
            payload["meta"] = {
                "createdAt": int(created_at) if float(created_at).is_integer() else created_at
            }
        return payload
