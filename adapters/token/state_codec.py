from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Any, Union

import orjson
from pydantic import ValidationError

from adapters.token.radix import from_base36, to_base36
from domain.models import DrawState, LegacyPayload, Pool

logger = logging.getLogger(__name__)

COMPACT_PREFIX = "m"
TIME_SEPARATOR = ".t"
COMPACT_RE = re.compile(r"^m([0-9a-z]+)(\.t([0-9a-z]+))?$", re.IGNORECASE)
_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")


@dataclass(frozen=True)
class CompactToken:
    mask_digits: str
    time_digits: str | None = None


@dataclass(frozen=True)
class LegacyToken:
    payload: LegacyPayload


ParsedToken = Union[CompactToken, LegacyToken]


def base64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def base64url_decode(token: str) -> bytes | None:
    if not _BASE64URL_RE.match(token):
        return None
    standard = token.rstrip("=").replace("-", "+").replace("_", "/")
    standard += "=" * (-len(standard) % 4)
    try:
        return base64.b64decode(standard, validate=True)
    except (binascii.Error, ValueError):
        return None


def _load_json_object(raw: bytes) -> dict[str, Any] | None:
    try:
        text = raw.decode("utf-8")
        data = orjson.loads(text)
    except (UnicodeDecodeError, orjson.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def parse_legacy(token: str) -> LegacyToken | None:
    raw = base64url_decode(token)
    if raw is None:
        return None
    data = _load_json_object(raw)
    if data is None:
        return None
    try:
        payload = LegacyPayload.model_validate(data)
    except ValidationError:
        logger.debug("Token %r is JSON but not a legacy draw payload", token)
        return None
    return LegacyToken(payload=payload)


def parse_compact(token: str) -> CompactToken | None:
    match = COMPACT_RE.match(token)
    if match is None:
        return None
    return CompactToken(mask_digits=match.group(1), time_digits=match.group(3))


def parse_token(token: str | None) -> ParsedToken | None:
    """Identify the grammar of ``token``.

    The legacy Base64 JSON grammar is tried first and the compact
    ``m<mask>[.t<time>]`` grammar second; ``None`` means neither matched.
    """
    if not token:
        return None
    candidate = token.strip()
    if not candidate:
        return None
    return parse_legacy(candidate) or parse_compact(candidate)


class StateCodec:
    """Converts draw states to URL query values and back.

    ``encode`` always writes the compact grammar. Masks outside
    ``[0, 2**N - 1]`` are clamped to the pool's bits (negative masks become
    ``0``) and negative creation times are omitted. Creation times keep only
    whole seconds in the compact grammar.
    """

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    @property
    def pool(self) -> Pool:
        return self._pool

    def encode(self, state: DrawState) -> str:
        try:
            mask = self._clamp(state.remaining)
            token = f"{COMPACT_PREFIX}{to_base36(mask)}"
            if state.created_at is not None and state.created_at >= 0:
                token += f"{TIME_SEPARATOR}{to_base36(int(state.created_at) // 1000)}"
        except (TypeError, ValueError):
            logger.exception("Failed to encode draw state %r", state)
            return ""
        return token

    def encode_legacy(self, state: DrawState, session_id: str | None = None) -> str:
        try:
            payload = LegacyPayload.from_state(state, self._pool, session_id=session_id)
            raw = orjson.dumps(payload.to_wire())
        except (TypeError, ValueError):
            logger.exception("Failed to encode legacy draw state %r", state)
            return ""
        return base64url_encode(raw)

    def decode(self, token: str | None) -> DrawState | None:
        parsed = parse_token(token)
        if isinstance(parsed, LegacyToken):
            return self._from_legacy(parsed)
        if isinstance(parsed, CompactToken):
            return self._from_compact(parsed)
        logger.debug("Unrecognized draw token %r", token)
        return None

    def _from_legacy(self, parsed: LegacyToken) -> DrawState:
        created_at = parsed.payload.meta.created_at
        return DrawState(
            remaining=parsed.payload.mask_for(self._pool),
            created_at=int(created_at) if created_at is not None else None,
        )

    def _from_compact(self, parsed: CompactToken) -> DrawState:
        mask = from_base36(parsed.mask_digits)
        if mask is None or mask > self._pool.full_mask:
            logger.debug("Compact mask %r is out of range, treating as exhausted", parsed.mask_digits)
            mask = 0
        created_at: int | None = None
        if parsed.time_digits is not None:
            seconds = from_base36(parsed.time_digits)
            created_at = seconds * 1000 if seconds is not None else None
        return DrawState(remaining=mask, created_at=created_at)

    def _clamp(self, remaining: int) -> int:
        if remaining < 0:
            return 0
        return int(remaining) & self._pool.full_mask
