from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode, urlsplit, urlunsplit

DEFAULT_STATE_PARAM = "state"


@dataclass(frozen=True)
class ShareLinkBuilder:
    base_url: str = "/"
    state_param: str = DEFAULT_STATE_PARAM

    def build(self, token: str) -> str:
        parts = urlsplit(self.base_url or "/")
        path = parts.path or "/"
        query = urlencode({self.state_param: token})
        return urlunsplit((parts.scheme, parts.netloc, path, query, ""))
