from __future__ import annotations

import pytest

from domain.services.share_links import ShareLinkBuilder


@pytest.mark.parametrize(
    ("base_url", "expected"),
    [
        ("/", "/?state=me7"),
        ("", "/?state=me7"),
        ("https://draw.example.com", "https://draw.example.com/?state=me7"),
        ("https://draw.example.com/party?state=old#top", "https://draw.example.com/party?state=me7"),
    ],
)
def test_build_share_link(base_url: str, expected: str) -> None:
    assert ShareLinkBuilder(base_url=base_url).build("me7") == expected


def test_custom_state_param() -> None:
    builder = ShareLinkBuilder(base_url="http://testserver/", state_param="s")

    assert builder.build("m1.tabc") == "http://testserver/?s=m1.tabc"
