from __future__ import annotations

import logging

import pytest

from domain.models import DEFAULT_POOL, DrawState, LegacyPayload, Pool


def test_default_pool_has_nine_sports_themes() -> None:
    assert DEFAULT_POOL.size == 9
    assert DEFAULT_POOL.full_mask == 511
    assert DEFAULT_POOL[3].label == "Golf"
    assert DEFAULT_POOL[3].id == "3"


@pytest.mark.parametrize(
    "labels",
    [[], ["ok", "  "], [f"item-{index}" for index in range(33)]],
)
def test_pool_rejects_invalid_labels(labels: list[str]) -> None:
    with pytest.raises(ValueError):
        Pool.from_labels(labels)


def test_pool_warns_about_duplicate_labels(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="domain.models"):
        pool = Pool.from_labels(["Golf", "Gym", "Golf"])

    assert pool.size == 3
    assert "Golf" in caplog.text


def test_draw_state_lists_remaining_items(small_pool: Pool) -> None:
    state = DrawState(remaining=0b101)

    assert state.available_indices(small_pool) == [0, 2]
    assert [item.label for item in state.remaining_items(small_pool)] == ["Red", "Blue"]
    assert not state.is_exhausted
    assert DrawState(remaining=0).is_exhausted


def test_legacy_payload_matches_by_label_or_id(small_pool: Pool) -> None:
    payload = LegacyPayload.model_validate(
        {
            "id": "abc",
            "items": [{"id": "zzz", "label": "Blue"}, {"id": "1", "label": "unknown"}],
            "meta": {"createdAt": 1_700_000_000_000},
        }
    )

    assert payload.mask_for(small_pool) == 0b110
    assert payload.meta.created_at == 1_700_000_000_000


def test_legacy_payload_from_state_lists_remaining_items(small_pool: Pool) -> None:
    payload = LegacyPayload.from_state(DrawState(remaining=0b011, created_at=5000), small_pool)

    assert payload.to_wire() == {
        "items": [{"id": "0", "label": "Red"}, {"id": "1", "label": "Green"}],
        "meta": {"createdAt": 5000},
    }
