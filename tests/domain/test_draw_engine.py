from __future__ import annotations

from collections import Counter

import pytest

from adapters.random.sources import SeededRandomSource
from adapters.token.state_codec import StateCodec
from domain.models import DrawState, Exhausted, Picked, Pool
from domain.services.draw_engine import DrawEngine
from tests.helpers.random_sources import ScriptedRandomSource


def _bit_count(value: int) -> int:
    return bin(value).count("1")


def test_exhausted_state_returns_exhausted(pool: Pool) -> None:
    engine = DrawEngine(pool, ScriptedRandomSource([]))
    state = DrawState(remaining=0, created_at=1_700_000_000_000)

    result = engine.draw(state)

    assert isinstance(result, Exhausted)
    assert result.state == state


def test_single_remaining_item_is_always_picked(pool: Pool) -> None:
    engine = DrawEngine(pool, SeededRandomSource(7))

    for _ in range(20):
        result = engine.draw(DrawState(remaining=0b000000001))
        assert isinstance(result, Picked)
        assert result.item == pool[0]
        assert result.next.remaining == 0


def test_picks_from_available_indices_only(pool: Pool) -> None:
    random_source = ScriptedRandomSource([1])
    engine = DrawEngine(pool, random_source)
    state = DrawState(remaining=(1 << 2) | (1 << 5) | (1 << 8))

    result = engine.draw(state)

    assert isinstance(result, Picked)
    assert result.item.label == "Badminton"
    assert result.next.remaining == (1 << 2) | (1 << 8)
    assert random_source.calls == [3]


def test_created_at_is_carried_over(pool: Pool) -> None:
    engine = DrawEngine(pool, ScriptedRandomSource([0]))
    state = DrawState(remaining=pool.full_mask, created_at=1_700_000_123_000)

    result = engine.draw(state)

    assert isinstance(result, Picked)
    assert result.next.created_at == 1_700_000_123_000


def test_bits_above_pool_size_are_ignored(small_pool: Pool) -> None:
    engine = DrawEngine(small_pool, ScriptedRandomSource([0]))

    result = engine.draw(DrawState(remaining=0b11000))

    assert isinstance(result, Exhausted)


@pytest.mark.parametrize("mask", [0b111111111, 0b101010101, 0b000010000, 0b110000011])
def test_draw_shrinks_mask_monotonically(pool: Pool, mask: int) -> None:
    engine = DrawEngine(pool, SeededRandomSource(mask))
    state = DrawState(remaining=mask)

    result = engine.draw(state)

    assert isinstance(result, Picked)
    assert _bit_count(result.next.remaining) == _bit_count(mask) - 1
    assert result.next.remaining & state.remaining == result.next.remaining
    assert not (result.next.remaining >> result.item.index) & 1


def test_same_input_can_diverge(pool: Pool) -> None:
    engine = DrawEngine(pool, ScriptedRandomSource([0, 4]))
    state = DrawState(remaining=pool.full_mask)

    first = engine.draw(state)
    second = engine.draw(state)

    assert isinstance(first, Picked)
    assert isinstance(second, Picked)
    assert first.item != second.item
    assert state.remaining == pool.full_mask


def test_draw_is_fair_over_remaining_items(pool: Pool) -> None:
    engine = DrawEngine(pool, SeededRandomSource(2024))
    mask = (1 << 1) | (1 << 4) | (1 << 6) | (1 << 8)
    trials = 20_000

    counts: Counter[int] = Counter()
    for _ in range(trials):
        result = engine.draw(DrawState(remaining=mask))
        assert isinstance(result, Picked)
        counts[result.item.index] += 1

    assert set(counts) == {1, 4, 6, 8}
    expected = trials / 4
    for index in (1, 4, 6, 8):
        assert abs(counts[index] - expected) / expected < 0.05


def test_nine_participants_draw_every_item_once(pool: Pool) -> None:
    codec = StateCodec(pool)
    engine = DrawEngine(pool, SeededRandomSource(9))
    token = codec.encode(DrawState.full(pool, created_at=1_700_000_000_000))
    assert token.startswith("me7")

    picks: list[str] = []
    for _ in range(pool.size):
        participant_state = codec.decode(token)
        assert participant_state is not None
        result = engine.draw(participant_state)
        assert isinstance(result, Picked)
        picks.append(result.item.label)
        token = codec.encode(result.next)

    final_state = codec.decode(token)
    assert final_state is not None
    assert final_state.remaining == 0
    assert sorted(picks) == sorted(pool.labels())
    assert isinstance(engine.draw(final_state), Exhausted)
