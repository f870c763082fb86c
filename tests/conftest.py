from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from adapters.token.state_codec import StateCodec
from app.config import AppSettings, DrawSettings
from domain.models import DEFAULT_POOL, Pool


def _clear_theme_draw_env() -> None:
    for key in list(os.environ):
        if key.startswith("THEME_DRAW_"):
            os.environ.pop(key, None)


_clear_theme_draw_env()


@pytest.fixture(autouse=True)
def clear_theme_draw_env() -> Generator[None, None, None]:
    _clear_theme_draw_env()
    yield
    _clear_theme_draw_env()


@pytest.fixture
def pool() -> Pool:
    return DEFAULT_POOL


@pytest.fixture
def small_pool() -> Pool:
    return Pool.from_labels(["Red", "Green", "Blue"])


@pytest.fixture
def codec(pool: Pool) -> StateCodec:
    return StateCodec(pool)


@pytest.fixture
def draw_settings() -> DrawSettings:
    return DrawSettings(
        title="Test Draw",
        public_base_url="http://testserver/",
        random_seed=None,
    )


@pytest.fixture
def draw_settings_factory(draw_settings: DrawSettings) -> Callable[..., DrawSettings]:
    def _factory(**overrides: object) -> DrawSettings:
        return draw_settings.model_copy(update=overrides)

    return _factory


@pytest.fixture
def app_settings(draw_settings: DrawSettings) -> AppSettings:
    return AppSettings(draw=draw_settings)


@pytest.fixture
def app_settings_factory(
    draw_settings_factory: Callable[..., DrawSettings],
) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return AppSettings(draw=draw_settings_factory(**overrides))

    return _factory
