from __future__ import annotations

from adapters.random.sources import SeededRandomSource, SystemRandomSource
from adapters.token.state_codec import StateCodec
from app.config import AppSettings
from domain.models import Pool
from domain.ports.randomness import RandomIndexSource
from domain.services.draw_engine import DrawEngine
from domain.services.draw_links import DrawLinks


def build_random_source(settings: AppSettings, seed: int | None = None) -> RandomIndexSource:
    resolved_seed = seed if seed is not None else settings.draw.random_seed
    if resolved_seed is not None:
        return SeededRandomSource(resolved_seed)
    return SystemRandomSource()


def build_draw_links(
    settings: AppSettings,
    *,
    pool: Pool | None = None,
    random_source: RandomIndexSource | None = None,
    base_url: str | None = None,
) -> DrawLinks:
    resolved_pool = pool if pool is not None else settings.draw.build_pool()
    return DrawLinks(
        codec=StateCodec(resolved_pool),
        engine=DrawEngine(resolved_pool, random_source or build_random_source(settings)),
        links=settings.draw.build_link_builder(base_url),
    )
