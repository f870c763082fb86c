from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, ClassVar
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from domain.models import DEFAULT_THEMES, MAX_POOL_SIZE, Pool
from domain.services.share_links import DEFAULT_STATE_PARAM, ShareLinkBuilder

DEFAULT_CONFIG_PATH = Path("config/draw/app.yaml")


def _split_string_list_value(raw_value: str) -> list[str]:
    raw = raw_value.strip()
    if not raw:
        return []
    if (
        (raw.startswith('"') and raw.endswith('"')) or (raw.startswith("'") and raw.endswith("'"))
    ) and len(raw) >= 2:
        raw = raw[1:-1].strip()
    if raw.startswith("[") and raw.endswith("]"):
        raw = raw[1:-1].strip()
    if not raw:
        return []
    return [
        token for token in (part.strip().strip("'").strip('"') for part in raw.split(",")) if token
    ]


class DrawSettings(BaseModel):
    title: str = "Best-dressed theme - anonymous draw"
    pool: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_THEMES),
        validation_alias=AliasChoices("pool", "themes"),
    )
    state_param: str = DEFAULT_STATE_PARAM
    public_base_url: str = "/"
    random_seed: int | None = None

    @field_validator("pool", mode="before")
    @classmethod
    def normalize_pool(cls, value: object) -> list[str]:
        if value is None:
            return list(DEFAULT_THEMES)
        if isinstance(value, (list, tuple)):
            normalized: list[str] = []
            for item in value:
                normalized.extend(_split_string_list_value(str(item)))
            return normalized
        return _split_string_list_value(str(value))

    @field_validator("pool", mode="after")
    @classmethod
    def check_pool_size(cls, value: list[str]) -> list[str]:
        if not value:
            msg = "draw.pool must list at least one item"
            raise ValueError(msg)
        if len(value) > MAX_POOL_SIZE:
            msg = f"draw.pool supports at most {MAX_POOL_SIZE} items"
            raise ValueError(msg)
        return value

    @field_validator("state_param", mode="before")
    @classmethod
    def normalize_state_param(cls, value: object) -> str:
        normalized = str(value or "").strip()
        return normalized or DEFAULT_STATE_PARAM

    @field_validator("public_base_url", mode="before")
    @classmethod
    def normalize_public_base_url(cls, value: object) -> str:
        normalized = str(value or "").strip()
        if not normalized:
            return "/"
        if normalized.startswith("/") or is_absolute_url(normalized):
            return normalized
        msg = "draw.public_base_url must be an absolute http(s) URL or a path"
        raise ValueError(msg)

    def build_pool(self) -> Pool:
        return Pool.from_labels(self.pool)

    def build_link_builder(self, base_url: str | None = None) -> ShareLinkBuilder:
        return ShareLinkBuilder(
            base_url=base_url or self.public_base_url,
            state_param=self.state_param,
        )


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="THEME_DRAW_", env_nested_delimiter="__")

    draw: DrawSettings = DrawSettings()

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ]
        if cls._yaml_path:
            sources.append(YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path))
        return tuple(sources)


def load_settings(config_path: Path | None = None) -> AppSettings:
    env_path = os.getenv("THEME_DRAW_CONFIG_PATH")
    resolved_path: Path | None = None

    if config_path is not None:
        resolved_path = config_path
    elif env_path:
        resolved_path = Path(env_path)
    elif DEFAULT_CONFIG_PATH.exists():
        resolved_path = DEFAULT_CONFIG_PATH

    previous = AppSettings._yaml_path
    try:
        if resolved_path is not None:
            if not resolved_path.exists():
                msg = f"Config file not found: {resolved_path}"
                raise FileNotFoundError(msg)
            AppSettings._yaml_path = resolved_path
        return AppSettings()
    finally:
        AppSettings._yaml_path = previous


def is_absolute_url(value: str) -> bool:
    raw = str(value or "").strip()
    if not raw:
        return False
    parsed = urlparse(raw)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)
