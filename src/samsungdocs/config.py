"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (SAMSUNGDOCS__SERVER__TRANSPORT=http)
  2. samsungdocs.yaml       (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir("samsung-docs")

WEEK_HOURS = 7 * 24


def _find_config_file() -> str | None:
    """Return the path of the first samsungdocs.yaml found, or None."""
    candidates = [
        Path("samsungdocs.yaml"),
        Path(platformdirs.user_config_dir("samsung-docs")) / "samsungdocs.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "0.0.0.0"
    port: int = 8787
    auth_enabled: bool = False
    auth_key: str = ""


class CacheSettings(BaseModel):
    dir: str = _DEFAULT_CACHE_DIR
    ttl_hours: int = Field(default=WEEK_HOURS, ge=0)

    @property
    def path(self) -> Path:
        return Path(self.dir).expanduser()

    @property
    def ttl_ms(self) -> int:
        return self.ttl_hours * 3600 * 1000


class PopulateSettings(BaseModel):
    concurrency: int = Field(default=5, ge=1)
    section: str = "all"
    on_startup: bool = True
    refresh_interval_hours: float = Field(default=WEEK_HOURS, gt=0)


class FetcherSettings(BaseModel):
    base_url: str = "https://developer.samsung.com"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36"
    )
    timeout_seconds: float = 30.0


class SearchSettings(BaseModel):
    title_boost: float = 3.0
    fuzzy: float = Field(default=0.2, ge=0.0, le=1.0)
    prefix: bool = True
    max_snippet_lines: int = 5


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: SAMSUNGDOCS__SERVER__PORT=9090
        env_prefix="SAMSUNGDOCS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    cache: CacheSettings = CacheSettings()
    populate: PopulateSettings = PopulateSettings()
    fetcher: FetcherSettings = FetcherSettings()
    search: SearchSettings = SearchSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
