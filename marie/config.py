from __future__ import annotations

import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_THEME = "github-dark"
MAX_BUILD_WORKERS = 32


class ContentTypeConfig(BaseModel):
    """One ``[content.<name>]`` table."""

    model_config = ConfigDict(frozen=True)

    index_template: str
    content_template: str
    url_pattern: Optional[str] = None
    # Legacy naming mode: "date" behaves like url_pattern = "{date}-{stem}".
    output_naming: Optional[str] = None
    rss_include: Optional[bool] = None


class SiteConfig(BaseModel):
    """The ``[site]`` table."""

    model_config = ConfigDict(frozen=True)

    title: str
    tagline: str
    domain: str
    author: str
    output_dir: str
    content_dir: str
    template_dir: str
    static_dir: str
    site_index_template: str
    syntax_highlighting_enabled: bool = True
    syntax_highlighting_theme: str = DEFAULT_THEME
    sitemap_enabled: bool = True
    rss_enabled: bool = True
    allow_dangerous_html: bool = False
    header_uri_fragment: bool = False
    clean_urls: bool = False
    asset_hashing_enabled: bool = False
    asset_manifest_path: Optional[str] = None
    # output filename -> source path relative to static_dir
    root_static: dict[str, str] = Field(default_factory=dict)
    build_workers: int = 0


class Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    site: SiteConfig
    content: dict[str, ContentTypeConfig] = Field(default_factory=dict)
    dynamic: dict[str, str] = Field(default_factory=dict)
    redirects: dict[str, str] = Field(default_factory=dict)

    def content_type(self, name: str) -> Optional[ContentTypeConfig]:
        return self.content.get(name)

    def sorted_content_types(self) -> list[tuple[str, ContentTypeConfig]]:
        return sorted(self.content.items())

    def worker_count(self) -> int:
        return resolve_workers(self.site.build_workers)


def resolve_workers(requested: int, cpu_count: Optional[int] = None) -> int:
    workers = int(requested or 0)
    if workers <= 0:
        workers = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    return max(1, min(workers, MAX_BUILD_WORKERS))


def parse_config_text(text: str, suffix: str, path: Path) -> dict[str, Any]:
    suffix = suffix.lower()
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(path, f"invalid TOML: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(path, f"invalid YAML: {exc}") from exc
        if data is None:
            data = {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(path, "configuration must be a mapping")
    return data


def load_config(path: Path | str) -> Config:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(path, "config file not found") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(path, f"cannot read config file: {getattr(exc, 'strerror', None) or exc}") from exc
    data = parse_config_text(text, path.suffix, path)
    try:
        config = Config.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(path, str(exc)) from exc
    logger.info("Loaded configuration from %s", path)
    return config
