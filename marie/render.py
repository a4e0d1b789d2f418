from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

import jinja2
from markupsafe import Markup
from pydantic import BaseModel, ConfigDict

from .assets import AssetManifest, resolve_asset_path
from .config import Config
from .content import ContentMeta, format_date_long, get_excerpt_html
from .errors import TemplateError, WriteError
from .paths import output_url_path
from .pipeline import LoadedContent

logger = logging.getLogger(__name__)


class ContentItem(BaseModel):
    """A content entry as seen by index templates."""

    model_config = ConfigDict(frozen=True)

    html: str
    meta: ContentMeta
    formatted_date: str
    filename: str
    content_type: str
    excerpt: str


def url_filter(value: str) -> Markup:
    return Markup(value)


def datetimeformat_filter(value: Any, format: str = "%Y-%m-%d") -> str:
    if isinstance(value, str):
        value = dt.datetime.fromisoformat(value)
    return value.strftime(format)


class Renderer:
    """Template environment plus the read-only data every render needs.

    Built once per build and passed to each stage. Use :meth:`fresh` when the
    environment must not reuse compiled templates from an earlier build.
    """

    def __init__(self, config: Config, manifest: Optional[AssetManifest] = None, cache_size: int = 400):
        self.config = config
        self.manifest: AssetManifest = dict(manifest or {})
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(config.site.template_dir),
            autoescape=jinja2.select_autoescape(["html", "htm", "xml"]),
            cache_size=cache_size,
        )
        self.env.filters["url"] = url_filter
        self.env.filters["asset_hash"] = self.asset_hash
        self.env.filters["datetimeformat"] = datetimeformat_filter

    @classmethod
    def create(cls, config: Config, manifest: Optional[AssetManifest] = None) -> "Renderer":
        return cls(config, manifest)

    @classmethod
    def fresh(cls, config: Config, manifest: Optional[AssetManifest] = None) -> "Renderer":
        return cls(config, manifest, cache_size=0)

    def asset_hash(self, path: str) -> Markup:
        return Markup(resolve_asset_path(self.manifest, path))

    def render(self, template_name: str, **context: Any) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except jinja2.TemplateError as exc:
            raise TemplateError(template_name, str(exc) or exc.__class__.__name__) from exc

    def content_item(self, loaded: LoadedContent) -> ContentItem:
        site = self.config.site
        meta = loaded.content.meta
        return ContentItem(
            html=loaded.html,
            meta=meta,
            formatted_date=format_date_long(meta.date),
            filename=output_url_path(loaded.output_path, site.output_dir, site.clean_urls),
            content_type=loaded.content_type,
            excerpt=get_excerpt_html(loaded.content.data, allow_dangerous_html=site.allow_dangerous_html),
        )

    def sorted_items(self, loaded: Sequence[LoadedContent]) -> list[ContentItem]:
        items = [self.content_item(entry) for entry in loaded]
        items.sort(key=lambda item: item.meta.date, reverse=True)
        return items

    def render_page(self, loaded: LoadedContent, template_name: str) -> str:
        return self.render(
            template_name,
            content=loaded.html,
            meta=loaded.content.meta,
            config=self.config,
        )

    def render_index(
        self,
        template_name: str,
        loaded: Sequence[LoadedContent],
        all_content: Sequence[LoadedContent],
    ) -> str:
        return self.render(
            template_name,
            config=self.config,
            contents=self.sorted_items(loaded),
            all_content=self.sorted_items(all_content),
        )


def write_output_file(path: Path, text: str) -> None:
    logger.debug("Writing %s (%d bytes)", path, len(text))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise WriteError(path, exc.strerror or str(exc)) from exc
