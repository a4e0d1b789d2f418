from __future__ import annotations

import datetime as dt
import html as html_lib
import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Optional

import markdown
from markdown.extensions import Extension
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, ValidationError

from .errors import ContentIOError, HighlightError, MarkdownError, MetadataError
from .syntax import SyntaxHighlightError, highlight_html

logger = logging.getLogger(__name__)

EXCERPT_MARKER = "## Context"
META_SUFFIX = ".meta.toml"
MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]
HEADING_RE = re.compile(r"<h(?P<level>[1-6])>(?P<inner>.*?)</h(?P=level)>", re.DOTALL)
TAG_RE = re.compile(r"<[^>]+>")


class ContentMeta(BaseModel):
    """Sidecar metadata stored next to each markdown file as ``<name>.meta.toml``."""

    model_config = ConfigDict(frozen=True)

    title: str
    date: AwareDatetime
    author: str
    tags: list[str]
    template: Optional[str] = None
    cover: Optional[str] = None
    extra_js: list[str] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)


class Content(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    meta: ContentMeta
    data: str


class EscapeHtmlExtension(Extension):
    """Treat raw HTML in the source as text so it is escaped on output."""

    def extendMarkdown(self, md):
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")


def slugify(text: str, fallback: str = "section") -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or fallback


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def meta_path_for(markdown_path: Path) -> Path:
    # hello.md -> hello.meta.toml
    return markdown_path.with_name(markdown_path.stem + META_SUFFIX)


def load_metadata(markdown_path: Path) -> ContentMeta:
    meta_path = meta_path_for(markdown_path)
    logger.debug("Reading metadata %s", meta_path)
    try:
        text = meta_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentIOError(meta_path, getattr(exc, "strerror", None) or str(exc)) from exc
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise MetadataError(meta_path, f"invalid TOML: {exc}") from exc
    try:
        return ContentMeta.model_validate(data)
    except ValidationError as exc:
        raise MetadataError(meta_path, str(exc)) from exc


def load_content(path: Path) -> Content:
    meta = load_metadata(path)
    logger.debug("Reading %s", path)
    try:
        data = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentIOError(path, getattr(exc, "strerror", None) or str(exc)) from exc
    return Content(path=path, meta=meta, data=data)


def markdown_to_html(text: str, allow_dangerous_html: bool) -> str:
    extensions: list[Any] = list(MARKDOWN_EXTENSIONS)
    if not allow_dangerous_html:
        extensions.append(EscapeHtmlExtension())
    md = markdown.Markdown(extensions=extensions)
    return md.convert(text)


def add_header_anchors(html_text: str) -> str:
    """``<h2>My Section</h2>`` -> ``<h2 id="my-section"><a href="#my-section">My Section</a></h2>``."""
    seen: dict[str, int] = {}

    def repl(match: re.Match) -> str:
        level = match.group("level")
        inner = match.group("inner")
        slug = slugify(html_lib.unescape(strip_tags(inner)))
        count = seen.get(slug, 0) + 1
        seen[slug] = count
        if count > 1:
            slug = f"{slug}-{count}"
        return f'<h{level} id="{slug}"><a href="#{slug}">{inner}</a></h{level}>'

    return HEADING_RE.sub(repl, html_text)


def convert_content(
    content: Content,
    highlighting_enabled: bool,
    theme: str,
    allow_dangerous_html: bool,
    header_uri_fragment: bool,
) -> str:
    try:
        html_text = markdown_to_html(content.data, allow_dangerous_html)
    except Exception as exc:  # pragma: no cover - depends on the markdown parser
        raise MarkdownError(content.path, str(exc)) from exc

    if header_uri_fragment:
        html_text = add_header_anchors(html_text)

    if highlighting_enabled:
        try:
            html_text = highlight_html(html_text, theme)
        except SyntaxHighlightError as exc:
            raise HighlightError(content.path, str(exc)) from exc
    return html_text


def get_excerpt_html(text: str, marker: str = EXCERPT_MARKER, allow_dangerous_html: bool = False) -> str:
    """HTML of the section that follows ``marker`` up to the next heading."""
    start = text.find(marker)
    if start < 0:
        return ""
    after = text[start + len(marker) :]
    if not after.strip():
        return ""
    ends = [idx for idx in (after.find("\n##"), after.find("\n# ")) if idx >= 0]
    end = min(ends) if ends else len(after)
    excerpt = after[:end].strip()
    if not excerpt:
        return ""
    return markdown_to_html(excerpt, allow_dangerous_html)


def format_date_long(value: dt.datetime) -> str:
    return value.strftime("%B %d, %Y")
