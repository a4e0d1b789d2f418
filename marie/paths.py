from __future__ import annotations

import datetime as dt
import os
import re
from pathlib import Path, PurePath
from typing import Optional

from .config import Config

DEFAULT_CONTENT_TYPE = "page"
DEFAULT_PATTERN = "{stem}"
DATE_PATTERN = "{date}-{stem}"
DEFAULT_TEMPLATE = "default.html"
INDEX_FILENAME = "index.html"
HTML_SUFFIX = ".html"
MARKDOWN_EXTENSIONS = (".md", ".markdown")
DATE_PREFIX_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}-")


def content_type(file_path: PurePath | str, content_root: PurePath | str) -> str:
    """Return the first directory below ``content_root`` or ``"page"``."""
    try:
        rel = PurePath(file_path).relative_to(PurePath(content_root))
    except ValueError:
        return DEFAULT_CONTENT_TYPE
    if len(rel.parts) < 2:
        return DEFAULT_CONTENT_TYPE
    return rel.parts[0]


def file_stem(filename: str) -> str:
    stem = filename
    for ext in MARKDOWN_EXTENSIONS:
        if stem.endswith(ext):
            stem = stem[: -len(ext)]
            break
    if DATE_PREFIX_RE.match(stem):
        stem = stem[11:]
    return stem


def resolve_url_pattern(pattern: str, filename: str, date: dt.date) -> str:
    stem = file_stem(filename)
    replacements = {
        "{stem}": stem,
        "{date}": f"{date.year:04d}-{date.month:02d}-{date.day:02d}",
        "{year}": f"{date.year:04d}",
        "{month}": f"{date.month:02d}",
        "{day}": f"{date.day:02d}",
    }
    resolved = pattern
    for placeholder, value in replacements.items():
        resolved = resolved.replace(placeholder, value)
    return resolved


def build_output_path(
    content_type_name: str, resolved: str, output_root: PurePath | str, clean_urls: bool
) -> Path:
    base = Path(output_root) / content_type_name / resolved
    if clean_urls:
        return base / INDEX_FILENAME
    return base.with_suffix(HTML_SUFFIX)


def select_url_pattern(config: Config, content_type_name: str) -> str:
    """Explicit ``url_pattern`` first, then the legacy ``output_naming``, then ``{stem}``."""
    settings = config.content_type(content_type_name)
    if settings is None:
        return DEFAULT_PATTERN
    if settings.url_pattern:
        return settings.url_pattern
    if settings.output_naming == "date":
        return DATE_PATTERN
    return DEFAULT_PATTERN


def content_template(config: Config, content_type_name: str, override: Optional[str] = None) -> str:
    if override:
        return override
    settings = config.content_type(content_type_name)
    if settings is None:
        return DEFAULT_TEMPLATE
    return settings.content_template


def is_within(path: PurePath | str, root: PurePath | str) -> bool:
    normalized = os.path.normpath(os.fspath(path))
    root_normalized = os.path.normpath(os.fspath(root))
    if root_normalized == ".":
        return not (normalized == ".." or normalized.startswith(".." + os.sep) or os.path.isabs(normalized))
    try:
        return os.path.commonpath([normalized, root_normalized]) == root_normalized
    except ValueError:
        return False


def output_url_path(output_path: PurePath | str, output_root: PurePath | str, clean_urls: bool) -> str:
    """Path of an output file relative to the output root, as used in links.

    Under clean URLs ``blog/post/index.html`` becomes ``blog/post/``.
    """
    try:
        rel = PurePath(output_path).relative_to(PurePath(output_root))
    except ValueError:
        rel = PurePath(output_path)
    raw = rel.as_posix()
    suffix = "/" + INDEX_FILENAME
    if clean_urls and raw.endswith(suffix):
        return raw[: -len(INDEX_FILENAME)]
    return raw


def type_index_path(output_root: PurePath | str, content_type_name: str) -> Path:
    return Path(output_root) / content_type_name / INDEX_FILENAME


def index_output_paths(config: Config) -> dict[Path, str]:
    """Output paths the index stage writes, mapped to a label for error messages."""
    output_root = config.site.output_dir
    paths = {
        type_index_path(output_root, name): f"the {name} index"
        for name, _settings in config.sorted_content_types()
    }
    paths[Path(output_root) / INDEX_FILENAME] = "the site index"
    return paths
