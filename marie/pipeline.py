from __future__ import annotations

import logging
import os
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .config import Config
from .content import Content, convert_content, load_content
from .errors import OutputCollisionError, OutputPathError
from .paths import (
    MARKDOWN_EXTENSIONS,
    build_output_path,
    content_type,
    index_output_paths,
    is_within,
    resolve_url_pattern,
    select_url_pattern,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedContent:
    path: Path
    content: Content
    html: str
    content_type: str
    output_path: Path

    @property
    def meta(self):
        return self.content.meta


def find_markdown_files(content_dir: Path | str) -> list[Path]:
    """Markdown files under ``content_dir`` in directory-walk order."""
    files = []
    for dirpath, _dirnames, filenames in os.walk(content_dir):
        for filename in filenames:
            if filename.endswith(MARKDOWN_EXTENSIONS):
                files.append(Path(dirpath) / filename)
    return files


def transform_file(path: Path, config: Config) -> LoadedContent:
    site = config.site
    logger.debug("Loading %s", path)
    type_name = content_type(path, site.content_dir)
    content = load_content(path)
    html_text = convert_content(
        content,
        highlighting_enabled=site.syntax_highlighting_enabled,
        theme=site.syntax_highlighting_theme,
        allow_dangerous_html=site.allow_dangerous_html,
        header_uri_fragment=site.header_uri_fragment,
    )
    pattern = select_url_pattern(config, type_name)
    resolved = resolve_url_pattern(pattern, path.name, content.meta.date)
    output_path = build_output_path(type_name, resolved, site.output_dir, site.clean_urls)
    if not is_within(output_path, site.output_dir):
        raise OutputPathError(path, f"{output_path} is outside {site.output_dir}")
    return LoadedContent(
        path=path,
        content=content,
        html=html_text,
        content_type=type_name,
        output_path=output_path,
    )


def check_output_collisions(
    loaded: Sequence[LoadedContent], reserved: Optional[dict[Path, str]] = None
) -> None:
    """Fail when two items, or an item and a generated index, share an output path."""
    owners: dict[str, object] = {
        os.path.normpath(os.fspath(path)): label for path, label in (reserved or {}).items()
    }
    for item in loaded:
        key = os.path.normpath(os.fspath(item.output_path))
        previous = owners.get(key)
        if previous is not None:
            raise OutputCollisionError(
                item.path, f"{item.output_path} is also produced by {previous}"
            )
        owners[key] = item.path


def load_and_transform(
    paths: Sequence[Path], config: Config, workers: Optional[int] = None
) -> list[LoadedContent]:
    """Transform every file on a bounded thread pool.

    The result keeps the order of ``paths``. The first failing task aborts the
    whole stage: pending tasks are cancelled, the results of tasks still
    running are discarded and the error propagates.
    """
    start = time.perf_counter()
    if workers is None:
        workers = config.worker_count()
    workers = max(1, min(workers, len(paths))) if paths else 1

    if workers <= 1:
        loaded = [transform_file(path, config) for path in paths]
    else:
        results: list[Optional[LoadedContent]] = [None] * len(paths)
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="marie-content")
        try:
            futures: dict[Future, int] = {
                executor.submit(transform_file, path, config): index
                for index, path in enumerate(paths)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        loaded = [item for item in results if item is not None]

    check_output_collisions(loaded, index_output_paths(config))
    logger.info("Loaded %d content files in %.2fs", len(loaded), time.perf_counter() - start)
    return loaded
