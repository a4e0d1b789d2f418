from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .assets import list_files
from .config import Config
from .errors import StaticError

logger = logging.getLogger(__name__)


def should_copy_file(source: Path, dest: Path) -> bool:
    """False only when ``dest`` has the same size and is not older than ``source``."""
    try:
        dest_stat = dest.stat()
    except OSError:
        return True
    try:
        source_stat = source.stat()
    except OSError:
        return True
    if source_stat.st_size != dest_stat.st_size:
        return True
    return source_stat.st_mtime > dest_stat.st_mtime


def copy_file(source: Path, dest: Path) -> None:
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest)
    except OSError as exc:
        raise StaticError(dest, exc.strerror or str(exc)) from exc


def copy_static_files(config: Config) -> int:
    """Mirror ``static_dir`` into ``<output>/static`` and copy root files.

    Returns the number of files actually copied.
    """
    static_dir = Path(config.site.static_dir)
    if not static_dir.exists():
        logger.debug("No static directory at %s", static_dir)
        return 0

    output_static = Path(config.site.output_dir) / "static"
    root_sources = {Path(src).as_posix() for src in config.site.root_static.values()}

    copied = 0
    for source in list_files(static_dir):
        relative = source.relative_to(static_dir)
        if relative.as_posix() in root_sources:
            logger.debug("Skipping %s (root static file)", source)
            continue
        dest = output_static / relative
        if not should_copy_file(source, dest):
            logger.debug("Unchanged %s", source)
            continue
        copy_file(source, dest)
        logger.debug("Copied %s -> %s", source, dest)
        copied += 1

    copied += copy_root_static_files(config)
    logger.info("Synced static files (%d copied)", copied)
    return copied


def copy_root_static_files(config: Config) -> int:
    static_dir = Path(config.site.static_dir)
    output_dir = Path(config.site.output_dir)
    copied = 0
    for output_name, source_relative in sorted(config.site.root_static.items()):
        source = static_dir / source_relative
        if not source.is_file():
            raise StaticError(source, "root static file not found")
        dest = output_dir / output_name
        if not should_copy_file(source, dest):
            logger.debug("Unchanged %s", source)
            continue
        copy_file(source, dest)
        logger.debug("Copied %s -> %s", source, dest)
        copied += 1
    return copied
