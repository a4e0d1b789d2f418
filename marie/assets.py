from __future__ import annotations

import hashlib
import json
import logging
import re
import shutil
from pathlib import Path

from .errors import StaticError

logger = logging.getLogger(__name__)

HASHED_EXTENSIONS = {"css", "js"}
HASH_LENGTH = 8
HASHED_NAME_RE = re.compile(r"^.+\.[0-9a-fA-F]{8}\.(?:css|js)$")

AssetManifest = dict[str, str]


def list_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return [path for path in root.rglob("*") if path.is_file()]


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def short_hash(data: bytes) -> str:
    return hash_bytes(data)[:HASH_LENGTH]


def is_hashed_filename(filename: str) -> bool:
    return bool(HASHED_NAME_RE.match(filename))


def hashed_filename(original: str, digest: str) -> str:
    name, dot, ext = original.rpartition(".")
    if not dot or not name:
        return f"{original}.{digest}"
    return f"{name}.{digest}.{ext}"


def compute_file_hash(path: Path) -> str:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise StaticError(path, exc.strerror or str(exc)) from exc
    return short_hash(data)


def cleanup_old_hashed_files(output_static_dir: Path, keep: frozenset[str] = frozenset()) -> int:
    """Delete hashed css/js files, except relative paths listed in ``keep``."""
    removed = 0
    for path in list_files(output_static_dir):
        if not is_hashed_filename(path.name):
            continue
        if path.relative_to(output_static_dir).as_posix() in keep:
            continue
        logger.debug("Removing stale hashed asset %s", path)
        try:
            path.unlink()
        except OSError as exc:
            raise StaticError(path, exc.strerror or str(exc)) from exc
        removed += 1
    if removed:
        logger.info("Removed %d stale hashed assets", removed)
    return removed


def hash_static_assets(static_dir: Path | str, output_dir: Path | str) -> AssetManifest:
    """Copy css/js files to ``<output>/static`` under content-hashed names.

    Returns the manifest mapping each original relative path to the URL of its
    hashed copy, e.g. ``css/style.css -> /static/css/style.1a2b3c4d.css``.
    A missing static directory yields an empty manifest.
    """
    static_path = Path(static_dir)
    output_static = Path(output_dir) / "static"
    if not static_path.exists():
        logger.debug("No static directory at %s, skipping asset hashing", static_path)
        return {}

    sources = sorted(list_files(static_path), key=lambda p: p.as_posix())
    # hashed names that already exist in the source tree are mirrored as is
    prehashed = frozenset(
        path.relative_to(static_path).as_posix() for path in sources if is_hashed_filename(path.name)
    )
    cleanup_old_hashed_files(output_static, keep=prehashed)

    manifest: AssetManifest = {}
    for source in sources:
        ext = source.suffix.lstrip(".")
        if ext not in HASHED_EXTENSIONS or is_hashed_filename(source.name):
            continue
        relative = source.relative_to(static_path)
        digest = compute_file_hash(source)
        dest_relative = relative.with_name(hashed_filename(source.name, digest))
        dest = output_static / dest_relative
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, dest)
        except OSError as exc:
            raise StaticError(dest, exc.strerror or str(exc)) from exc
        logger.debug("Hashed %s -> %s", relative.as_posix(), dest_relative.as_posix())
        manifest[relative.as_posix()] = f"/static/{dest_relative.as_posix()}"

    if manifest:
        logger.info("Hashed %d static assets", len(manifest))
    return manifest


def export_manifest(manifest: AssetManifest, path: Path | str) -> None:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise StaticError(path, exc.strerror or str(exc)) from exc
    logger.info("Wrote asset manifest to %s", path)


def resolve_asset_path(manifest: AssetManifest, path: str) -> str:
    normalized = path.lstrip("/")
    if normalized.startswith("static/"):
        normalized = normalized[len("static/") :]
    hashed = manifest.get(normalized)
    if hashed:
        return hashed
    if path.startswith("/static/"):
        return path
    if path.startswith("static/"):
        return f"/{path}"
    return f"/static/{path}"
