from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from .assets import AssetManifest, export_manifest, hash_static_assets
from .config import Config, load_config
from .errors import WriteError
from .pages import (
    FEED_FILENAME,
    SITEMAP_FILENAME,
    generate_redirect_html,
    generate_rss,
    generate_sitemap,
    redirect_output_path,
)
from .paths import INDEX_FILENAME, content_template, is_within, type_index_path
from .pipeline import LoadedContent, find_markdown_files, load_and_transform
from .render import Renderer, write_output_file
from .static import copy_static_files

logger = logging.getLogger(__name__)

RendererFactory = Callable[[Config, Optional[AssetManifest]], Renderer]


def prepare_assets(config: Config) -> Optional[AssetManifest]:
    site = config.site
    if not site.asset_hashing_enabled:
        return None
    manifest = hash_static_assets(site.static_dir, site.output_dir)
    if site.asset_manifest_path:
        export_manifest(manifest, site.asset_manifest_path)
    return manifest


def write_pages(renderer: Renderer, loaded_contents: Sequence[LoadedContent]) -> None:
    for loaded in loaded_contents:
        template_name = content_template(renderer.config, loaded.content_type, loaded.content.meta.template)
        logger.debug("Rendering %s -> %s", loaded.path, loaded.output_path)
        write_output_file(loaded.output_path, renderer.render_page(loaded, template_name))
    logger.info("Wrote %d content pages", len(loaded_contents))


def write_indexes(renderer: Renderer, loaded_contents: Sequence[LoadedContent]) -> None:
    config = renderer.config
    output_dir = Path(config.site.output_dir)
    for name, settings in config.sorted_content_types():
        filtered = [item for item in loaded_contents if item.content_type == name]
        logger.info("Rendering %s index with %s", name, settings.index_template)
        rendered = renderer.render_index(settings.index_template, filtered, loaded_contents)
        write_output_file(type_index_path(output_dir, name), rendered)

    site_index = output_dir / INDEX_FILENAME
    logger.info("Rendering site index -> %s", site_index)
    rendered = renderer.render_index(config.site.site_index_template, loaded_contents, loaded_contents)
    write_output_file(site_index, rendered)


def write_extras(config: Config, loaded_contents: Sequence[LoadedContent]) -> None:
    output_dir = Path(config.site.output_dir)
    if config.site.sitemap_enabled:
        write_output_file(output_dir / SITEMAP_FILENAME, generate_sitemap(config, loaded_contents))
        logger.info("Wrote %s", SITEMAP_FILENAME)
    if config.site.rss_enabled:
        write_output_file(output_dir / FEED_FILENAME, generate_rss(config, loaded_contents))
        logger.info("Wrote %s", FEED_FILENAME)
    for from_path, to_path in sorted(config.redirects.items()):
        output_path = redirect_output_path(from_path, output_dir)
        if not is_within(output_path, output_dir):
            raise WriteError(output_path, f"redirect source {from_path} is outside the output directory")
        write_output_file(output_path, generate_redirect_html(to_path, config.site.domain))
        logger.info("Redirect %s -> %s", from_path, to_path)


def run_build(config: Config, renderer_factory: RendererFactory = Renderer.create) -> list[LoadedContent]:
    """Run every build stage in order and return the transformed content."""
    copy_static_files(config)
    manifest = prepare_assets(config)
    renderer = renderer_factory(config, manifest)

    files = find_markdown_files(config.site.content_dir)
    logger.debug("Found %d content files", len(files))
    loaded_contents = load_and_transform(files, config)

    write_pages(renderer, loaded_contents)
    write_indexes(renderer, loaded_contents)
    write_extras(config, loaded_contents)
    logger.info("Build complete")
    return loaded_contents


def build(config_file: Path | str) -> list[LoadedContent]:
    return run_build(load_config(config_file))


def build_fresh(config_file: Path | str) -> list[LoadedContent]:
    """Rebuild with a renderer that shares no cached templates with earlier builds."""
    return run_build(load_config(config_file), renderer_factory=Renderer.fresh)
