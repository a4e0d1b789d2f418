from __future__ import annotations

import html
from pathlib import Path
from typing import Optional, Sequence

from .config import Config
from .content import get_excerpt_html
from .paths import INDEX_FILENAME, output_url_path
from .pipeline import LoadedContent
from .utils import iso_day, join_url, rfc2822_date, site_url

SITEMAP_FILENAME = "sitemap.xml"
FEED_FILENAME = "feed.xml"


def format_url_entry(loc: str, lastmod: Optional[str] = None) -> str:
    lines = ["  <url>", f"    <loc>{html.escape(loc)}</loc>"]
    if lastmod:
        lines.append(f"    <lastmod>{lastmod}</lastmod>")
    lines.append("  </url>")
    return "\n".join(lines)


def page_url(config: Config, loaded: LoadedContent) -> str:
    path = output_url_path(loaded.output_path, config.site.output_dir, config.site.clean_urls)
    return join_url(site_url(config.site.domain), path)


def generate_sitemap(config: Config, loaded_contents: Sequence[LoadedContent]) -> str:
    base_url = site_url(config.site.domain)
    entries = [format_url_entry(base_url + "/")]
    for name, _settings in config.sorted_content_types():
        entries.append(format_url_entry(join_url(base_url, name) + "/"))
    for loaded in loaded_contents:
        entries.append(format_url_entry(page_url(config, loaded), iso_day(loaded.content.meta.date)))
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *entries,
            "</urlset>",
            "",
        ]
    )


def should_include_in_rss(config: Config, content_type_name: str) -> bool:
    settings = config.content_type(content_type_name)
    if settings is None or settings.rss_include is None:
        return True
    return settings.rss_include


def format_rss_item(config: Config, loaded: LoadedContent) -> str:
    meta = loaded.content.meta
    link = page_url(config, loaded)
    lines = [
        "    <item>",
        f"      <title>{html.escape(meta.title)}</title>",
        f"      <link>{html.escape(link)}</link>",
        f"      <guid>{html.escape(link)}</guid>",
    ]
    excerpt = get_excerpt_html(loaded.content.data, allow_dangerous_html=config.site.allow_dangerous_html)
    if excerpt:
        lines.append(f"      <description>{html.escape(excerpt)}</description>")
    lines.extend(
        [
            f"      <author>{html.escape(meta.author)}</author>",
            f"      <pubDate>{rfc2822_date(meta.date)}</pubDate>",
            "    </item>",
        ]
    )
    return "\n".join(lines)


def generate_rss(config: Config, loaded_contents: Sequence[LoadedContent]) -> str:
    site = config.site
    base_url = site_url(site.domain)
    items = [item for item in loaded_contents if should_include_in_rss(config, item.content_type)]
    items.sort(key=lambda item: item.content.meta.date, reverse=True)
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
            "  <channel>",
            f"    <title>{html.escape(site.title)}</title>",
            f"    <link>{base_url}</link>",
            f"    <description>{html.escape(site.tagline)}</description>",
            "    <language>en</language>",
            f"    <managingEditor>{html.escape(site.author)}</managingEditor>",
            f'    <atom:link href="{join_url(base_url, FEED_FILENAME)}" rel="self" type="application/rss+xml"/>',
            *[format_rss_item(config, item) for item in items],
            "  </channel>",
            "</rss>",
            "",
        ]
    )


def generate_redirect_html(target_path: str, domain: str) -> str:
    target = html.escape(target_path)
    canonical = html.escape(f"{site_url(domain)}{target_path}")
    return "\n".join(
        [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '  <meta charset="utf-8">',
            f'  <meta http-equiv="refresh" content="0; url={target}">',
            f'  <link rel="canonical" href="{canonical}">',
            "  <title>Redirecting...</title>",
            "</head>",
            "<body>",
            f'  <p>Redirecting to <a href="{target}">{target}</a>...</p>',
            "</body>",
            "</html>",
            "",
        ]
    )


def redirect_output_path(from_path: str, output_dir: Path | str) -> Path:
    """``/a/b/`` and ``/a/b`` map to ``a/b/index.html``; ``/a/b.html`` stays as is."""
    path = from_path.lstrip("/")
    if from_path.endswith("/"):
        file_path = f"{path}{INDEX_FILENAME}"
    elif from_path.endswith(".html"):
        file_path = path
    else:
        file_path = f"{path}/{INDEX_FILENAME}"
    return Path(output_dir) / file_path
