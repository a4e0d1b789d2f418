from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from marie.config import Config

SITE_TOML = """\
[site]
title = "Test Blog"
tagline = "A test site for integration testing"
domain = "example.com"
author = "Test Author"
output_dir = "output"
content_dir = "content"
template_dir = "templates"
static_dir = "static"
site_index_template = "index.html"
syntax_highlighting_theme = "monokai"
build_workers = 4
{site_extra}

[site.root_static]
"favicon.ico" = "favicon.ico"
"robots.txt" = "seo/robots.txt"

[content.blog]
index_template = "blog_index.html"
content_template = "post.html"
output_naming = "date"

[content.pages]
index_template = "pages_index.html"
content_template = "page.html"
rss_include = false

[dynamic]
twitter = "@testuser"

[redirects]
"/old-post/" = "/blog/2024-01-15-first-post.html"
"""

TEMPLATES = {
    "post.html": (
        '<html><head><link rel="stylesheet" href="{{ "static/css/style.css" | asset_hash }}"></head>'
        '<body><h1 class="post-title">{{ meta.title }}</h1>'
        '<p class="author">{{ meta.author }}</p>'
        '<p class="tags">{{ meta.tags | join(", ") }}</p>'
        '<div class="post-body">{{ content | safe }}</div></body></html>'
    ),
    "page.html": '<html><body><h1 class="page-title">{{ meta.title }}</h1>{{ content | safe }}</body></html>',
    "custom.html": '<html><body><h1 class="custom">{{ meta.title }}</h1></body></html>',
    "blog_index.html": (
        "<ul>{% for item in contents %}"
        '<li class="post-summary"><a href="/{{ item.filename | url }}">{{ item.meta.title }}</a>'
        '<time>{{ item.formatted_date }}</time>'
        '<div class="excerpt">{{ item.excerpt | safe }}</div></li>'
        "{% endfor %}</ul>"
    ),
    "pages_index.html": (
        "<ul>{% for item in contents %}<li class=\"page\">{{ item.meta.title }}</li>{% endfor %}</ul>"
    ),
    "index.html": (
        '<h1 class="site-title">{{ config.site.title }}</h1>'
        '<p class="tagline">{{ config.site.tagline }}</p>'
        '<section class="welcome">{{ all_content | length }} items</section>'
        '{% for item in contents %}<div class="content-item">{{ item.meta.title }}</div>{% endfor %}'
        "<footer>{{ config.dynamic.twitter }}</footer>"
    ),
}

CONTENT = {
    "blog/first-post": (
        """\
        title = "First Post"
        date = "2024-01-15T10:00:00+00:00"
        author = "Test Author"
        tags = ["intro", "blog"]
        """,
        """\
        # First Post

        ## Context

        This is the **excerpt** of the first post.

        ## Details

        ```python
        print("hello")
        ```
        """,
    ),
    "blog/2023-12-01-older-post": (
        """\
        title = "Older Post"
        date = "2023-12-01T08:00:00-05:00"
        author = "Test Author"
        tags = []
        """,
        "Just an older post.\n",
    ),
    "pages/about": (
        """\
        title = "About"
        date = "2023-06-01T00:00:00Z"
        author = "Test Author"
        tags = ["meta"]

        [extra]
        reading_time = "1 min"
        """,
        "About this site.\n",
    ),
}


def write_content(content_dir: Path, name: str, meta: str, body: str, ext: str = ".md") -> Path:
    path = content_dir / f"{name}{ext}"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    path.with_name(path.stem + ".meta.toml").write_text(textwrap.dedent(meta), encoding="utf-8")
    return path


def write_site(root: Path, site_extra: str = "") -> Path:
    config_path = root / "site.toml"
    config_path.write_text(SITE_TOML.format(site_extra=site_extra), encoding="utf-8")

    templates = root / "templates"
    templates.mkdir(parents=True, exist_ok=True)
    for name, text in TEMPLATES.items():
        (templates / name).write_text(text, encoding="utf-8")

    for name, (meta, body) in CONTENT.items():
        write_content(root / "content", name, meta, body)

    static = root / "static"
    (static / "css").mkdir(parents=True, exist_ok=True)
    (static / "js").mkdir(parents=True, exist_ok=True)
    (static / "images").mkdir(parents=True, exist_ok=True)
    (static / "seo").mkdir(parents=True, exist_ok=True)
    (static / "css" / "style.css").write_text("body { color: black; }\n", encoding="utf-8")
    (static / "js" / "app.js").write_text("console.log('hi');\n", encoding="utf-8")
    (static / "images" / "logo.png").write_bytes(b"\x89PNG\r\n")
    (static / "favicon.ico").write_bytes(b"\x00\x00\x01\x00")
    (static / "seo" / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")
    return config_path


def make_config(**site_overrides) -> Config:
    site = {
        "title": "Test Site",
        "tagline": "A test tagline",
        "domain": "example.com",
        "author": "Test Author",
        "output_dir": "output",
        "content_dir": "content",
        "template_dir": "templates",
        "static_dir": "static",
        "site_index_template": "index.html",
    }
    content = site_overrides.pop("content", {})
    redirects = site_overrides.pop("redirects", {})
    site.update(site_overrides)
    return Config.model_validate({"site": site, "content": content, "redirects": redirects})


@pytest.fixture
def site(tmp_path, monkeypatch) -> Path:
    """A complete site on disk; the working directory is the site root."""
    write_site(tmp_path)
    monkeypatch.chdir(tmp_path)
    return tmp_path
