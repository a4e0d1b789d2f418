from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest
from conftest import make_config

from marie.paths import (
    build_output_path,
    content_template,
    content_type,
    file_stem,
    is_within,
    output_url_path,
    resolve_url_pattern,
    select_url_pattern,
)

DATE = dt.datetime(2025, 12, 12, 2, 2, 2, tzinfo=dt.timezone.utc)


class TestContentType:
    def test_first_directory_is_the_type(self):
        assert content_type("content/projects/x.md", "content") == "projects"

    def test_nested_directories_use_the_top_level(self):
        assert content_type("src/content/blog/tech/rust/post.md", "src/content") == "blog"

    def test_outside_content_root_is_page(self):
        assert content_type("other/x.md", "content") == "page"

    def test_file_directly_under_root_is_page(self):
        assert content_type("content/index.md", "content") == "page"

    def test_case_sensitive(self):
        assert content_type("Content/blog/x.md", "content") == "page"


class TestResolveUrlPattern:
    def test_filename_date_prefix_is_replaced_by_metadata_date(self):
        result = resolve_url_pattern("{date}-{stem}", "2024-01-15-old-article.md", DATE)
        assert result == "2025-12-12-old-article"

    def test_all_placeholders(self):
        result = resolve_url_pattern("{year}/{month}/{day}/{stem}", "agentic.md", DATE)
        assert result == "2025/12/12/agentic"

    def test_month_and_day_are_zero_padded(self):
        date = dt.datetime(2024, 3, 5, tzinfo=dt.timezone.utc)
        assert resolve_url_pattern("{year}-{month}-{day}", "x.md", date) == "2024-03-05"

    def test_unknown_placeholder_is_left_intact(self):
        assert resolve_url_pattern("{slug}/{stem}", "post.md", DATE) == "{slug}/post"

    def test_pattern_without_placeholders(self):
        assert resolve_url_pattern("fixed", "post.md", DATE) == "fixed"

    def test_uses_offset_local_date(self):
        date = dt.datetime(2024, 1, 1, 23, 30, tzinfo=dt.timezone(dt.timedelta(hours=-5)))
        assert resolve_url_pattern("{date}", "x.md", date) == "2024-01-01"


class TestFileStem:
    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("post.md", "post"),
            ("post.markdown", "post"),
            ("2024-01-15-post.md", "post"),
            ("2024-1-15-post.md", "2024-1-15-post"),
            ("20240115-post.md", "20240115-post"),
            ("2024-01-15.md", "2024-01-15"),
        ],
    )
    def test_stem(self, filename, expected):
        assert file_stem(filename) == expected


class TestBuildOutputPath:
    def test_clean_urls(self):
        assert build_output_path("blog", "my-post", "dist", True) == Path("dist/blog/my-post/index.html")

    def test_html_extension(self):
        assert build_output_path("blog", "my-post", "dist", False) == Path("dist/blog/my-post.html")

    def test_nested_pattern(self):
        result = build_output_path("blog", "2025/12/12/post", "dist", False)
        assert result == Path("dist/blog/2025/12/12/post.html")


class TestSelectUrlPattern:
    def test_default_pattern(self):
        config = make_config(content={"blog": {"index_template": "i.html", "content_template": "c.html"}})
        assert select_url_pattern(config, "blog") == "{stem}"

    def test_unknown_type_uses_default(self):
        assert select_url_pattern(make_config(), "blog") == "{stem}"

    def test_legacy_date_naming(self):
        config = make_config(
            content={"blog": {"index_template": "i.html", "content_template": "c.html", "output_naming": "date"}}
        )
        assert select_url_pattern(config, "blog") == "{date}-{stem}"

    def test_explicit_pattern_wins(self):
        config = make_config(
            content={
                "blog": {
                    "index_template": "i.html",
                    "content_template": "c.html",
                    "output_naming": "date",
                    "url_pattern": "{year}/{stem}",
                }
            }
        )
        assert select_url_pattern(config, "blog") == "{year}/{stem}"


class TestContentTemplate:
    def test_configured_template(self):
        config = make_config(content={"projects": {"index_template": "i.html", "content_template": "project.html"}})
        assert content_template(config, "projects") == "project.html"

    def test_fallback(self):
        assert content_template(make_config(), "unknown") == "default.html"

    def test_override(self):
        config = make_config(content={"projects": {"index_template": "i.html", "content_template": "project.html"}})
        assert content_template(config, "projects", "custom.html") == "custom.html"


class TestOutputUrlPath:
    def test_clean_url_strips_index(self):
        assert output_url_path(Path("dist/blog/post/index.html"), "dist", True) == "blog/post/"

    def test_plain_path(self):
        assert output_url_path(Path("dist/blog/post.html"), "dist", False) == "blog/post.html"


class TestIsWithin:
    def test_inside(self):
        assert is_within("dist/blog/post.html", "dist")

    def test_escape_with_parent_segments(self):
        assert not is_within("dist/blog/../../etc/post.html", "dist")

    def test_sibling_with_common_prefix(self):
        assert not is_within("dist-other/post.html", "dist")
