"""Tests for post parsing, publish dates and original URLs."""

from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from medium_migrator.errors import ParseError
from medium_migrator.extractor import (
    load_post,
    original_url,
    parse_post,
    post_date,
    post_slug,
)
from medium_migrator.models import Post

SITE = "https://developmentseed.org"


class TestParsePost:
    def test_frontmatter_and_body(self):
        text = "---\ntitle: Hello World\nauthor: Jane\n---\nBody text\n"
        post = parse_post(text, "posts/2018-01-05-hello.md")
        assert post.frontmatter == {"title": "Hello World", "author": "Jane"}
        assert post.body == "Body text\n"
        assert post.path == "posts/2018-01-05-hello.md"

    def test_nested_frontmatter(self):
        text = "---\nmedia:\n  card:\n    url: /img/a.jpg\n---\nHello"
        post = parse_post(text, "a.md")
        assert post.card_image_url == "/img/a.jpg"
        assert post.body == "Hello"

    def test_no_frontmatter(self):
        text = "Just a body\nwith two lines\n"
        post = parse_post(text, "a.md")
        assert post.frontmatter == {}
        assert post.body == text

    def test_empty_frontmatter(self):
        post = parse_post("---\n---\nBody", "a.md")
        assert post.frontmatter == {}
        assert post.body == "Body"

    def test_empty_text(self):
        post = parse_post("", "a.md")
        assert post.frontmatter == {}
        assert post.body == ""

    def test_dashes_later_in_body_are_kept(self):
        post = parse_post("---\ntitle: T\n---\nIntro\n---\nMore", "a.md")
        assert post.body == "Intro\n---\nMore"

    def test_unterminated_frontmatter(self):
        with pytest.raises(ParseError, match="not terminated"):
            parse_post("---\ntitle: T\nBody without end", "a.md")

    def test_invalid_yaml(self):
        with pytest.raises(ParseError) as exc_info:
            parse_post("---\ntitle: [unclosed\n---\nBody", "posts/bad.md")
        assert exc_info.value.path == "posts/bad.md"

    def test_impossible_date_is_parse_error(self):
        with pytest.raises(ParseError, match="invalid front-matter") as exc_info:
            parse_post("---\ntitle: T\ndate: 2018-13-45\n---\nBody", "posts/bad-date.md")
        assert exc_info.value.path == "posts/bad-date.md"

    def test_non_mapping_frontmatter(self):
        with pytest.raises(ParseError, match="mapping"):
            parse_post("---\n- a\n- b\n---\nBody", "a.md")


class TestPostAccessors:
    def test_unpublished_flag(self):
        assert Post(path="a.md", frontmatter={"published": False}).is_unpublished
        assert not Post(path="a.md", frontmatter={"published": True}).is_unpublished
        assert not Post(path="a.md", frontmatter={}).is_unpublished

    def test_card_image_missing_levels(self):
        assert Post(path="a.md", frontmatter={"media": {"card": {}}}).card_image_url == ""
        assert Post(path="a.md", frontmatter={"media": "x"}).card_image_url == ""
        assert Post(path="a.md").card_image_url == ""

    def test_author(self):
        assert Post(path="a.md", frontmatter={"author": "Jane"}).author == "Jane"
        assert Post(path="a.md", frontmatter={"author": None}).author == ""


class TestLoadPost:
    def test_reads_file(self, tmp_path: Path):
        f = tmp_path / "2018-01-05-post.md"
        f.write_text("---\ntitle: From disk\n---\nContent\n", encoding="utf-8")
        post = load_post(f)
        assert post.title == "From disk"
        assert post.path == f.as_posix()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ParseError, match="cannot read"):
            load_post(tmp_path / "nope.md")


class TestPostDate:
    def test_frontmatter_date(self):
        post = Post(path="posts/2018-01-05-a.md", frontmatter={"date": date(2017, 6, 1)})
        assert post_date(post) == datetime(2017, 6, 1, tzinfo=UTC)

    def test_frontmatter_datetime_string(self):
        post = Post(path="a.md", frontmatter={"date": "2017-06-01 10:30:00"})
        assert post_date(post) == datetime(2017, 6, 1, 10, 30, tzinfo=UTC)

    def test_invalid_frontmatter_date_falls_back_to_filename(self):
        post = Post(path="posts/2018-1-5-a.md", frontmatter={"date": "not a date"})
        assert post_date(post) == datetime(2018, 1, 5, tzinfo=UTC)

    def test_no_date_anywhere(self):
        with pytest.raises(ParseError, match="no usable date"):
            post_date(Post(path="posts/about.md"))


class TestOriginalUrl:
    def test_permalink(self):
        post = Post(path="posts/2018-01-05-a.md", frontmatter={"permalink": "/blog/custom-path"})
        assert original_url(post, SITE) == "https://developmentseed.org/blog/custom-path"

    def test_from_filename(self):
        post = Post(path="posts/blog-2018/2018-3-7-new-release.md")
        assert original_url(post, SITE) == "https://developmentseed.org/blog/2018/03/07/new-release"

    def test_from_frontmatter_date_and_filename_slug(self):
        post = Post(
            path="posts/2018-03-07-new-release.md",
            frontmatter={"date": date(2018, 3, 9)},
        )
        assert original_url(post, SITE + "/") == "https://developmentseed.org/blog/2018/03/09/new-release"

    def test_slug_without_date_prefix(self):
        assert post_slug(Post(path="posts/about.md")) == "about"
