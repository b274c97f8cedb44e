"""Post loading: front-matter/body split, publish date and original URL."""

from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime
from pathlib import Path
from urllib.parse import urljoin

import yaml

from medium_migrator.errors import ParseError
from medium_migrator.models import Post

logger = logging.getLogger(__name__)

_DELIMITER = "---"

# Jekyll post names: 2018-3-14-some-title.md
_FILE_DATE_RE = re.compile(r"(20[0-9]{2}-[0-9]{1,2}-[0-9]{1,2})-(.*)\.[a-z]+$")


def parse_post(text: str, path: str) -> Post:
    """Split raw file text into front-matter and body.

    Text that does not open with a ``---`` line has no front-matter: the
    mapping is empty and the whole text is the body.

    Raises:
        ParseError: The header is unterminated, is not valid YAML, or is
            not a mapping.
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != _DELIMITER:
        return Post(path=path, frontmatter={}, body=text)

    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == _DELIMITER:
            header = "".join(lines[1:idx])
            body = "".join(lines[idx + 1 :])
            break
    else:
        raise ParseError(path, "front-matter is not terminated by '---'")

    try:
        data = yaml.safe_load(header)
    except (yaml.YAMLError, ValueError) as exc:
        # impossible timestamps such as 2018-13-45 surface as ValueError
        raise ParseError(path, f"invalid front-matter: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ParseError(path, "front-matter is not a key/value mapping")

    return Post(path=path, frontmatter={str(k): v for k, v in data.items()}, body=body)


def load_post(path: str | Path) -> Post:
    """Read a post file from disk and parse it."""
    path_str = Path(path).as_posix()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(path_str, f"cannot read file: {exc}") from exc
    return parse_post(text, path_str)


def _coerce_datetime(value: object) -> datetime | None:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def _filename_parts(post: Post) -> tuple[str, str] | None:
    m = _FILE_DATE_RE.search(post.filename)
    if not m:
        return None
    return m.group(1), m.group(2)


def post_date(post: Post) -> datetime:
    """Publication date: front-matter ``date`` if valid, else the file name date.

    Raises:
        ParseError: Neither source yields a date.
    """
    dt = _coerce_datetime(post.frontmatter.get("date"))
    if dt is not None:
        return dt

    parts = _filename_parts(post)
    if parts is not None:
        year, month, day = (int(p) for p in parts[0].split("-"))
        try:
            return datetime(year, month, day, tzinfo=UTC)
        except ValueError:
            pass
    raise ParseError(post.path, "no usable date in front-matter or file name")


def post_slug(post: Post) -> str:
    """Slug from the file name, without the date prefix and extension."""
    parts = _filename_parts(post)
    if parts is not None:
        return parts[1]
    return Path(post.filename).stem


def original_url(post: Post, site_url: str) -> str:
    """The post's URL on the old site.

    Uses ``permalink`` when set, otherwise ``/blog/:year/:month/:day/:title``.
    """
    base = site_url.rstrip("/")
    if post.permalink:
        return urljoin(base + "/", post.permalink)
    dt = post_date(post)
    return f"{base}/blog/{dt.year}/{dt.month:02d}/{dt.day:02d}/{post_slug(post)}"
