"""Content transforms that turn a Jekyll post body into Medium-ready markdown.

Each stage is a plain ``str -> str`` function that is safe to apply to
content it has already cleaned. :func:`transform_post` runs them in order;
the image upload pass runs last so that references injected by earlier
stages (the promoted card image) are uploaded too.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from medium_migrator.images import extract_image_references, filter_uploadable
from medium_migrator.models import Post

logger = logging.getLogger(__name__)

_SITE_BASEURL_RE = re.compile(r"\{\{ ?site\.baseurl ?\}\}")
_INLINE_CLASS_RE = re.compile(r"\{: ?\.[a-zA-Z0-9_-]+ ?\}")
_HIGHLIGHT_OPEN_RE = re.compile(r"\{% ?highlight ?([^%\s]*)[^%]*%\}")
_HIGHLIGHT_CLOSE_RE = re.compile(r"\{% ?endhighlight ?%\}")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


class ImageUploader(Protocol):
    def upload(self, reference: str) -> str: ...


def _card_block(card_url: str) -> str:
    return f"![]({card_url})\n\n"


def promote_card_image(content: str, card_url: str) -> str:
    """Put the post's card image at the top of the body."""
    if not card_url:
        return content
    block = _card_block(card_url)
    if content.startswith(block):
        return content
    return block + content


def strip_site_baseurl(content: str) -> str:
    """Remove ``{{ site.baseurl }}`` so site paths become root-relative."""
    return _SITE_BASEURL_RE.sub("", content)


def add_byline(content: str, author: str, card_url: str = "") -> str:
    """Add a ``By: <author>`` line at the top of the post.

    When the body opens with the promoted card image the byline goes
    directly below it.
    """
    if not author:
        return content
    byline = f"By: {author}\n\n"
    head = ""
    if card_url and content.startswith(_card_block(card_url)):
        head = _card_block(card_url)
        content = content[len(head) :]
    if content.startswith(byline):
        return head + content
    return head + byline + content


def strip_inline_classes(content: str) -> str:
    """Remove kramdown ``{: .classname }`` annotations (dropcaps, footnotes)."""
    return _INLINE_CLASS_RE.sub("", content)


def convert_code_fences(content: str, keep_language: bool = False) -> str:
    """Replace liquid ``{% highlight %}`` blocks with backtick fences."""

    def _open(match: re.Match[str]) -> str:
        lang = match.group(1) if keep_language else ""
        return f"```{lang}"

    content = _HIGHLIGHT_OPEN_RE.sub(_open, content)
    return _HIGHLIGHT_CLOSE_RE.sub("```", content)


def collapse_blank_lines(content: str) -> str:
    """Collapse runs of three or more newlines into one blank line."""
    return _EXCESS_NEWLINES_RE.sub("\n\n", content)


def upload_images(content: str, uploader: ImageUploader, domain: str) -> str:
    """Upload every site-hosted image and point the content at the new URLs.

    Each occurrence is uploaded and replaced on its own, in order of
    appearance.
    """
    references = filter_uploadable(extract_image_references(content), domain)
    logger.info("Found %d images to upload", len(references))

    cursor = 0
    for count, reference in enumerate(references, start=1):
        new_url = uploader.upload(reference)
        logger.info(
            "Image %d of %d uploaded - %s => %s", count, len(references), reference, new_url
        )
        idx = content.find(reference, cursor)
        if idx == -1:
            idx = content.find(reference)
        if idx == -1:
            continue
        content = content[:idx] + new_url + content[idx + len(reference) :]
        cursor = idx + len(new_url)
    return content


def transform_post(
    post: Post,
    uploader: ImageUploader,
    *,
    domain: str,
    keep_language: bool = False,
) -> str:
    """Run the full transform pipeline over a post body."""
    card_url = post.card_image_url
    content = promote_card_image(post.body, card_url)
    content = strip_site_baseurl(content)
    content = add_byline(content, post.author, strip_site_baseurl(card_url))
    content = strip_inline_classes(content)
    content = convert_code_fences(content, keep_language=keep_language)
    content = collapse_blank_lines(content)
    return upload_images(content, uploader, domain)
