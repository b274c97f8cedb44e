"""Pure data models for the migration pipeline.

All Pydantic models and enums live here. No I/O and no network calls;
services import from this module.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class Post(BaseModel):
    """A source post: parsed front-matter plus raw body text.

    Immutable once read. Transformations produce new strings.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    body: str = ""

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def title(self) -> str:
        value = self.frontmatter.get("title")
        return str(value) if value is not None else ""

    @property
    def author(self) -> str:
        value = self.frontmatter.get("author")
        return str(value) if value else ""

    @property
    def permalink(self) -> str:
        value = self.frontmatter.get("permalink")
        return str(value) if value else ""

    @property
    def card_image_url(self) -> str:
        """The ``media.card.url`` front-matter value, or an empty string."""
        media = self.frontmatter.get("media")
        if not isinstance(media, dict):
            return ""
        card = media.get("card")
        if not isinstance(card, dict):
            return ""
        url = card.get("url")
        return str(url) if url else ""

    @property
    def is_unpublished(self) -> bool:
        """True only when a ``published`` key is present and falsy."""
        return "published" in self.frontmatter and not self.frontmatter["published"]


# ---------------------------------------------------------------------------
# Image references
# ---------------------------------------------------------------------------


class ReferenceKind(StrEnum):
    """Where an image reference points."""

    LOCAL_RELATIVE = "local-relative"
    LOCAL_ABSOLUTE = "local-absolute"
    EXTERNAL = "external"


class ImageReference(BaseModel):
    """An image URL/path exactly as written in the content."""

    url: str
    kind: ReferenceKind

    @property
    def uploadable(self) -> bool:
        return self.kind != ReferenceKind.EXTERNAL


# ---------------------------------------------------------------------------
# Publishing and progress
# ---------------------------------------------------------------------------


class PublishedPost(BaseModel):
    """What the publishing platform returned for a created post."""

    url: str
    id: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class RedirectRecord(BaseModel):
    """Maps a post's pre-migration URL to its published URL.

    Serialized as ``{"from": ..., "to": ...}``, one object per line.
    """

    model_config = ConfigDict(populate_by_name=True)

    from_url: str = Field(alias="from")
    to_url: str = Field(alias="to")

    def to_line(self) -> str:
        return self.model_dump_json(by_alias=True) + "\n"


class FileFailure(BaseModel):
    """A post that could not be migrated in this run."""

    path: str
    error: str


class MigrationReport(BaseModel):
    """Outcome of one batch run."""

    dry_run: bool = False
    total: int = 0
    migrated: list[RedirectRecord] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failures: list[FileFailure] = Field(default_factory=list)
    aborted: bool = False
    abort_reason: str = ""

    @property
    def has_failures(self) -> bool:
        return bool(self.failures) or self.aborted

    def summary(self) -> str:
        parts = [
            f"{len(self.migrated)} migrated",
            f"{len(self.skipped)} skipped",
            f"{len(self.failures)} failed",
        ]
        line = f"{', '.join(parts)} of {self.total} pending"
        if self.aborted:
            line += f" (aborted: {self.abort_reason})"
        return line
