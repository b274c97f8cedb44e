"""Error taxonomy for the migration pipeline.

Every stage raises a subclass of :class:`MigrationError`. The orchestrator
decides whether an error skips the current post or aborts the run; the CLI
maps whatever reaches it to an exit code.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base error for the migration pipeline."""


class ConfigError(MigrationError):
    """A required credential or identifier is missing."""


class ParseError(MigrationError):
    """A post file could not be read or its front-matter is malformed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class UploadError(MigrationError):
    """An image could not be read locally or written to object storage."""

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"{reference}: {reason}")
        self.reference = reference
        self.reason = reason


class PublishError(MigrationError):
    """The publishing platform rejected a request.

    Carries the human-readable messages reported by the platform.
    """

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages) or ["Unknown Medium error"]
        super().__init__("; ".join(self.messages))
