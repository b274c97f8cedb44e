"""
Medium Migrator - move a static blog's Markdown posts to Medium

Rewrites embedded images to S3, publishes each post through the Medium
API and keeps append-only ledgers so an interrupted run can resume:
- Front-matter parsing
- Legacy Jekyll/liquid markup cleanup
- Image upload and URL rewriting
- Redirect map generation
"""

from medium_migrator.errors import ConfigError, MigrationError, ParseError, PublishError, UploadError
from medium_migrator.ledger import ProgressLedger
from medium_migrator.models import ImageReference, MigrationReport, Post, RedirectRecord
from medium_migrator.pipeline import MigrationOrchestrator, run_migration

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "MigrationError",
    "ParseError",
    "PublishError",
    "UploadError",
    "ProgressLedger",
    "ImageReference",
    "MigrationReport",
    "Post",
    "RedirectRecord",
    "MigrationOrchestrator",
    "run_migration",
]
