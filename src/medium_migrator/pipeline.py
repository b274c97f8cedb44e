"""Migration pipeline: post files → Medium posts + redirect map."""

from __future__ import annotations

import glob
import logging
from collections.abc import Callable
from datetime import UTC
from pathlib import Path

from medium_migrator.config import MigratorConfig, require_credentials
from medium_migrator.errors import ParseError, PublishError, UploadError
from medium_migrator.extractor import load_post, original_url, post_date, post_slug
from medium_migrator.images import site_domain
from medium_migrator.integrations.medium import MediumAPIClient
from medium_migrator.integrations.s3 import S3Uploader
from medium_migrator.ledger import ProgressLedger
from medium_migrator.models import FileFailure, MigrationReport, RedirectRecord
from medium_migrator.transforms import ImageUploader, transform_post

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]


def _log_echo(text: str) -> None:
    logger.info("%s", text)


def discover_posts(pattern: str) -> list[str]:
    """Post files matching *pattern* (``**`` recurses), sorted, as POSIX paths."""
    return sorted(
        Path(p).as_posix() for p in glob.glob(pattern, recursive=True) if Path(p).is_file()
    )


class MigrationOrchestrator:
    """Migrates posts one at a time: load, transform, publish, record.

    A :class:`PublishError` stops the whole run. A :class:`ParseError` or
    :class:`UploadError` only fails the current post, unless *fail_fast*
    is set. Posts recorded before a stop stay recorded, so the next run
    resumes where this one ended.
    """

    def __init__(
        self,
        ledger: ProgressLedger,
        uploader: ImageUploader,
        client: MediumAPIClient,
        *,
        site_url: str,
        keep_code_language: bool = False,
        fail_fast: bool = False,
        dry_run: bool = False,
        echo: Echo | None = None,
    ) -> None:
        self.ledger = ledger
        self.uploader = uploader
        self.client = client
        self.site_url = site_url
        self.domain = site_domain(site_url)
        self.keep_code_language = keep_code_language
        self.fail_fast = fail_fast
        self.dry_run = dry_run
        self.echo = echo or _log_echo

    def migrate_file(self, path: str) -> RedirectRecord | None:
        """Migrate one post file.

        Returns:
            The redirect record, or None if the post is unpublished.
        """
        post = load_post(path)
        if post.is_unpublished:
            logger.info("  Post is unpublished. Skipping")
            return None

        from_url = original_url(post, self.site_url)
        published_at = (
            post_date(post).astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        )
        content = transform_post(
            post, self.uploader, domain=self.domain, keep_language=self.keep_code_language
        )

        if self.dry_run:
            self.echo("")
            self.echo("  ---- Start Content ----")
            self.echo(content)
            self.echo("  ---- End Content ----")
            self.echo("")

        published = self.client.create_post(post.title or post_slug(post), content, published_at)
        record = RedirectRecord(from_url=from_url, to_url=published.url)
        self.ledger.record_redirect(record)
        self.ledger.record_completion(path)
        logger.info("  Post uploaded. %s => %s", record.from_url, record.to_url)
        return record

    def run(self, files: list[str]) -> MigrationReport:
        """Migrate *files* in order and report the outcome."""
        report = MigrationReport(dry_run=self.dry_run, total=len(files))

        for idx, path in enumerate(files, start=1):
            logger.info("Handling post %d of %d: %s", idx, len(files), path)
            try:
                record = self.migrate_file(path)
            except PublishError as exc:
                logger.error("Aborting run: %s", exc)
                report.failures.append(FileFailure(path=path, error=str(exc)))
                report.aborted = True
                report.abort_reason = str(exc)
                break
            except (ParseError, UploadError) as exc:
                report.failures.append(FileFailure(path=path, error=str(exc)))
                if self.fail_fast:
                    logger.error("Aborting run: %s", exc)
                    report.aborted = True
                    report.abort_reason = str(exc)
                    break
                logger.warning("Skipping %s: %s", path, exc)
                continue

            if record is None:
                report.skipped.append(path)
            else:
                report.migrated.append(record)

        logger.info("Migration finished: %s", report.summary())
        return report


def run_migration(
    config: MigratorConfig,
    *,
    dry_run: bool = False,
    pattern: str | None = None,
    limit: int | None = None,
    echo: Echo | None = None,
    uploader: ImageUploader | None = None,
    client: MediumAPIClient | None = None,
) -> MigrationReport:
    """Run one batch migration.

    In dry-run mode nothing is uploaded or published. Progress goes to
    disposable copies of the ledgers, which are printed and deleted at the
    end. An explicit dry-run *pattern* selects files regardless of what the
    ledger says is done.

    Raises:
        ConfigError: A required credential is missing.
    """
    require_credentials(config, need_publication=True)
    echo = echo or _log_echo
    settings = config.migration

    live = ProgressLedger(settings.completed_file, settings.redirects_file)
    ledger = ProgressLedger.disposable(live, settings.dry_run_prefix) if dry_run else live

    try:
        if dry_run and pattern:
            files = discover_posts(pattern)
        else:
            files = ledger.pending_files(discover_posts(pattern or settings.posts_glob))

        max_files = limit if limit is not None else settings.limit
        if max_files is not None:
            files = files[:max_files]

        orchestrator = MigrationOrchestrator(
            ledger,
            uploader
            or S3Uploader(config.s3, settings.images_dir, settings.site_url, dry_run=dry_run),
            client or MediumAPIClient(config.medium, dry_run=dry_run),
            site_url=settings.site_url,
            keep_code_language=settings.keep_code_language,
            fail_fast=settings.fail_fast,
            dry_run=dry_run,
            echo=echo,
        )
        return orchestrator.run(files)
    finally:
        if dry_run:
            echo(ledger.dump())
            ledger.discard()
        else:
            ledger.close()


def resolve_publication_id(config: MigratorConfig, name: str) -> str:
    """Look up the id of the publication called *name*."""
    require_credentials(config, need_publication=False)
    client = MediumAPIClient(config.medium)
    return client.get_publication_id(client.get_user_id(), name)
