"""Append-only progress ledgers that make a migration resumable.

Two newline-delimited files are kept: the source paths of fully migrated
posts, and one JSON ``{"from": ..., "to": ...}`` redirect object per
migrated post. Both are only ever appended to, one complete line per
``write()``, and flushed to disk before the next post starts.

A crash between a successful publish and the ledger append means the post
is published again on the next run (at-least-once delivery).
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import IO

from pydantic import ValidationError

from medium_migrator.models import RedirectRecord

logger = logging.getLogger(__name__)

COMPLETED_FILENAME = "upload-complete.csv"
REDIRECTS_FILENAME = "redirects.json"
DRY_RUN_PREFIX = "dryrun-"


def pending_files(candidates: Iterable[str], completed: set[str]) -> list[str]:
    """Candidates not yet migrated, in candidate order."""
    return [c for c in candidates if c not in completed]


class ProgressLedger:
    """Owns the completed-files and redirects ledger files."""

    def __init__(
        self,
        completed_path: str | Path = COMPLETED_FILENAME,
        redirects_path: str | Path = REDIRECTS_FILENAME,
    ) -> None:
        self.completed_path = Path(completed_path)
        self.redirects_path = Path(redirects_path)
        self._handles: dict[Path, IO[str]] = {}

    @classmethod
    def disposable(cls, live: ProgressLedger, prefix: str = DRY_RUN_PREFIX) -> ProgressLedger:
        """A throwaway copy of *live* for dry runs.

        The copy's files sit next to the live ones with *prefix* added to
        their names and start with the live files' current contents.
        """
        ledger = cls(
            live.completed_path.with_name(prefix + live.completed_path.name),
            live.redirects_path.with_name(prefix + live.redirects_path.name),
        )
        for src, dst in (
            (live.completed_path, ledger.completed_path),
            (live.redirects_path, ledger.redirects_path),
        ):
            content = src.read_text(encoding="utf-8") if src.exists() else ""
            dst.parent.mkdir(parents=True, exist_ok=True)
            dst.write_text(content, encoding="utf-8")
        return ledger

    # ── Reading ──────────────────────────────────────────────────

    def load_completed(self) -> set[str]:
        """Paths already migrated. A missing ledger file means none."""
        if not self.completed_path.exists():
            return set()
        text = self.completed_path.read_text(encoding="utf-8")
        return {line.strip() for line in text.splitlines() if line.strip()}

    def pending_files(self, candidates: Iterable[str]) -> list[str]:
        return pending_files(candidates, self.load_completed())

    def read_redirects(self) -> list[RedirectRecord]:
        """Parse the redirects ledger, skipping lines that are not valid records."""
        if not self.redirects_path.exists():
            return []
        records: list[RedirectRecord] = []
        text = self.redirects_path.read_text(encoding="utf-8")
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(RedirectRecord.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError):
                logger.warning(
                    "Skipping malformed redirect at %s:%d", self.redirects_path, lineno
                )
        return records

    def dump(self) -> str:
        """Both ledger files, labelled, for printing."""
        parts = []
        for label, path in (
            ("Redirects File", self.redirects_path),
            ("Completed File", self.completed_path),
        ):
            content = path.read_text(encoding="utf-8") if path.exists() else ""
            parts.append(f"{label}\n{content}")
        return "\n".join(parts)

    # ── Appending ────────────────────────────────────────────────

    def _append(self, path: Path, line: str) -> None:
        handle = self._handles.get(path)
        if handle is None:
            path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(path, "a", encoding="utf-8")  # noqa: SIM115
            self._handles[path] = handle
        handle.write(line)
        handle.flush()
        os.fsync(handle.fileno())

    def record_completion(self, path: str) -> None:
        self._append(self.completed_path, f"{path}\n")

    def record_redirect(self, record: RedirectRecord) -> None:
        self._append(self.redirects_path, record.to_line())

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        for handle in self._handles.values():
            handle.close()
        self._handles.clear()

    def discard(self) -> None:
        """Close and delete both ledger files."""
        self.close()
        for path in (self.completed_path, self.redirects_path):
            path.unlink(missing_ok=True)

    def __enter__(self) -> ProgressLedger:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
