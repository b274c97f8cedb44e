"""Medium integration: config and API client.

Only the three endpoints the migration needs are covered: the current
user, that user's publications, and post creation under a publication.
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from typing import Any

from pydantic import BaseModel

from medium_migrator.errors import PublishError
from medium_migrator.models import PublishedPost

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.medium.com/v1"
DRY_RUN_BASE_URL = "http://localhost/post"


class MediumConfig(BaseModel):
    """Configuration for Medium publishing."""

    token: str = ""
    publication_id: str = ""
    api_url: str = DEFAULT_API_URL

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.publication_id)

    @classmethod
    def from_env(cls) -> MediumConfig:
        """Create config from environment variables."""
        return cls(
            token=os.environ.get("MEDIUM_TOKEN", ""),
            publication_id=os.environ.get("MEDIUM_PUB_ID", ""),
        )


def check_errors(content: dict[str, Any]) -> None:
    """Raise :class:`PublishError` when a Medium response carries ``errors``."""
    errors = content.get("errors")
    if not errors:
        return
    messages = [
        str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
    ]
    logger.error("Medium error occurred")
    for message in messages:
        logger.error("  %s", message)
    raise PublishError(messages)


class MediumAPIClient:
    """Client for the Medium API.

    Handles bearer authentication and JSON requests via urllib.
    """

    def __init__(self, config: MediumConfig, *, dry_run: bool = False) -> None:
        self.config = config
        self.base_url = config.api_url.rstrip("/")
        self.dry_run = dry_run

    def _request(self, method: str, path: str, data: dict | None = None) -> dict:
        """Make an authenticated request and return the checked JSON body."""
        url = f"{self.base_url}{path}"
        body = json.dumps(data).encode("utf-8") if data is not None else None
        headers = {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": "application/json",
        }
        if body is not None:
            headers["Content-Type"] = "application/json"
        req = urllib.request.Request(url, data=body, method=method, headers=headers)

        try:
            with urllib.request.urlopen(req) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            # Medium reports failures as an ``errors`` list in the body
            raw = exc.read().decode("utf-8", errors="replace")
            content = self._decode(raw, fallback=f"HTTP {exc.code} from {path}")
            check_errors(content)
            raise PublishError([f"HTTP {exc.code} from {path}"]) from exc
        except urllib.error.URLError as exc:
            raise PublishError([f"Cannot reach Medium: {exc.reason}"]) from exc

        content = self._decode(raw, fallback=f"Invalid JSON from {path}")
        check_errors(content)
        return content

    @staticmethod
    def _decode(raw: str, fallback: str) -> dict:
        try:
            content = json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            raise PublishError([fallback]) from exc
        if not isinstance(content, dict):
            raise PublishError([fallback])
        return content

    def get_user_id(self) -> str:
        """Id of the user the token belongs to."""
        content = self._request("GET", "/me")
        data = content.get("data") or {}
        if not data.get("id"):
            raise PublishError(["Medium response did not include a user id"])
        return data["id"]

    def get_publication_id(self, user_id: str, name: str) -> str:
        """Resolve a publication name to its id.

        The user must be a member of the publication.
        """
        content = self._request("GET", f"/users/{user_id}/publications")
        for publication in content.get("data", []):
            if publication.get("name") == name:
                return publication["id"]
        raise PublishError([f"Publication '{name}' not found for user {user_id}"])

    def create_post(self, title: str, content: str, published_at: str) -> PublishedPost:
        """Create a markdown post under the configured publication.

        In dry-run mode no request is made and a placeholder URL derived
        from the title is returned.
        """
        if self.dry_run:
            slug = "-".join(title.lower().split())
            return PublishedPost(url=f"{DRY_RUN_BASE_URL}/{slug}")

        payload = build_post_payload(title, content, published_at)
        result = self._request(
            "POST", f"/publications/{self.config.publication_id}/posts", payload
        )
        data = result.get("data") or {}
        if not data.get("url"):
            raise PublishError(["Medium response did not include a post URL"])
        return PublishedPost(url=data["url"], id=data.get("id", ""), data=data)


def build_post_payload(title: str, content: str, published_at: str) -> dict[str, str]:
    """Request body for Medium's create-post endpoint."""
    return {
        "title": title,
        "contentFormat": "markdown",
        "content": content,
        "publishedAt": published_at,
    }
