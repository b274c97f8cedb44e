"""S3 integration: config and image uploader."""

from __future__ import annotations

import logging
import mimetypes
import os
import posixpath
import re
from pathlib import Path
from urllib.parse import urlsplit

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from medium_migrator.errors import UploadError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://s3.amazonaws.com"
KEY_PREFIX = "images"
DRY_RUN_BASE_URL = "http://localhost/test"


class S3Config(BaseModel):
    """Configuration for the image bucket."""

    access_key_id: str = ""
    secret_access_key: str = ""
    bucket: str = ""
    region: str = ""
    base_url: str = DEFAULT_BASE_URL

    @property
    def is_configured(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key and self.bucket)

    @classmethod
    def from_env(cls) -> S3Config:
        """Create config from environment variables."""
        return cls(
            access_key_id=os.environ.get("AWS_ACCESS_KEY_ID", ""),
            secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY", ""),
            bucket=os.environ.get("AWS_S3_BUCKET", ""),
            region=os.environ.get("AWS_REGION", ""),
        )


class S3Uploader:
    """Uploads images from the local site mirror to S3.

    In dry-run mode nothing is read or written and a placeholder URL is
    returned for each image.
    """

    def __init__(
        self,
        config: S3Config,
        images_dir: str | Path,
        site_url: str,
        *,
        dry_run: bool = False,
        client: object | None = None,
    ) -> None:
        self.config = config
        self.images_dir = Path(images_dir)
        self.dry_run = dry_run
        self._site_prefix = re.compile(
            rf"^https?://(www\.)?{re.escape(urlsplit(site_url).hostname or '')}",
            re.IGNORECASE,
        )
        self._client = client

    def _get_client(self) -> object:
        """Lazy-create and cache the boto3 S3 client."""
        if self._client is None:
            import boto3

            kwargs: dict[str, str] = {
                "aws_access_key_id": self.config.access_key_id,
                "aws_secret_access_key": self.config.secret_access_key,
            }
            if self.config.region:
                kwargs["region_name"] = self.config.region
            self._client = boto3.client("s3", **kwargs)
        return self._client

    def site_path(self, reference: str) -> str:
        """Reduce an absolute URL on the site to its path."""
        path = self._site_prefix.sub("", reference)
        return urlsplit(path).path

    def storage_key(self, reference: str) -> str:
        return f"{KEY_PREFIX}/{posixpath.basename(self.site_path(reference))}"

    def local_path(self, reference: str) -> Path:
        return self.images_dir / self.site_path(reference).lstrip("/")

    def public_url(self, key: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{self.config.bucket}/{key}"

    def upload(self, reference: str) -> str:
        """Upload the image behind *reference* and return its public URL.

        Raises:
            UploadError: The local file is missing or the S3 write failed.
        """
        key = self.storage_key(reference)
        if self.dry_run:
            return f"{DRY_RUN_BASE_URL}/{key}"

        path = self.local_path(reference)
        try:
            body = path.read_bytes()
        except OSError as exc:
            raise UploadError(reference, f"cannot read {path}: {exc}") from exc

        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            self._get_client().put_object(  # type: ignore[attr-defined]
                Bucket=self.config.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise UploadError(reference, f"S3 upload failed: {exc}") from exc

        logger.debug("Uploaded %s to s3://%s/%s", path, self.config.bucket, key)
        return self.public_url(key)
