"""Clients for the services a migration writes to: Medium and S3."""

from medium_migrator.integrations.medium import MediumAPIClient, MediumConfig
from medium_migrator.integrations.s3 import S3Config, S3Uploader

__all__ = [
    "MediumAPIClient",
    "MediumConfig",
    "S3Config",
    "S3Uploader",
]
