"""Unified configuration loaded from .medium-migrator.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from medium_migrator.errors import ConfigError
from medium_migrator.integrations.medium import MediumConfig
from medium_migrator.integrations.s3 import S3Config
from medium_migrator.ledger import COMPLETED_FILENAME, DRY_RUN_PREFIX, REDIRECTS_FILENAME

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".medium-migrator.toml"
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "medium-migrator" / "config.toml"


class MigrationSectionConfig(BaseModel):
    """[migration] section."""

    posts_glob: str = "posts/**/*.*"
    images_dir: str = "posts_images"
    site_url: str = "https://developmentseed.org"
    completed_file: str = COMPLETED_FILENAME
    redirects_file: str = REDIRECTS_FILENAME
    dry_run_prefix: str = DRY_RUN_PREFIX
    limit: int | None = None
    fail_fast: bool = False
    keep_code_language: bool = False


class MigratorConfig(BaseModel):
    """Root configuration."""

    medium: MediumConfig = Field(default_factory=MediumConfig)
    s3: S3Config = Field(default_factory=S3Config)
    migration: MigrationSectionConfig = Field(default_factory=MigrationSectionConfig)


def load_config(path: str | Path | None = None) -> MigratorConfig:
    """Load configuration from TOML file and environment variables.

    Search order:
    1. Explicit path (if provided)
    2. .medium-migrator.toml in CWD
    3. ~/.config/medium-migrator/config.toml

    Then overlay environment variables.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for candidate in (Path(".") / CONFIG_FILENAME, GLOBAL_CONFIG_PATH):
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break

    config = MigratorConfig.model_validate(data) if data else MigratorConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: MigratorConfig, **cli_kwargs: object) -> MigratorConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was provided (not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "limit": ("migration", "limit"),
        "fail_fast": ("migration", "fail_fast"),
        "keep_code_language": ("migration", "keep_code_language"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return MigratorConfig.model_validate(data)


def require_credentials(config: MigratorConfig, *, need_publication: bool = True) -> None:
    """Refuse to start unless every required credential is present.

    Raises:
        ConfigError: Naming the first missing item.
    """
    if not config.medium.token:
        raise ConfigError("Missing Medium credentials.")
    if not (config.s3.access_key_id and config.s3.secret_access_key):
        raise ConfigError("Missing AWS credentials.")
    if not config.s3.bucket:
        raise ConfigError("Missing S3 bucket.")
    if need_publication and not config.medium.publication_id:
        raise ConfigError("Missing Medium publication id")


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: MigratorConfig) -> MigratorConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "MEDIUM_TOKEN": ("medium", "token"),
        "MEDIUM_PUB_ID": ("medium", "publication_id"),
        "MEDIUM_API_URL": ("medium", "api_url"),
        "AWS_ACCESS_KEY_ID": ("s3", "access_key_id"),
        "AWS_SECRET_ACCESS_KEY": ("s3", "secret_access_key"),
        "AWS_S3_BUCKET": ("s3", "bucket"),
        "AWS_REGION": ("s3", "region"),
        "MIGRATOR_POSTS_GLOB": ("migration", "posts_glob"),
        "MIGRATOR_IMAGES_DIR": ("migration", "images_dir"),
        "MIGRATOR_SITE_URL": ("migration", "site_url"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    return MigratorConfig.model_validate(data)
