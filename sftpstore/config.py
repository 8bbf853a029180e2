"""Centralized configuration loading for the SFTP attachment store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from sftpstore.errors import ConfigurationError

DEFAULT_FS_ROOT = "/"


@dataclass(frozen=True)
class Settings:
    """Immutable container for environment-driven settings."""

    sftp_host: str
    sftp_user: str
    sftp_password: str | None = None
    sftp_port: int = 22
    sftp_fs_root: str = DEFAULT_FS_ROOT
    sftp_public_host: str | None = None  # static public URL prefix, e.g. a CDN
    sftp_timeout: int = 30  # seconds, handed to the transport as-is
    sftp_allow_unknown_hosts: bool = True


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_positive_int(key: str, value: str, min_value: int = 1) -> int:
    """Parse and validate a positive integer from environment variable.

    Args:
        key: Environment variable name (for error messages)
        value: Raw string value from os.environ
        min_value: Minimum allowed value (default: 1)

    Returns:
        Validated positive integer

    Raises:
        ValueError: If value is not a positive integer or below min_value
    """
    try:
        parsed = int(value)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got: {value}") from e

    if parsed < min_value:
        raise ValueError(f"{key} must be >= {min_value}, got: {parsed}")

    return parsed


def normalize_fs_root(value: str | None) -> str:
    """Return a filesystem root that is never empty and always ends in ``/``."""

    root = (value or "").strip()
    if not root:
        return DEFAULT_FS_ROOT
    if not root.endswith("/"):
        root += "/"
    return root


@dataclass(frozen=True)
class SftpOptions:
    """Connection options consumed by :class:`sftpstore.storage.SftpStorage`."""

    host: str
    user: str
    password: str | None = None
    port: int = 22
    fs_root: str = DEFAULT_FS_ROOT
    timeout: int | None = None
    allow_unknown_hosts: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "fs_root", normalize_fs_root(self.fs_root))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SftpOptions":
        settings = settings or get_settings()
        return cls(
            host=settings.sftp_host,
            user=settings.sftp_user,
            password=settings.sftp_password,
            port=settings.sftp_port,
            fs_root=settings.sftp_fs_root,
            timeout=settings.sftp_timeout,
            allow_unknown_hosts=settings.sftp_allow_unknown_hosts,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""

    required_keys = ("SFTP_HOST", "SFTP_USER")
    missing = [key for key in required_keys if not os.getenv(key)]
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    return Settings(
        sftp_host=os.environ["SFTP_HOST"],
        sftp_user=os.environ["SFTP_USER"],
        sftp_password=os.environ.get("SFTP_PASSWORD"),
        sftp_port=_get_positive_int("SFTP_PORT", os.environ.get("SFTP_PORT", "22")),
        sftp_fs_root=normalize_fs_root(os.environ.get("SFTP_FS_ROOT")),
        sftp_public_host=os.environ.get("SFTP_PUBLIC_HOST") or None,
        sftp_timeout=_get_positive_int("SFTP_TIMEOUT", os.environ.get("SFTP_TIMEOUT", "30")),
        sftp_allow_unknown_hosts=_get_bool(
            os.environ.get("SFTP_ALLOW_UNKNOWN_HOSTS"), default=True
        ),
    )
