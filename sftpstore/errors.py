"""Error taxonomy shared by the configuration and storage layers."""

from __future__ import annotations

from enum import Enum


class SftpStoreError(Exception):
    """Base class for every error raised by sftpstore."""


class ConfigurationError(SftpStoreError, RuntimeError):
    """Raised at setup time when options or dependencies are unusable."""


class RemoteStatus(str, Enum):
    NO_SUCH_FILE = "no_such_file"
    PERMISSION_DENIED = "permission_denied"
    CONNECTION_LOST = "connection_lost"
    FAILURE = "failure"


class RemoteStatusError(SftpStoreError):
    """A remote filesystem call failed with a protocol status code."""

    def __init__(self, code: RemoteStatus, message: str, path: str | None = None) -> None:
        self.code = code
        self.path = path
        detail = f"{message} ({path})" if path else message
        super().__init__(f"{code.value}: {detail}")

    @property
    def not_found(self) -> bool:
        return self.code is RemoteStatus.NO_SUCH_FILE
