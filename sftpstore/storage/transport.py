"""paramiko-backed implementation of the remote session contract."""

from __future__ import annotations

import logging
import socket
import stat
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, List, Optional

from sftpstore.errors import ConfigurationError, RemoteStatus, RemoteStatusError
from sftpstore.storage.base import RemoteEntry

if TYPE_CHECKING:  # pragma: no cover
    import paramiko

logger = logging.getLogger(__name__)


def _load_paramiko():
    try:
        import paramiko
    except ImportError as exc:
        raise ConfigurationError(
            "Missing dependency: install 'paramiko' for SFTP support."
        ) from exc
    return paramiko


def _classify(exc: BaseException) -> RemoteStatus:
    paramiko = _load_paramiko()
    if isinstance(exc, FileNotFoundError):
        return RemoteStatus.NO_SUCH_FILE
    if isinstance(exc, PermissionError):
        return RemoteStatus.PERMISSION_DENIED
    # Refused on every address, DNS lookups, dropped sockets.
    if isinstance(
        exc,
        (
            paramiko.ssh_exception.NoValidConnectionsError,
            socket.gaierror,
            socket.herror,
            socket.timeout,
            ConnectionError,
            EOFError,
        ),
    ):
        return RemoteStatus.CONNECTION_LOST
    return RemoteStatus.FAILURE


@contextmanager
def _status_errors(path: str) -> Iterator[None]:
    """Translate paramiko and OS errors into :class:`RemoteStatusError`."""
    paramiko = _load_paramiko()
    try:
        yield
    except paramiko.AuthenticationException as exc:
        raise RemoteStatusError(RemoteStatus.PERMISSION_DENIED, str(exc), path) from exc
    except paramiko.SSHException as exc:
        raise RemoteStatusError(RemoteStatus.CONNECTION_LOST, str(exc), path) from exc
    except (OSError, EOFError) as exc:
        raise RemoteStatusError(_classify(exc), str(exc) or type(exc).__name__, path) from exc


class ParamikoSession:
    """Wrap an SSH client and its SFTP channel behind the session contract."""

    def __init__(self, client: "paramiko.SSHClient", sftp: "paramiko.SFTPClient") -> None:
        self._client = client
        self._sftp = sftp

    def list(self, directory: str) -> List[RemoteEntry]:
        with _status_errors(directory):
            attrs = self._sftp.listdir_attr(directory)
        return [
            RemoteEntry(
                name=attr.filename,
                is_dir=stat.S_ISDIR(attr.st_mode or 0),
                size=attr.st_size,
            )
            for attr in attrs
        ]

    def mkdir(self, path: str) -> None:
        with _status_errors(path):
            self._sftp.mkdir(path)

    def rmdir(self, path: str) -> None:
        with _status_errors(path):
            self._sftp.rmdir(path)

    def upload(self, local_path: str, remote_path: str) -> None:
        with _status_errors(remote_path):
            self._sftp.put(local_path, remote_path)

    def download(self, remote_path: str, local_path: str) -> None:
        with _status_errors(remote_path):
            self._sftp.get(remote_path, local_path)

    def remove(self, path: str) -> None:
        with _status_errors(path):
            self._sftp.remove(path)

    def set_permissions(self, path: str, mode: int) -> None:
        with _status_errors(path):
            self._sftp.chmod(path, mode)

    def close(self) -> None:
        try:
            self._sftp.close()
        finally:
            self._client.close()


def connect(
    host: str,
    user: str,
    password: Optional[str] = None,
    *,
    port: int = 22,
    timeout: Optional[float] = None,
    allow_unknown_hosts: bool = True,
) -> ParamikoSession:
    """Open an SSH connection and an SFTP channel on top of it."""

    paramiko = _load_paramiko()
    client = paramiko.SSHClient()
    try:
        client.load_system_host_keys()
        if allow_unknown_hosts:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.RejectPolicy())

        logger.info("Connecting to sftp://%s@%s:%s", user, host, port)
        with _status_errors(host):
            client.connect(
                hostname=host,
                port=port,
                username=user,
                password=password,
                timeout=timeout,
                allow_agent=password is None,
                look_for_keys=password is None,
            )
            sftp = client.open_sftp()
    except BaseException:
        client.close()
        raise
    return ParamikoSession(client, sftp)
