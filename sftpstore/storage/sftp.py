"""SFTP-backed storage adapter.

Every style of an attachment is stored as one file under ``fs_root`` on the
remote server. All remote calls go through one lazily opened session per
adapter instance; the session is stateful, so an adapter must not be shared
between threads.
"""

from __future__ import annotations

import logging
import posixpath
from os import PathLike
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from sftpstore.attachment import AttachmentLike, configure_templates
from sftpstore.config import Settings, SftpOptions, get_settings
from sftpstore.hooks import HookBus, StorageEvent, hooks
from sftpstore.storage import transport
from sftpstore.storage.base import (
    Outcome,
    RemoteEntry,
    RemoteResult,
    RemoteSession,
    StorageAdapter,
    attempt,
)
from sftpstore.storage.hosts import HostOption, host_option

logger = logging.getLogger(__name__)

FILE_MODE = 0o644

ConnectFn = Callable[..., RemoteSession]


def _local_path(local_file: Any) -> str:
    """Accept a path, a string, or a temp file handle exposing ``.path``/``.name``."""
    if isinstance(local_file, (str, PathLike)):
        return str(local_file)
    for attr in ("path", "name"):
        value = getattr(local_file, attr, None)
        if isinstance(value, (str, PathLike)):
            return str(value)
    raise TypeError(f"Cannot determine a local path for {local_file!r}")


def _log_absorbed(result: RemoteResult, action: str, path: str) -> None:
    if result.outcome is Outcome.NOT_FOUND:
        logger.debug("%s: %s not found", action, path)
    elif result.outcome is Outcome.ERROR:
        logger.warning("%s: %s failed: %s", action, path, result.error)


class SftpStorage(StorageAdapter):
    """Persist attachment styles as files on an SFTP server."""

    def __init__(
        self,
        attachment: AttachmentLike,
        options: SftpOptions,
        *,
        sftp_host: Any = None,
        connect: Optional[ConnectFn] = None,
        after_flush_writes: Optional[Callable[[], None]] = None,
        hook_bus: Optional[HookBus] = None,
    ) -> None:
        self.attachment = attachment
        self.options = options
        self.sftp_host: Optional[HostOption] = host_option(sftp_host)
        self._connect = connect or transport.connect
        self._after_flush_writes = after_flush_writes
        self._hooks = hook_bus or hooks
        self._session: Optional[RemoteSession] = None

        self.queued_for_write: Dict[str, Any] = {}
        self.queued_for_delete: List[str] = []

        if hasattr(attachment, "path_template") and hasattr(attachment, "url_template"):
            attachment.path_template, attachment.url_template = configure_templates(
                attachment.path_template, attachment.url_template
            )
        if hasattr(attachment, "storage"):
            attachment.storage = self

    @classmethod
    def from_settings(
        cls, attachment: AttachmentLike, settings: Optional[Settings] = None, **kwargs: Any
    ) -> "SftpStorage":
        settings = settings or get_settings()
        kwargs.setdefault("sftp_host", settings.sftp_public_host)
        return cls(attachment, SftpOptions.from_settings(settings), **kwargs)

    # -- connection ---------------------------------------------------------

    def connection(self) -> RemoteSession:
        """Return the session, opening it on first use."""
        if self._session is None:
            self._session = self._connect(
                self.options.host,
                self.options.user,
                self.options.password,
                port=self.options.port,
                timeout=self.options.timeout,
                allow_unknown_hosts=self.options.allow_unknown_hosts,
            )
        return self._session

    def close(self) -> None:
        session, self._session = self._session, None
        close = getattr(session, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "SftpStorage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- paths and urls -----------------------------------------------------

    @property
    def fs_root(self) -> str:
        return self.options.fs_root

    @property
    def default_style(self) -> str:
        return self.attachment.default_style

    def path(self, style: Optional[str] = None) -> str:
        return self.attachment.path(style or self.default_style)

    def remote_path(self, style: Optional[str] = None) -> str:
        return self._remote(self.path(style))

    def _remote(self, path: str) -> str:
        return self.fs_root + path.lstrip("/")

    def public_url(self, style: Optional[str] = None) -> str:
        if self.sftp_host is not None:
            return f"{self.sftp_host.resolve(self)}/{self.path(style)}"
        return f"/{self.path(style)}"

    # -- queues -------------------------------------------------------------

    def queue_write(self, style: str, local_file: Any) -> None:
        self.queued_for_write[style] = local_file

    def queue_delete(self, path: str) -> None:
        self.queued_for_delete.append(path)

    def queue_delete_styles(self, styles: Iterable[str]) -> None:
        for style in styles:
            self.queue_delete(self.path(style))

    # -- remote operations --------------------------------------------------

    def _list(self, directory: str) -> List[RemoteEntry]:
        return self.connection().list(directory)

    def _download(self, remote_path: str, local_path: str) -> None:
        self.connection().download(remote_path, local_path)

    def ensure_dir(self, directory: str) -> None:
        """Create every missing segment of ``directory`` below ``fs_root``.

        One listing per segment; existing segments are left alone, so calling
        this on a complete tree issues no mkdir. mkdir errors propagate.
        """
        logger.debug("mkdir_p for %s", directory)
        session = self.connection()
        current = self.fs_root
        for segment in directory.split("/"):
            if not segment:
                continue
            names = {entry.name for entry in session.list(current)}
            if segment not in names:
                logger.debug("mkdir %s%s", current, segment)
                session.mkdir(f"{current}{segment}")
            current += f"{segment}/"

    def exists(self, style: Optional[str] = None) -> bool:
        if not self.attachment.original_filename:
            return False
        remote = self.remote_path(style)
        listing = attempt(self._list, posixpath.dirname(remote))
        if not listing.ok:
            _log_absorbed(listing, "exists", remote)
            return False
        return posixpath.basename(remote) in {entry.name for entry in listing.value}

    def copy_to_local_file(self, style: str, local_dest_path: Path | str) -> bool:
        path = self.path(style)
        logger.info("copying %s to local file %s", path, local_dest_path)
        result = attempt(self._download, self._remote(path), str(local_dest_path))
        if result.ok:
            return True
        logger.warning("%s - cannot copy %s to local file %s", result.error, path, local_dest_path)
        return False

    def flush_writes(self) -> None:
        session = self.connection()
        for style, local_file in list(self.queued_for_write.items()):
            path = self.path(style)
            remote = self._remote(path)
            self.ensure_dir(posixpath.dirname(path))
            local_path = _local_path(local_file)
            logger.info("uploading %s to %s", local_path, path)
            session.upload(local_path, remote)
            session.set_permissions(remote, FILE_MODE)
            self._hooks.emit(StorageEvent.UPLOAD, style=style, path=remote)

        if self._after_flush_writes is not None:
            self._after_flush_writes()
        self.queued_for_write = {}

    def flush_deletes(self) -> None:
        session = self.connection()
        for path in self.queued_for_delete:
            remote = self._remote(path)
            logger.info("deleting file %s", path)
            removed = attempt(session.remove, remote)
            if removed.ok:
                self._hooks.emit(StorageEvent.DELETE, path=remote)
            else:
                # TODO: surface non-not-found delete failures to the caller once
                # a result type for flush_deletes is agreed on.
                _log_absorbed(removed, "delete", remote)
            self._prune_empty_parents(session, posixpath.dirname(remote))

        self.queued_for_delete = []

    def _prune_empty_parents(self, session: RemoteSession, directory: str) -> None:
        """Remove ``directory`` and its ancestors while they hold no visible entries."""
        root = self.fs_root.rstrip("/")
        current = directory
        while current.startswith(self.fs_root) and current.rstrip("/") != root:
            listing = attempt(session.list, current)
            if not listing.ok:
                _log_absorbed(listing, "prune", current)
                return
            if any(not entry.hidden for entry in listing.value):
                return
            removed = attempt(session.rmdir, current)
            if not removed.ok:
                _log_absorbed(removed, "prune", current)
                return
            logger.debug("removed empty directory %s", current)
            self._hooks.emit(StorageEvent.PRUNE, path=current)
            current = posixpath.dirname(current.rstrip("/"))
