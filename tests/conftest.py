"""Shared fixtures: an in-memory remote filesystem that speaks the session contract."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

from sftpstore.attachment import Attachment
from sftpstore.config import SftpOptions
from sftpstore.errors import RemoteStatus, RemoteStatusError
from sftpstore.hooks import HookBus
from sftpstore.storage import RemoteEntry, SftpStorage


def _norm(path: str) -> str:
    return "/" + path.strip("/")


class FakeRemoteSession:
    """Dict-backed remote tree that records every call it receives."""

    def __init__(self, dirs: Tuple[str, ...] = ("/",)) -> None:
        self.dirs: Set[str] = {"/"}
        self.files: Dict[str, bytes] = {}
        self.modes: Dict[str, int] = {}
        self.calls: List[Tuple[str, str]] = []
        self.failures: Dict[Tuple[str, str], RemoteStatus] = {}
        self.closed = False
        for directory in dirs:
            self.makedirs(directory)

    # helpers for arranging state ------------------------------------------

    def makedirs(self, path: str) -> None:
        current = ""
        for segment in path.strip("/").split("/"):
            if segment:
                current += "/" + segment
                self.dirs.add(current)

    def put_file(self, path: str, data: bytes = b"data") -> None:
        path = _norm(path)
        self.makedirs(posixpath.dirname(path))
        self.files[path] = data

    def fail(self, op: str, path: str, code: RemoteStatus = RemoteStatus.FAILURE) -> None:
        self.failures[(op, _norm(path))] = code

    def ops(self, name: str) -> List[str]:
        return [path for op, path in self.calls if op == name]

    def _record(self, op: str, path: str) -> str:
        path = _norm(path)
        self.calls.append((op, path))
        code: Optional[RemoteStatus] = self.failures.get((op, path))
        if code is not None:
            raise RemoteStatusError(code, f"injected {op} failure", path)
        return path

    def _children(self, path: str) -> List[str]:
        names = {
            posixpath.basename(item)
            for item in list(self.dirs) + list(self.files)
            if item != "/" and posixpath.dirname(item) == path
        }
        return sorted(names)

    # session contract -------------------------------------------------------

    def list(self, directory: str) -> List[RemoteEntry]:
        path = self._record("list", directory)
        if path not in self.dirs:
            raise RemoteStatusError(RemoteStatus.NO_SUCH_FILE, "no such directory", path)
        return [
            RemoteEntry(name=name, is_dir=posixpath.join(path, name) in self.dirs)
            for name in self._children(path)
        ]

    def mkdir(self, path: str) -> None:
        path = self._record("mkdir", path)
        if path in self.dirs or path in self.files:
            raise RemoteStatusError(RemoteStatus.FAILURE, "already exists", path)
        if posixpath.dirname(path) not in self.dirs:
            raise RemoteStatusError(RemoteStatus.NO_SUCH_FILE, "no parent", path)
        self.dirs.add(path)

    def rmdir(self, path: str) -> None:
        path = self._record("rmdir", path)
        if path not in self.dirs:
            raise RemoteStatusError(RemoteStatus.NO_SUCH_FILE, "no such directory", path)
        if self._children(path):
            raise RemoteStatusError(RemoteStatus.FAILURE, "directory not empty", path)
        self.dirs.remove(path)

    def upload(self, local_path: str, remote_path: str) -> None:
        path = self._record("upload", remote_path)
        if posixpath.dirname(path) not in self.dirs:
            raise RemoteStatusError(RemoteStatus.NO_SUCH_FILE, "no parent", path)
        self.files[path] = Path(local_path).read_bytes()
        self.modes[path] = 0o600

    def download(self, remote_path: str, local_path: str) -> None:
        path = self._record("download", remote_path)
        if path not in self.files:
            raise RemoteStatusError(RemoteStatus.NO_SUCH_FILE, "no such file", path)
        Path(local_path).write_bytes(self.files[path])

    def remove(self, path: str) -> None:
        path = self._record("remove", path)
        if path not in self.files:
            raise RemoteStatusError(RemoteStatus.NO_SUCH_FILE, "no such file", path)
        del self.files[path]
        self.modes.pop(path, None)

    def set_permissions(self, path: str, mode: int) -> None:
        path = self._record("set_permissions", path)
        if path not in self.files:
            raise RemoteStatusError(RemoteStatus.NO_SUCH_FILE, "no such file", path)
        self.modes[path] = mode

    def close(self) -> None:
        self.closed = True


class CountingConnect:
    """Stand-in for ``transport.connect`` that hands out one fake session."""

    def __init__(self, session: FakeRemoteSession) -> None:
        self.session = session
        self.calls: List[tuple] = []

    def __call__(self, host, user, password=None, **kwargs):
        self.calls.append((host, user, password, kwargs))
        return self.session


@pytest.fixture
def remote() -> FakeRemoteSession:
    return FakeRemoteSession()


@pytest.fixture
def make_storage(remote):
    def _make(
        fs_root: str = "/",
        path_template: str = ":class/:id/:style/:filename",
        original_filename: Optional[str] = "photo.jpg",
        **kwargs,
    ):
        attachment = Attachment(
            name="avatar",
            record_class="users",
            record_id=42,
            original_filename=original_filename,
            path_template=path_template,
        )
        remote.makedirs(fs_root)
        kwargs.setdefault("connect", CountingConnect(remote))
        kwargs.setdefault("hook_bus", HookBus())
        options = SftpOptions(host="sftp.example.com", user="deploy", password="s3cret", fs_root=fs_root)
        return SftpStorage(attachment, options, **kwargs)

    return _make


@pytest.fixture
def local_file(tmp_path):
    def _write(name: str = "upload.bin", data: bytes = b"payload") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
