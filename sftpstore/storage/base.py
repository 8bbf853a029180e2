"""Abstract base classes and helpers for storage adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Generic, List, Optional, Protocol, TypeVar

from sftpstore.errors import RemoteStatusError

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteEntry:
    """Directory entry returned by a remote listing."""

    name: str
    is_dir: bool = False
    size: Optional[int] = None

    @property
    def hidden(self) -> bool:
        return self.name.startswith(".")


class RemoteSession(Protocol):
    """Capabilities every transport must provide.

    Each call raises :class:`RemoteStatusError` on a protocol failure.
    """

    def list(self, directory: str) -> List[RemoteEntry]:  # pragma: no cover - protocol
        ...

    def mkdir(self, path: str) -> None:  # pragma: no cover - protocol
        ...

    def rmdir(self, path: str) -> None:  # pragma: no cover - protocol
        ...

    def upload(self, local_path: str, remote_path: str) -> None:  # pragma: no cover - protocol
        ...

    def download(self, remote_path: str, local_path: str) -> None:  # pragma: no cover - protocol
        ...

    def remove(self, path: str) -> None:  # pragma: no cover - protocol
        ...

    def set_permissions(self, path: str, mode: int) -> None:  # pragma: no cover - protocol
        ...


class Outcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class RemoteResult(Generic[T]):
    """Classified result of a single remote call."""

    outcome: Outcome
    value: Optional[T] = None
    error: Optional[RemoteStatusError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


def attempt(call: Callable[..., T], *args: Any) -> RemoteResult[T]:
    """Run a session call and classify it instead of letting it raise.

    Only :class:`RemoteStatusError` is classified; anything else is a bug and
    propagates.
    """
    try:
        value = call(*args)
    except RemoteStatusError as exc:
        outcome = Outcome.NOT_FOUND if exc.not_found else Outcome.ERROR
        return RemoteResult(outcome=outcome, error=exc)
    return RemoteResult(outcome=Outcome.OK, value=value)


class StorageAdapter(ABC):
    """Define the interface an attachment uses to persist its styles."""

    @abstractmethod
    def flush_writes(self) -> None:  # pragma: no cover - interface contract
        """Commit every queued write."""

    @abstractmethod
    def flush_deletes(self) -> None:  # pragma: no cover - interface contract
        """Commit every queued delete (best effort)."""

    @abstractmethod
    def exists(self, style: Optional[str] = None) -> bool:  # pragma: no cover
        """Return True if the file for ``style`` is present remotely."""

    @abstractmethod
    def copy_to_local_file(self, style: str, local_dest_path: Path | str) -> bool:  # pragma: no cover
        """Download the file for ``style``; return False when that is not possible."""

    @abstractmethod
    def public_url(self, style: Optional[str] = None) -> str:  # pragma: no cover
        """Return the public URL for ``style``."""
