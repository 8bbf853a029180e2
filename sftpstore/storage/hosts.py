"""Public host option used when building URLs: static string or per-call callback."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from sftpstore.errors import ConfigurationError


@dataclass(frozen=True)
class StaticHost:
    value: str

    def resolve(self, adapter: Any) -> str:
        return self.value


@dataclass(frozen=True)
class DynamicHost:
    """Host chosen at call time, e.g. to shard across CDN hostnames per record."""

    callback: Callable[[Any], str]

    def resolve(self, adapter: Any) -> str:
        return self.callback(adapter)


HostOption = Union[StaticHost, DynamicHost]


def host_option(value: Any) -> Optional[HostOption]:
    """Coerce a configured ``sftp_host`` value into a :data:`HostOption`.

    ``None`` and the empty string mean "no host". Anything that is neither a
    string nor callable is a configuration error.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (StaticHost, DynamicHost)):
        return value
    if isinstance(value, str):
        return StaticHost(value)
    if callable(value):
        return DynamicHost(value)
    raise ConfigurationError(
        f"sftp_host must be a string or a callable, got {type(value).__name__}"
    )
