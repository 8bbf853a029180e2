"""Minimal attachment model and ``:token`` path interpolation.

The storage adapter only needs ``path(style)``, ``original_filename`` and
``default_style`` from an attachment; host applications with their own
attachment model can pass that instead. This module supplies a small one for
applications that don't have one.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

PUBLIC_URL_TOKEN = ":sftp_public_url"
_SFTP_URL_TEMPLATE = re.compile(r"^:sftp.*url$")

Interpolator = Callable[["Attachment", str], str]


class AttachmentLike(Protocol):
    original_filename: Optional[str]
    default_style: str

    def path(self, style: Optional[str] = None) -> str:  # pragma: no cover - protocol
        ...


class Interpolations:
    """Registry of ``:name`` tokens and the functions that expand them."""

    def __init__(self) -> None:
        self._tokens: Dict[str, Interpolator] = {}

    def register(self, name: str, func: Interpolator) -> None:
        self._tokens[name.lstrip(":")] = func

    def __contains__(self, name: str) -> bool:
        return name.lstrip(":") in self._tokens

    def interpolate(self, template: str, attachment: "Attachment", style: str) -> str:
        if not self._tokens:
            return template
        # Longest names first so ":basename" is not read as ":base" + "name".
        names = sorted(self._tokens, key=len, reverse=True)
        pattern = re.compile(":(" + "|".join(re.escape(name) for name in names) + ")")
        return pattern.sub(lambda m: str(self._tokens[m.group(1)](attachment, style)), template)


def _id_partition(attachment: "Attachment", style: str) -> str:
    record_id = attachment.record_id
    if isinstance(record_id, int) or str(record_id).isdigit():
        padded = f"{int(record_id):09d}"
        return "/".join(padded[i : i + 3] for i in range(0, 9, 3))
    text = str(record_id)
    return "/".join(text[i : i + 3] for i in range(0, min(len(text), 9), 3))


def _basename(attachment: "Attachment", style: str) -> str:
    filename = attachment.original_filename or ""
    return posixpath.splitext(filename)[0]


def _extension(attachment: "Attachment", style: str) -> str:
    filename = attachment.original_filename or ""
    return posixpath.splitext(filename)[1].lstrip(".")


def _public_url(attachment: "Attachment", style: str) -> str:
    if attachment.storage is None:
        raise LookupError(f"{PUBLIC_URL_TOKEN} needs an attachment bound to a storage adapter")
    return attachment.storage.public_url(style)


def default_interpolations() -> Interpolations:
    registry = Interpolations()
    registry.register("class", lambda a, s: a.record_class)
    registry.register("attachment", lambda a, s: a.name)
    registry.register("id", lambda a, s: str(a.record_id))
    registry.register("id_partition", _id_partition)
    registry.register("style", lambda a, s: s)
    registry.register("filename", lambda a, s: a.original_filename or "")
    registry.register("basename", _basename)
    registry.register("extension", _extension)
    registry.register(PUBLIC_URL_TOKEN, _public_url)
    return registry


def configure_templates(path_template: str, url_template: str) -> Tuple[str, str]:
    """Fold the url template into the path template.

    Remote paths mirror public URLs: every ``:url`` in the path template is
    replaced by the url template, and the url template becomes
    ``:sftp_public_url``. Templates that were already configured this way are
    returned unchanged.
    """
    if _SFTP_URL_TEMPLATE.match(url_template or ""):
        return path_template, url_template
    return path_template.replace(":url", url_template), PUBLIC_URL_TOKEN


@dataclass
class Attachment:
    """A named file attached to a record, stored once per style."""

    name: str
    record_class: str
    record_id: Any
    original_filename: Optional[str] = None
    path_template: str = ":url"
    url_template: str = "system/:class/:attachment/:id_partition/:style/:filename"
    default_style: str = "original"
    interpolations: Interpolations = field(default_factory=default_interpolations)
    storage: Any = field(default=None, repr=False)

    def path(self, style: Optional[str] = None) -> str:
        return self.interpolations.interpolate(
            self.path_template, self, style or self.default_style
        )

    def url(self, style: Optional[str] = None) -> str:
        return self.interpolations.interpolate(
            self.url_template, self, style or self.default_style
        )
