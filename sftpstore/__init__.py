"""Store attachment styles as files on an SFTP server."""

from sftpstore.attachment import Attachment, configure_templates
from sftpstore.config import Settings, SftpOptions, get_settings
from sftpstore.errors import ConfigurationError, RemoteStatus, RemoteStatusError, SftpStoreError
from sftpstore.storage import DynamicHost, SftpStorage, StaticHost

__all__ = [
    "Attachment",
    "ConfigurationError",
    "DynamicHost",
    "RemoteStatus",
    "RemoteStatusError",
    "Settings",
    "SftpOptions",
    "SftpStorage",
    "SftpStoreError",
    "StaticHost",
    "configure_templates",
    "get_settings",
]
