from sftpstore.storage.base import RemoteEntry, RemoteSession, StorageAdapter
from sftpstore.storage.hosts import DynamicHost, StaticHost
from sftpstore.storage.sftp import FILE_MODE, SftpStorage

__all__ = [
    "FILE_MODE",
    "DynamicHost",
    "RemoteEntry",
    "RemoteSession",
    "SftpStorage",
    "StaticHost",
    "StorageAdapter",
]
