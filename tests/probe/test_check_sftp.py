import pytest

from scripts import check_sftp
from sftpstore.config import SftpOptions
from sftpstore.errors import RemoteStatus, RemoteStatusError


def test_wait_for_sftp_lists_root_and_closes(monkeypatch, remote):
    remote.makedirs("/uploads/photos")
    monkeypatch.setattr(check_sftp.transport, "connect", lambda *args, **kwargs: remote)

    check_sftp.wait_for_sftp(SftpOptions(host="h", user="u", fs_root="/uploads"), timeout=5)

    assert remote.ops("list") == ["/uploads"]
    assert remote.closed


def test_wait_for_sftp_times_out(monkeypatch):
    def refuse(*args, **kwargs):
        raise RemoteStatusError(RemoteStatus.CONNECTION_LOST, "refused", "h")

    monkeypatch.setattr(check_sftp.transport, "connect", refuse)
    monkeypatch.setattr(check_sftp.time, "sleep", lambda seconds: None)

    with pytest.raises(TimeoutError):
        check_sftp.wait_for_sftp(SftpOptions(host="h", user="u"), timeout=0.01)
