"""Simple readiness probe for the configured SFTP server."""

from __future__ import annotations

import argparse
import logging
import sys
import time

from sftpstore.config import SftpOptions, get_settings
from sftpstore.errors import RemoteStatusError
from sftpstore.storage import transport

LOGGER = logging.getLogger(__name__)


def wait_for_sftp(options: SftpOptions, timeout: int = 60) -> None:
    start = time.time()
    while time.time() - start < timeout:
        try:
            session = transport.connect(
                options.host,
                options.user,
                options.password,
                port=options.port,
                timeout=options.timeout,
                allow_unknown_hosts=options.allow_unknown_hosts,
            )
        except RemoteStatusError as exc:
            LOGGER.info("Waiting for SFTP: %s", exc)
            time.sleep(2)
            continue
        try:
            entries = session.list(options.fs_root)
        finally:
            session.close()
        LOGGER.info("SFTP is ready: %s holds %s entries", options.fs_root, len(entries))
        return
    raise TimeoutError("SFTP not ready within timeout")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--timeout", type=int, default=60, help="Seconds to wait (default: 60)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    wait_for_sftp(SftpOptions.from_settings(get_settings()), timeout=args.timeout)


if __name__ == "__main__":
    try:
        main()
    except (TimeoutError, RemoteStatusError) as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)
