"""Endpoint allocation: a private Unix socket per instance."""

import os
from pathlib import Path

from pgtest.config import Settings
from pgtest.errors import ProvisionError
from pgtest.types import EndpointDescriptor

# sun_path is 104 bytes on macOS and 108 on Linux, NUL included.
MAX_SOCKET_PATH = 103


def allocate_endpoint(workdir: Path, settings: Settings) -> EndpointDescriptor:
    """Place the instance's socket inside its own working directory.

    Working directories are unique, so every instance gets a distinct socket
    path even when they all use the same port number.
    """
    endpoint = EndpointDescriptor(
        socket_dir=workdir,
        port=settings.port,
        dbname=settings.dbname,
    )
    if len(os.fsencode(endpoint.socket_path)) > MAX_SOCKET_PATH:
        raise ProvisionError(
            f"socket path {endpoint.socket_path} exceeds {MAX_SOCKET_PATH} bytes; "
            "use a shorter PGTEST_TMPDIR",
            phase="copy",
        )
    return endpoint
