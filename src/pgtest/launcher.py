"""Starting the postgres server process."""

import logging
import subprocess
from pathlib import Path

from pgtest.config import Settings
from pgtest.errors import LaunchError
from pgtest.executables import find_executable
from pgtest.types import EndpointDescriptor

logger = logging.getLogger(__name__)

LOG_NAME = "postgres.log"


def launch(workdir: Path, endpoint: EndpointDescriptor, settings: Settings) -> subprocess.Popen:
    """Start postgres on ``workdir`` and return immediately.

    Does not wait for readiness. Server output goes to ``postgres.log`` in the
    working directory.
    """
    postgres = find_executable("postgres", settings.postgres)
    args = [
        postgres,
        "-D", str(workdir),
        "-k", str(endpoint.socket_dir),
        "-p", str(endpoint.port),
    ]
    logger.debug("Running %s", " ".join(args))
    try:
        with open(workdir / LOG_NAME, "ab") as log:
            process = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=log,
                stderr=subprocess.STDOUT,
            )
    except OSError as e:
        raise LaunchError(f"cannot start {postgres}: {e}") from e

    logger.debug("Started postgres pid %d on %s", process.pid, workdir)
    return process
