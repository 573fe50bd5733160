"""Waiting for a launched server to accept connections."""

import logging
import subprocess
import time

from pgtest.config import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL
from pgtest.errors import LaunchError, ReadinessTimeout
from pgtest.types import EndpointDescriptor

logger = logging.getLogger(__name__)


def await_ready(
    endpoint: EndpointDescriptor,
    attempts: int = DEFAULT_POLL_ATTEMPTS,
    interval: float = DEFAULT_POLL_INTERVAL,
    process: subprocess.Popen | None = None,
) -> None:
    """Block until the endpoint's socket file appears.

    Checks ``attempts`` times, sleeping ``interval`` seconds after each miss.
    Raises ReadinessTimeout when the budget runs out; the process is left
    running. If ``process`` is given and exits while we wait, raises
    LaunchError straight away.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")
    if interval < 0:
        raise ValueError(f"interval must not be negative, got {interval}")

    for attempt in range(1, attempts + 1):
        if endpoint.socket_path.exists():
            logger.debug("Socket %s ready after %d attempt(s)", endpoint.socket_path, attempt)
            return
        if process is not None and process.poll() is not None:
            raise LaunchError(
                f"postgres (pid {process.pid}) exited with code {process.returncode} "
                "before accepting connections"
            )
        time.sleep(interval)

    raise ReadinessTimeout(
        f"no socket at {endpoint.socket_path} after {attempts} attempts "
        f"({attempts * interval:.2f}s)"
    )
