"""Locating the PostgreSQL server binaries."""

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

PG_CONFIG_TIMEOUT = 10.0


def _pg_config_bindir() -> Path | None:
    pg_config = shutil.which("pg_config")
    if not pg_config:
        return None
    try:
        proc = subprocess.run(
            [pg_config, "--bindir"],
            capture_output=True,
            check=False,
            text=True,
            timeout=PG_CONFIG_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("pg_config failed: %s", e)
        return None
    if proc.returncode != 0 or not proc.stdout.strip():
        return None
    return Path(proc.stdout.strip())


def find_executable(name: str, explicit: str | None = None) -> str:
    """Resolve an engine executable.

    An explicit path wins, then PATH, then ``pg_config --bindir`` (Debian
    and Ubuntu keep initdb and postgres off PATH). Falls back to the bare
    name so the eventual spawn reports a clear "not found" error.
    """
    if explicit:
        return explicit

    path = shutil.which(name)
    if path:
        return path

    bindir = _pg_config_bindir()
    if bindir is not None:
        candidate = bindir / name
        if candidate.is_file():
            logger.debug("Resolved %s via pg_config: %s", name, candidate)
            return str(candidate)

    return name
