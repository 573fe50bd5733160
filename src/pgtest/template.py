"""One-time creation of the template data directory.

Running initdb takes seconds, copying its output takes milliseconds, so each
process initializes a template once and every instance starts from a copy.
"""

import logging
import os
import shutil
import subprocess
import threading
from pathlib import Path

from pgtest.config import Settings
from pgtest.errors import ProvisionError
from pgtest.executables import find_executable
from pgtest.pgconf import append_overrides
from pgtest.types import TemplateDirectory

logger = logging.getLogger(__name__)


def template_overrides(template_dir: Path) -> dict[str, str]:
    return {
        "fsync": "off",
        "listen_addresses": "",
        "unix_socket_directories": str(template_dir),
    }


def _run_initdb(settings: Settings, path: Path) -> None:
    initdb = find_executable("initdb", settings.initdb)
    args = [initdb, "-D", str(path), "-A", "trust"]
    logger.debug("Running %s", " ".join(args))
    try:
        subprocess.run(args, capture_output=True, check=True, text=True)
    except subprocess.CalledProcessError as e:
        raise ProvisionError(
            f"initdb exited with code {e.returncode}: {(e.stderr or '').strip()}"
        ) from e
    except OSError as e:
        raise ProvisionError(f"cannot run {initdb}: {e}") from e


def provision_template(settings: Settings) -> TemplateDirectory:
    """Create and initialize the template directory unless it already exists.

    An existing directory is taken as the result of an earlier successful
    run, possibly by another process. A failed initialization removes the
    directory so a later run never reuses a half-built template.
    """
    path = settings.template_dir
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        os.mkdir(path, 0o700)
    except FileExistsError:
        logger.debug("Template %s already exists, skipping initdb", path)
        return TemplateDirectory(path)
    except OSError as e:
        raise ProvisionError(f"cannot create template directory {path}: {e}") from e

    try:
        _run_initdb(settings, path)
        append_overrides(path, template_overrides(path))
    except ProvisionError:
        shutil.rmtree(path, ignore_errors=True)
        raise
    except OSError as e:
        shutil.rmtree(path, ignore_errors=True)
        raise ProvisionError(f"cannot configure template {path}: {e}") from e

    logger.info("Initialized template data directory %s", path)
    return TemplateDirectory(path)


class TemplateCell:
    """Run-once guard around :func:`provision_template`.

    The first call does the work while holding the lock; concurrent callers
    wait for it. Every later call returns the cached template, or raises a
    new ProvisionError chained to the cached one, without touching the
    filesystem.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._done = False
        self._path: Path | None = None
        self._template: TemplateDirectory | None = None
        self._error: ProvisionError | None = None
        self.executions = 0

    @property
    def done(self) -> bool:
        return self._done

    def get(self, settings: Settings) -> TemplateDirectory:
        with self._lock:
            if not self._done:
                self._path = settings.template_dir
                self.executions += 1
                try:
                    self._template = provision_template(settings)
                except ProvisionError as e:
                    self._error = e
                except Exception as e:
                    self._error = ProvisionError(f"unexpected failure: {e!r}")
                    self._error.__cause__ = e
                self._done = True
            elif settings.template_dir != self._path:
                raise ValueError(
                    f"template already provisioned at {self._path}, "
                    f"cannot switch to {settings.template_dir}"
                )

        if self._error is not None:
            raise ProvisionError(self._error.message, phase=self._error.phase) from self._error
        return self._template


DEFAULT_TEMPLATE_CELL = TemplateCell()
