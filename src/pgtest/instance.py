"""The caller-facing handle for one running postgres instance."""

import logging
import shutil
import signal
import subprocess
import sys
from pathlib import Path

from pgtest.config import Settings
from pgtest.errors import PgTestError, ShutdownError
from pgtest.launcher import launch
from pgtest.provision import provision_instance
from pgtest.readiness import await_ready
from pgtest.template import TemplateCell
from pgtest.types import EndpointDescriptor, InstanceState

logger = logging.getLogger(__name__)


def _ignore_missing(func, path, exc: BaseException) -> None:
    if not isinstance(exc, FileNotFoundError):
        raise exc


def remove_tree(path: Path) -> None:
    """Recursively delete path. Entries that vanish underneath us are fine."""
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_ignore_missing)
    else:
        shutil.rmtree(path, onerror=lambda func, p, info: _ignore_missing(func, p, info[1]))


_TRANSITIONS = {
    InstanceState.PROVISIONING: {InstanceState.LAUNCHING, InstanceState.FAILED},
    InstanceState.LAUNCHING: {InstanceState.AWAITING_READINESS, InstanceState.FAILED},
    InstanceState.AWAITING_READINESS: {InstanceState.READY, InstanceState.FAILED},
    InstanceState.READY: {InstanceState.STOPPED, InstanceState.FAILED},
    InstanceState.STOPPED: set(),
    InstanceState.FAILED: set(),
}


class PostgresInstance:
    """One postgres server with an exclusively owned data directory and process.

    Created by :func:`pgtest.start`. The endpoint is only valid while the
    instance is READY; :meth:`stop` may be called exactly once.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._state = InstanceState.PROVISIONING
        self._workdir: Path | None = None
        self._endpoint: EndpointDescriptor | None = None
        self._process: subprocess.Popen | None = None

    def __repr__(self) -> str:
        return f"<PostgresInstance state={self._state} workdir={self._workdir}>"

    def __enter__(self) -> "PostgresInstance":
        return self

    def __exit__(self, *exc_info) -> None:
        if self._state is InstanceState.READY:
            self.stop()

    @property
    def state(self) -> InstanceState:
        return self._state

    @property
    def workdir(self) -> Path | None:
        return self._workdir

    @property
    def process(self) -> subprocess.Popen | None:
        return self._process

    @property
    def endpoint(self) -> EndpointDescriptor:
        if self._state is not InstanceState.READY:
            raise RuntimeError(f"endpoint is only available while ready (state: {self._state})")
        return self._endpoint

    @property
    def dsn(self) -> str:
        """libpq connection string, e.g. for ``psycopg2.connect``."""
        return self.endpoint.dsn

    def connect(self, **kwargs):
        """Open a psycopg2 connection to this instance."""
        import psycopg2

        return psycopg2.connect(self.dsn, **kwargs)

    def _transition(self, state: InstanceState) -> None:
        if state not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"invalid transition {self._state} -> {state}")
        logger.debug("Instance %s: %s -> %s", self._workdir, self._state, state)
        self._state = state

    def boot(self, template_cell: TemplateCell) -> None:
        """Provision, launch and wait for the server.

        On failure the instance ends up FAILED with nothing left behind, and
        the phase's error is raised.
        """
        if self._state is not InstanceState.PROVISIONING:
            raise RuntimeError(f"instance already booted (state: {self._state})")
        settings = self._settings
        try:
            template = template_cell.get(settings)
            self._workdir, self._endpoint = provision_instance(template, settings)
            self._transition(InstanceState.LAUNCHING)
            self._process = launch(self._workdir, self._endpoint, settings)
            self._transition(InstanceState.AWAITING_READINESS)
            await_ready(
                self._endpoint,
                settings.poll_attempts,
                settings.poll_interval,
                process=self._process,
            )
        except PgTestError as e:
            logger.warning("Instance %s failed: %s", self._workdir, e)
            self._transition(InstanceState.FAILED)
            self._release()
            raise
        except BaseException:
            logger.warning("Instance %s interrupted during startup", self._workdir)
            self._transition(InstanceState.FAILED)
            self._release()
            raise

        self._transition(InstanceState.READY)
        logger.info("Postgres ready at %s (pid %d)", self._endpoint.socket_path, self._process.pid)

    def _release(self) -> None:
        if self._process is not None and self._process.poll() is None:
            try:
                self._process.send_signal(signal.SIGINT)
            except OSError as e:
                logger.warning("Cannot interrupt postgres pid %d: %s", self._process.pid, e)
        if self._workdir is not None:
            try:
                remove_tree(self._workdir)
            except OSError as e:
                logger.warning("Cannot remove %s: %s", self._workdir, e)

    def _interrupt(self) -> None:
        process = self._process
        if process.poll() is not None:
            raise ShutdownError(
                f"postgres (pid {process.pid}) already exited with code {process.returncode}"
            )
        try:
            process.send_signal(signal.SIGINT)
        except OSError as e:
            raise ShutdownError(f"cannot interrupt postgres (pid {process.pid}): {e}") from e

    def _remove_workdir(self) -> None:
        try:
            remove_tree(self._workdir)
        except OSError as e:
            raise ShutdownError(f"cannot remove {self._workdir}: {e}") from e

    def stop(self) -> None:
        """Interrupt the server and delete its working directory.

        Does not wait for the process to exit. The directory is removed even
        when signalling fails; in that case the signalling error is raised,
        chained to the removal error if that failed too.
        """
        if self._state is InstanceState.STOPPED:
            raise RuntimeError(f"instance {self._workdir} already stopped")
        if self._state is not InstanceState.READY:
            raise RuntimeError(f"cannot stop instance in state {self._state}")
        self._transition(InstanceState.STOPPED)

        signal_error = removal_error = None
        try:
            self._interrupt()
        except ShutdownError as e:
            signal_error = e
        try:
            self._remove_workdir()
        except ShutdownError as e:
            removal_error = e

        if signal_error is not None:
            if removal_error is not None:
                logger.error("Also failed to clean up: %s", removal_error)
                raise signal_error from removal_error
            raise signal_error
        if removal_error is not None:
            raise removal_error
        logger.info("Stopped postgres pid %d, removed %s", self._process.pid, self._workdir)
