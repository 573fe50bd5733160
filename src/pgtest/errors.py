"""Failure kinds raised by the instance lifecycle.

Each error names the phase that failed so a test report says whether
initialization, copy, launch, readiness or shutdown went wrong.
"""


class PgTestError(Exception):
    """Base class for all lifecycle failures."""

    phase: str = "lifecycle"

    def __init__(self, message: str, *, phase: str | None = None):
        if phase is not None:
            self.phase = phase
        self.message = message
        super().__init__(f"{self.phase}: {message}")


class ProvisionError(PgTestError):
    """Template or instance directory setup failed."""

    phase = "initialization"


class LaunchError(PgTestError):
    """The server process could not be started."""

    phase = "launch"


class ReadinessTimeout(PgTestError, TimeoutError):
    """The server did not signal readiness within the polling budget."""

    phase = "readiness"


class ShutdownError(PgTestError):
    """Signalling the server or removing its directory failed."""

    phase = "shutdown"
