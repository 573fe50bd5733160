"""Shared types for the pgtest package."""

import enum
from dataclasses import dataclass
from pathlib import Path

from psycopg2.extensions import make_dsn


class InstanceState(enum.Enum):
    PROVISIONING = "provisioning"
    LAUNCHING = "launching"
    AWAITING_READINESS = "awaiting-readiness"
    READY = "ready"
    STOPPED = "stopped"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TemplateDirectory:
    """An initialized baseline data directory shared read-only by all instances."""

    path: Path
    initialized: bool = True


@dataclass(frozen=True)
class EndpointDescriptor:
    """Where a local server listens, and how a libpq client reaches it."""

    socket_dir: Path
    port: int = 5432
    dbname: str = "postgres"

    @property
    def socket_path(self) -> Path:
        """The Unix socket postgres creates once it accepts connections."""
        return self.socket_dir / f".s.PGSQL.{self.port}"

    @property
    def dsn(self) -> str:
        return make_dsn(
            host=str(self.socket_dir),
            port=self.port,
            dbname=self.dbname,
            sslmode="disable",
        )
