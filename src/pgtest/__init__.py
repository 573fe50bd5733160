"""Throwaway PostgreSQL servers for tests: entry point and public API.

    def test_something():
        with pgtest.start() as pg:
            conn = psycopg2.connect(pg.dsn)
            ...
"""

from pgtest.config import Settings
from pgtest.errors import (
    LaunchError,
    PgTestError,
    ProvisionError,
    ReadinessTimeout,
    ShutdownError,
)
from pgtest.instance import PostgresInstance
from pgtest.template import DEFAULT_TEMPLATE_CELL, TemplateCell
from pgtest.types import EndpointDescriptor, InstanceState, TemplateDirectory


def start(
    settings: Settings | None = None,
    template_cell: TemplateCell | None = None,
) -> PostgresInstance:
    """Start postgres on a fresh copy of the template data directory.

    The template is initialized on first use in this process. Returns a
    ready instance or raises the PgTestError of the phase that failed.
    """
    instance = PostgresInstance(settings or Settings.from_env())
    instance.boot(template_cell or DEFAULT_TEMPLATE_CELL)
    return instance


__all__ = [
    "start",
    "Settings",
    "PostgresInstance",
    "TemplateCell",
    "DEFAULT_TEMPLATE_CELL",
    "EndpointDescriptor",
    "InstanceState",
    "TemplateDirectory",
    "PgTestError",
    "ProvisionError",
    "LaunchError",
    "ReadinessTimeout",
    "ShutdownError",
]
