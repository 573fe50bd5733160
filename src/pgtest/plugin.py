"""pytest fixtures binding instance failures to test failures.

Enable with ``pytest_plugins = ["pgtest.plugin"]`` in a conftest.py. Override
``pgtest_settings`` or ``pgtest_template_cell`` to change where the engine and
template live.
"""

import pytest

from pgtest import DEFAULT_TEMPLATE_CELL, PgTestError, Settings, ShutdownError, start


@pytest.fixture(scope="session")
def pgtest_settings() -> Settings:
    return Settings.from_env()


@pytest.fixture(scope="session")
def pgtest_template_cell():
    return DEFAULT_TEMPLATE_CELL


@pytest.fixture
def postgres(pgtest_settings, pgtest_template_cell):
    """A ready PostgresInstance, stopped and removed after the test."""
    try:
        instance = start(pgtest_settings, pgtest_template_cell)
    except PgTestError as e:
        pytest.fail(f"pgtest {e}", pytrace=False)

    yield instance

    try:
        instance.stop()
    except ShutdownError as e:
        pytest.fail(f"pgtest {e}", pytrace=False)
