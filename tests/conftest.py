"""Shared test fixtures.

Unit tests run the real lifecycle against stand-in ``initdb`` and ``postgres``
executables: small Python scripts that mimic the files and socket the real
binaries produce.
"""

import shutil
import sys
import tempfile
import textwrap
from pathlib import Path

import pytest

from pgtest import Settings, TemplateCell

pytest_plugins = ["pytester", "pgtest.plugin"]

FAKE_INITDB = r"""
import sys
import time
from pathlib import Path

args = sys.argv[1:]
data_dir = Path(args[args.index("-D") + 1])
with open(data_dir.parent / "initdb.calls", "a") as f:
    f.write(str(data_dir) + "\n")
time.sleep(0.1)
data_dir.mkdir(exist_ok=True)
(data_dir / "PG_VERSION").write_text("16\n")
(data_dir / "postgresql.conf").write_text("# generated by initdb\nmax_connections = 100\n")
(data_dir / "base").mkdir(exist_ok=True)
(data_dir / "base" / "1").write_text("catalog\n")
"""

FAILING_INITDB = r"""
import sys
from pathlib import Path

args = sys.argv[1:]
data_dir = Path(args[args.index("-D") + 1])
with open(data_dir.parent / "initdb.calls", "a") as f:
    f.write(str(data_dir) + "\n")
(data_dir / "PG_VERSION").write_text("16\n")
sys.stderr.write("initdb: could not write file: No space left on device\n")
sys.exit(1)
"""

FAKE_POSTGRES = r"""
import signal
import sys
import time
from pathlib import Path

args = sys.argv[1:]
socket_dir = Path(args[args.index("-k") + 1])
port = args[args.index("-p") + 1]


def shutdown(signum, frame):
    sys.exit(0)


signal.signal(signal.SIGINT, shutdown)
signal.signal(signal.SIGTERM, shutdown)
print("database system is ready to accept connections", flush=True)
(socket_dir / f".s.PGSQL.{port}").touch()
while True:
    time.sleep(0.05)
"""

NEVER_READY_POSTGRES = r"""
import signal
import sys
import time


def shutdown(signum, frame):
    sys.exit(0)


signal.signal(signal.SIGINT, shutdown)
while True:
    time.sleep(0.05)
"""

CRASHING_POSTGRES = r"""
import sys

sys.stderr.write('FATAL:  lock file "postmaster.pid" already exists\n')
sys.exit(1)
"""


def write_executable(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
    path.chmod(0o755)
    return path


@pytest.fixture
def bin_dir(tmp_path) -> Path:
    return tmp_path / "bin"


@pytest.fixture
def fake_initdb(bin_dir) -> Path:
    return write_executable(bin_dir / "initdb", FAKE_INITDB)


@pytest.fixture
def failing_initdb(bin_dir) -> Path:
    return write_executable(bin_dir / "initdb-failing", FAILING_INITDB)


@pytest.fixture
def fake_postgres(bin_dir) -> Path:
    return write_executable(bin_dir / "postgres", FAKE_POSTGRES)


@pytest.fixture
def never_ready_postgres(bin_dir) -> Path:
    return write_executable(bin_dir / "postgres-never-ready", NEVER_READY_POSTGRES)


@pytest.fixture
def crashing_postgres(bin_dir) -> Path:
    return write_executable(bin_dir / "postgres-crashing", CRASHING_POSTGRES)


@pytest.fixture
def instances_root():
    """A short temp root; pytest's tmp_path can push socket paths past sun_path limits."""
    root = Path(tempfile.mkdtemp(prefix="pgt"))
    yield root
    shutil.rmtree(root, ignore_errors=True)


@pytest.fixture
def settings(tmp_path, fake_initdb, fake_postgres, instances_root) -> Settings:
    return Settings(
        initdb=str(fake_initdb),
        postgres=str(fake_postgres),
        template_dir=tmp_path / "template",
        temp_root=instances_root,
        poll_attempts=250,
        poll_interval=0.02,
    )


@pytest.fixture
def template_cell() -> TemplateCell:
    return TemplateCell()


@pytest.fixture
def initdb_calls(tmp_path):
    """Number of times a stand-in initdb ran for templates under tmp_path."""

    def count() -> int:
        calls = tmp_path / "initdb.calls"
        if not calls.exists():
            return 0
        return len(calls.read_text().splitlines())

    return count
