"""Runtime settings, overridable through PGTEST_* environment variables."""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

DEFAULT_PORT = 5432
DEFAULT_DBNAME = "postgres"
DEFAULT_POLL_ATTEMPTS = 20
DEFAULT_POLL_INTERVAL = 0.05
TEMPLATE_DIR_NAME = "pgtestdata"


def default_template_dir() -> Path:
    return Path(tempfile.gettempdir()) / TEMPLATE_DIR_NAME


@dataclass(frozen=True)
class Settings:
    """Where the engine lives and how instances are laid out.

    ``initdb`` and ``postgres`` are explicit executable paths; when left as
    None they are looked up with :func:`pgtest.executables.find_executable`.
    """

    initdb: str | None = None
    postgres: str | None = None
    template_dir: Path = field(default_factory=default_template_dir)
    temp_root: Path | None = None
    port: int = DEFAULT_PORT
    dbname: str = DEFAULT_DBNAME
    poll_attempts: int = DEFAULT_POLL_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self):
        if self.poll_attempts < 1:
            raise ValueError(f"poll_attempts must be at least 1, got {self.poll_attempts}")
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must not be negative, got {self.poll_interval}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        for var, name in (("PGTEST_INITDB", "initdb"), ("PGTEST_POSTGRES", "postgres")):
            if env.get(var):
                kwargs[name] = env[var]
        if env.get("PGTEST_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(env["PGTEST_TEMPLATE_DIR"])
        if env.get("PGTEST_TMPDIR"):
            kwargs["temp_root"] = Path(env["PGTEST_TMPDIR"])
        if env.get("PGTEST_DBNAME"):
            kwargs["dbname"] = env["PGTEST_DBNAME"]

        for var, name, kind in (
            ("PGTEST_PORT", "port", int),
            ("PGTEST_POLL_ATTEMPTS", "poll_attempts", int),
            ("PGTEST_POLL_INTERVAL", "poll_interval", float),
        ):
            raw = env.get(var)
            if not raw:
                continue
            try:
                kwargs[name] = kind(raw)
            except ValueError:
                raise ValueError(f"{var} must be {kind.__name__}, got {raw!r}") from None

        return cls(**kwargs)
