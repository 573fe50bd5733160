"""Appending setting overrides to postgresql.conf.

postgres reads the file top to bottom and the last occurrence of a setting
wins, so overrides are appended rather than edited in place.
"""

import os
from pathlib import Path
from typing import Mapping

CONF_NAME = "postgresql.conf"


def quote_value(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def format_overrides(overrides: Mapping[str, str]) -> str:
    lines = [f"{key} = {quote_value(value)}" for key, value in overrides.items()]
    return "\n" + "\n".join(lines) + "\n"


def append_overrides(data_dir: Path, overrides: Mapping[str, str]) -> None:
    """Append overrides to ``<data_dir>/postgresql.conf``; the file must exist."""
    fd = os.open(data_dir / CONF_NAME, os.O_WRONLY | os.O_APPEND)
    with open(fd, "w", encoding="utf-8") as f:
        f.write(format_overrides(overrides))
