"""
Configuration
=============

Defaults for a report run. Every field can be overridden from the
environment (`SHED_<FIELD>`), and the CLI overrides both.
"""

from __future__ import annotations
from dataclasses import dataclass
import os
from typing import Mapping, Optional

from .errors import InvalidArgumentError

DATA_URL = "https://d396qusza40orc.cloudfront.net/repdata%2Fdata%2FStormData.csv.bz2"
DATA_FILE = "StormData.csv.bz2"


@dataclass
class Settings:
    data_url: str = DATA_URL
    data_dir: str = "data"
    data_file: str = DATA_FILE
    top_n: int = 10
    # seconds, for the HTTP download
    timeout: int = 120
    on_error: str = "raise"
    log_dir: Optional[str] = None
    log_level: str = "INFO"

    @property
    def data_path(self) -> str:
        return os.path.join(self.data_dir, self.data_file)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings, taking overrides from SHED_* variables."""
        env = os.environ if environ is None else environ
        s = cls()
        for name in ("data_url", "data_dir", "data_file", "on_error", "log_dir", "log_level"):
            val = env.get(f"SHED_{name.upper()}")
            if val:
                setattr(s, name, val)
        for name in ("top_n", "timeout"):
            val = env.get(f"SHED_{name.upper()}")
            if val:
                setattr(s, name, _positive_int(f"SHED_{name.upper()}", val))
        return s


def _positive_int(name: str, raw: str) -> int:
    try:
        v = int(raw)
    except ValueError as e:
        raise InvalidArgumentError(f"{name} must be an integer, got {raw!r}") from e
    if v <= 0:
        raise InvalidArgumentError(f"{name} must be positive, got {v}")
    return v
