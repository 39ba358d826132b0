"""Environment-driven settings.

Configuration comes from environment variables only. A `.env` file in the
working directory is read if present but never overrides variables that are
already set.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

CSV_PATH_ENV = "RISK_REGISTER_CSV"
LOG_LEVEL_ENV = "RISK_REGISTER_LOG_LEVEL"

DEFAULT_CSV_PATH = "risks.csv"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    csv_path: str
    log_level: int


def _parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    line = line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    value = value.strip()
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return key, value


def load_env_if_present(path: str = ".env") -> None:
    env_file = Path(path)
    if not env_file.is_file():
        return
    for raw in env_file.read_text(encoding="utf-8").splitlines():
        parsed = _parse_env_line(raw)
        if parsed and parsed[0] not in os.environ:
            os.environ[parsed[0]] = parsed[1]


def _log_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def get_settings() -> Settings:
    """Read settings from the environment; the app calls this once at startup."""
    load_env_if_present()
    return Settings(
        csv_path=os.environ.get(CSV_PATH_ENV) or DEFAULT_CSV_PATH,
        log_level=_log_level(os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL),
    )
