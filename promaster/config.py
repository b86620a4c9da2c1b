"""Runtime settings read from the environment.

Everything is optional; unset variables fall back to the defaults below so
the engine runs out of the box in development.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    progress_interval: float = 0.1
    progress_cap: int = 90
    analysis_delay: float = 2.5
    output_dir: str = tempfile.gettempdir()
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings() -> Settings:
    """Build a fresh Settings from the current environment."""

    progress_cap = _int_env("PROMASTER_PROGRESS_CAP", 90)
    if not 0 <= progress_cap < 100:
        raise ValueError(f"PROMASTER_PROGRESS_CAP must be within [0, 100), got {progress_cap}")

    return Settings(
        progress_interval=_float_env("PROMASTER_PROGRESS_INTERVAL", 0.1),
        progress_cap=progress_cap,
        analysis_delay=_float_env("PROMASTER_ANALYSIS_DELAY", 2.5),
        output_dir=os.getenv("PROMASTER_OUTPUT_DIR") or tempfile.gettempdir(),
        log_level=(os.getenv("PROMASTER_LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
