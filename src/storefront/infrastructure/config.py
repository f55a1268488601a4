"""Runtime configuration, read from the environment.

Every setting has a default suitable for local development against the
Midtrans sandbox; only ``MIDTRANS_SERVER_KEY`` must be provided before
real payment sessions can be created.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigurationError(Exception):
    """An environment variable holds a value that cannot be used."""


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    access_key: str | None = None
    log_level: str = "INFO"
    log_json: bool = False
    midtrans_server_key: str = ""
    midtrans_is_production: bool = False
    midtrans_timeout: float = 10.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        log_level = env.get("STOREFRONT_LOG_LEVEL", "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"Unknown log level: {log_level!r}")

        return cls(
            data_dir=Path(env.get("STOREFRONT_DATA_DIR") or DEFAULT_DATA_DIR),
            access_key=env.get("STOREFRONT_ACCESS_KEY") or None,
            log_level=log_level,
            log_json=_flag(env, "STOREFRONT_LOG_JSON", False),
            midtrans_server_key=env.get("MIDTRANS_SERVER_KEY", ""),
            midtrans_is_production=_flag(env, "MIDTRANS_IS_PRODUCTION", False),
            midtrans_timeout=_positive_float(env, "MIDTRANS_TIMEOUT", 10.0),
        )


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value
