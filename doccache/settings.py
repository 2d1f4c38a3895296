from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Sequence

from dotenv import load_dotenv

from .arguments import Arguments


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    # Serialization
    indent: int = 2
    fsync: bool = True

    # Shutdown
    handle_sigint: bool = True
    shutdown_lock_timeout: float = 2.0

    # Logging
    log_level: str = "WARNING"
    log_file: str | None = None


def get_settings(args: Sequence[str] | None = None, env_file: str | None = None) -> Settings:
    if env_file:
        # Values already present in the environment win over the file.
        load_dotenv(env_file, override=False)

    indent = _env_int("DOCCACHE_INDENT", 2)
    fsync = _env_bool("DOCCACHE_FSYNC", True)
    handle_sigint = _env_bool("DOCCACHE_HANDLE_SIGINT", True)
    shutdown_lock_timeout = _env_float("DOCCACHE_SHUTDOWN_TIMEOUT", 2.0)
    log_level = os.getenv("DOCCACHE_LOG_LEVEL", "WARNING").strip().upper()
    log_file = os.getenv("DOCCACHE_LOG_FILE") or None

    # Explicit launch arguments override the environment.
    if args is not None:
        argv = Arguments(args)
        raw_indent = argv.try_get_argument("--cache-indent")
        if raw_indent is not None:
            indent = int(raw_indent)
        raw_level = argv.try_get_argument("--cache-log-level")
        if raw_level is not None:
            log_level = raw_level.strip().upper()
        if argv.has_argument("-cache-no-sigint"):
            handle_sigint = False

    return Settings(
        indent=indent,
        fsync=fsync,
        handle_sigint=handle_sigint,
        shutdown_lock_timeout=shutdown_lock_timeout,
        log_level=log_level,
        log_file=log_file,
    )
