from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d_%H.%M.%S"


def normalize_path(path: str | os.PathLike[str]) -> Path:
    return Path(path).expanduser().absolute()


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def backup_path(path: Path, now: datetime | None = None) -> Path:
    """
    `{stem}_backup_{timestamp}{suffix}` next to `path`.

    Timestamps only have second granularity, so an existing backup gets a
    numeric suffix instead of being overwritten:
      settings_backup_2025-01-01_10.00.00.json
      settings_backup_2025-01-01_10.00.00_1.json
    """
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    base = f"{path.stem}_backup_{stamp}"
    candidate = path.with_name(f"{base}{path.suffix}")
    n = 1
    while candidate.exists():
        candidate = path.with_name(f"{base}_{n}{path.suffix}")
        n += 1
    return candidate
