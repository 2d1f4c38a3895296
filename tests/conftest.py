from __future__ import annotations

from pathlib import Path
import sys
from typing import Callable, Iterator

import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from doccache import CacheRegistry, DocumentCache, Settings  # noqa: E402


@pytest.fixture(autouse=True)
def no_sigint_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests never replace the interpreter's Ctrl+C handler."""
    monkeypatch.setenv("DOCCACHE_HANDLE_SIGINT", "0")


@pytest.fixture
def settings() -> Settings:
    return Settings(handle_sigint=False, fsync=False, shutdown_lock_timeout=0.1)


@pytest.fixture
def registry() -> CacheRegistry:
    return CacheRegistry()


@pytest.fixture
def open_cache(settings: Settings, registry: CacheRegistry) -> Iterator[Callable[[Path], DocumentCache]]:
    """
    Factory for caches bound to a private registry; closes them at teardown.
    """
    opened: list[DocumentCache] = []

    def _open(path: Path) -> DocumentCache:
        cache = DocumentCache(path, settings=settings, registry=registry)
        opened.append(cache)
        return cache

    yield _open

    for cache in opened:
        cache.close()
