from __future__ import annotations

import gc
import json
import logging
import signal
import threading

import pytest

from doccache import CacheRegistry, DocumentCache
from doccache.lifecycle import flush_quietly
from doccache.locks import GLOBAL_PATH_LOCKS


def test_flush_all_writes_every_live_cache(tmp_path, open_cache, registry):
    first = open_cache(tmp_path / "one.json")
    second = open_cache(tmp_path / "two.json")
    first["a"] = 1
    second["b"] = 2
    (tmp_path / "one.json").unlink()
    (tmp_path / "two.json").unlink()

    assert registry.flush_all() == 2

    assert json.loads((tmp_path / "one.json").read_text(encoding="utf-8"))["a"] == 1
    assert json.loads((tmp_path / "two.json").read_text(encoding="utf-8"))["b"] == 2


def test_flush_all_is_idempotent(tmp_path, open_cache, registry):
    path = tmp_path / "cache.json"
    open_cache(path)["k"] = [1, 2]

    registry.flush_all()
    first = path.read_bytes()
    registry.flush_all()

    assert path.read_bytes() == first


def test_registry_follows_registration_order_and_drops_closed(tmp_path, open_cache, registry):
    a = open_cache(tmp_path / "a.json")
    b = open_cache(tmp_path / "b.json")
    c = open_cache(tmp_path / "c.json")

    b.close()

    assert registry.live() == [a, c]


def test_collected_cache_leaves_registry_and_is_flushed(tmp_path, settings, registry):
    path = tmp_path / "cache.json"
    cache = DocumentCache(path, settings=settings, registry=registry)
    cache["k"] = "v"
    path.unlink()

    del cache
    gc.collect()

    assert registry.live() == []
    assert json.loads(path.read_text(encoding="utf-8"))["k"] == "v"


def test_shutdown_flush_gives_up_on_busy_lock(tmp_path, open_cache, caplog):
    path = tmp_path / "cache.json"
    cache = open_cache(path)
    lock = GLOBAL_PATH_LOCKS.lock_for(path)
    held = threading.Event()
    release = threading.Event()

    def _hold():
        with lock:
            held.set()
            release.wait(5)

    holder = threading.Thread(target=_hold)
    holder.start()
    held.wait(5)
    try:
        with caplog.at_level(logging.WARNING, logger="doccache.lifecycle"):
            assert cache._shutdown_flush() is False
        assert "lock busy" in caplog.text
    finally:
        release.set()
        holder.join()

    assert cache._shutdown_flush() is True


def test_shutdown_flush_never_raises(tmp_path, open_cache, caplog):
    path = tmp_path / "cache.json"
    cache = open_cache(path)
    path.unlink()
    path.mkdir()

    with caplog.at_level(logging.WARNING, logger="doccache.lifecycle"):
        assert flush_quietly(cache._root, cache._lock, 0.1) is False

    assert "failed to flush" in caplog.text
    path.rmdir()


def test_sigint_handler_flushes_then_defers_to_previous(tmp_path, open_cache, registry):
    path = tmp_path / "cache.json"
    open_cache(path)["k"] = 1
    path.unlink()
    calls = []
    registry._previous_sigint = lambda signum, frame: calls.append(signum)

    registry._on_sigint(signal.SIGINT, None)

    assert calls == [signal.SIGINT]
    assert path.exists()


def test_sigint_handler_raises_keyboard_interrupt_by_default(tmp_path, open_cache, registry):
    open_cache(tmp_path / "cache.json")
    registry._previous_sigint = signal.SIG_DFL

    with pytest.raises(KeyboardInterrupt):
        registry._on_sigint(signal.SIGINT, None)


def test_sigint_handler_installed_once_when_enabled(tmp_path, settings, monkeypatch):
    from dataclasses import replace

    installed = []
    monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.append((signum, handler)))
    registry = CacheRegistry()
    enabled = replace(settings, handle_sigint=True)

    first = DocumentCache(tmp_path / "a.json", settings=enabled, registry=registry)
    second = DocumentCache(tmp_path / "b.json", settings=enabled, registry=registry)

    assert installed == [(signal.SIGINT, registry._on_sigint)]
    first.close()
    second.close()


def test_sigint_handler_not_installed_when_disabled(tmp_path, open_cache, registry, monkeypatch):
    installed = []
    monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.append(signum))

    open_cache(tmp_path / "cache.json")

    assert installed == []
