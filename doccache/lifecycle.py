from __future__ import annotations

import atexit
import itertools
import logging
import signal
import threading
import weakref
from typing import TYPE_CHECKING, Any

from .nodes import ObjectNode
from .ownership import bound_path, write_node

if TYPE_CHECKING:
    from .cache import DocumentCache
    from .settings import Settings

logger = logging.getLogger(__name__)


def flush_quietly(root: ObjectNode, lock: Any, timeout: float) -> bool:
    """
    Shutdown-time flush of one document.

    Waits at most `timeout` seconds for the document lock and never raises:
    a failed flush at exit is logged and dropped.
    """
    if not lock.acquire(timeout=timeout):
        logger.warning("CACHE SHUTDOWN: lock busy, skipped flush of %s", bound_path(root))
        return False
    try:
        write_node(root)
        return True
    except Exception as e:
        logger.warning("CACHE SHUTDOWN: failed to flush %s: %r", bound_path(root), e)
        return False
    finally:
        lock.release()


class CacheRegistry:
    """
    Process-wide set of live caches.

    A single atexit handler and a single SIGINT handler flush every live cache
    in registration order. Caches are held weakly.
    """

    def __init__(self) -> None:
        self._guard = threading.RLock()
        self._caches: dict[int, weakref.ref[DocumentCache]] = {}
        self._tokens = itertools.count(1)
        self._exit_installed = False
        self._sigint_installed = False
        self._previous_sigint: Any = None

    def register(self, cache: DocumentCache) -> int:
        with self._guard:
            token = next(self._tokens)
            self._caches[token] = weakref.ref(cache, lambda _ref, token=token: self._discard(token))
            self._install(cache.settings)
        return token

    def unregister(self, token: int) -> None:
        self._discard(token)

    def _discard(self, token: int) -> None:
        with self._guard:
            self._caches.pop(token, None)

    def live(self) -> list[DocumentCache]:
        with self._guard:
            refs = list(self._caches.values())
        caches = []
        for ref in refs:
            cache = ref()
            if cache is not None:
                caches.append(cache)
        return caches

    def flush_all(self, reason: str = "shutdown") -> int:
        flushed = 0
        for cache in self.live():
            if cache._shutdown_flush():
                flushed += 1
        logger.debug("CACHE SHUTDOWN (%s): flushed %d cache(s)", reason, flushed)
        return flushed

    def _install(self, settings: Settings) -> None:
        if not self._exit_installed:
            atexit.register(self._on_exit)
            self._exit_installed = True

        if self._sigint_installed or not settings.handle_sigint:
            return
        if threading.current_thread() is not threading.main_thread():
            # signal.signal only works from the main thread.
            return
        self._previous_sigint = signal.getsignal(signal.SIGINT)
        signal.signal(signal.SIGINT, self._on_sigint)
        self._sigint_installed = True

    def _on_exit(self) -> None:
        self.flush_all("exit")

    def _on_sigint(self, signum: int, frame: Any) -> None:
        self.flush_all("interrupt")
        previous = self._previous_sigint
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_IGN:
            return
        else:
            raise KeyboardInterrupt


REGISTRY = CacheRegistry()
