from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, TypeVar

from .config import AppSettings
from .session import RaffleSession

T = TypeVar("T")


class EventLoopThread:
    """Own an asyncio loop on a daemon thread and run callables on it.

    Request threads hand work to the loop with ``call``; the loop thread is the
    only one that ever touches session state.
    """

    def __init__(self, name: str = "luckydraw-loop", logger: Optional[logging.Logger] = None) -> None:
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._logger = logger or logging.getLogger("luckydraw.runtime")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._loop = asyncio.new_event_loop()
        ready = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(ready,), name=self._name, daemon=True)
        self._thread.start()
        ready.wait()
        self._logger.debug("Event loop thread %s started", self._name)

    def _run(self, ready: threading.Event) -> None:
        loop = self._loop
        asyncio.set_event_loop(loop)
        loop.call_soon(ready.set)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def call(self, fn: Callable[..., T], *args: Any, timeout: float = 10.0) -> T:
        if not self.running:
            raise RuntimeError("event loop thread is not running")

        async def invoke() -> T:
            return fn(*args)

        future = asyncio.run_coroutine_threadsafe(invoke(), self._loop)
        return future.result(timeout)

    def stop(self, timeout: float = 2.0) -> None:
        if not self.running:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        self._thread = None
        self._logger.debug("Event loop thread %s stopped", self._name)


class SessionRegistry:
    """Sessions by id. Only used from the event loop thread."""

    def __init__(
        self,
        settings: AppSettings,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._sessions: Dict[str, RaffleSession] = {}
        self._logger = logger or logging.getLogger("luckydraw.runtime")

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> RaffleSession:
        self.sweep()
        session = self._sessions.get(session_id)
        if session is None:
            session = RaffleSession(self._settings, session_id=session_id, clock=self._clock)
            self._sessions[session_id] = session
            self._logger.info("Opened session %s", session_id)
        return session

    def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        self._logger.info("Closed session %s", session_id)
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        ttl = self._settings.session_ttl_seconds
        stale = [sid for sid, s in self._sessions.items() if now - s.last_active > ttl]
        for session_id in stale:
            self.close(session_id)
        return len(stale)


class SessionRuntime:
    def __init__(self, settings: AppSettings) -> None:
        self.loop = EventLoopThread()
        self.registry = SessionRegistry(settings)

    def start(self) -> None:
        self.loop.start()

    def stop(self) -> None:
        if self.loop.running:
            self.loop.call(self.registry.close_all)
        self.loop.stop()

    def with_session(self, session_id: str, fn: Callable[[RaffleSession], T]) -> T:
        return self.loop.call(lambda: fn(self.registry.get(session_id)))

    def close_session(self, session_id: str) -> bool:
        return self.loop.call(self.registry.close, session_id)

    def session_count(self) -> int:
        return self.loop.call(len, self.registry)
