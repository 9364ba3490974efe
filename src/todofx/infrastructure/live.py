"""Production capabilities — structlog logger, system clock, SIGINT
cancellation, and an in-process TTL cache.

The live Database is :class:`todofx.infrastructure.sql_store.SqlTodoDatabase`.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import threading
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from todofx.effects.capabilities import MISS, Capabilities

if TYPE_CHECKING:
    from collections.abc import Iterator

    from todofx.effects.capabilities import Cache, Database


class StructlogLogger:
    """Logger capability that forwards to a structlog bound logger."""

    def __init__(self, name: str = "todofx.effects", **context: Any) -> None:
        self._log = structlog.get_logger(name).bind(**context)

    def info(self, msg: str, **fields: Any) -> None:
        self._log.info(msg, **fields)

    def warn(self, msg: str, **fields: Any) -> None:
        self._log.warning(msg, **fields)

    def error(self, msg: str, cause: BaseException | None = None, **fields: Any) -> None:
        if cause is not None:
            self._log.error(msg, exc_info=cause, **fields)
        else:
            self._log.error(msg, **fields)


class SystemClock:
    """Wall-clock time, always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class CancellationFlag:
    """Thread-safe, one-way cancellation token."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()


class SignalCancellation:
    """Cancellation capability whose token trips on SIGINT.

    Use :meth:`listening` inside the running event loop; outside it the
    token only trips through an explicit ``cancel()``.
    """

    def __init__(self) -> None:
        self._token = CancellationFlag()

    def signal(self) -> CancellationFlag:
        return self._token

    @contextlib.contextmanager
    def listening(self) -> Iterator[CancellationFlag]:
        loop = asyncio.get_running_loop()
        installed = True
        try:
            loop.add_signal_handler(signal.SIGINT, self._token.cancel)
        except (NotImplementedError, RuntimeError):
            # No loop signal support (Windows, non-main thread).
            installed = False
        try:
            yield self._token
        finally:
            if installed:
                loop.remove_signal_handler(signal.SIGINT)


class TtlCache:
    """In-process cache; entries expire at an absolute instant.

    Expiry is judged against the *now* the caller passes in (the Clock
    capability), never against wall time.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Any, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, now: datetime) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS
            value, expires_at = entry
            if expires_at <= now:
                del self._entries[key]
                return MISS
            return value

    def set(self, key: str, value: Any, expires_at: datetime) -> None:
        with self._lock:
            self._entries[key] = (value, expires_at)

    def invalidate(self, prefix: str = "") -> int:
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)


def live_capabilities(
    database: Database,
    *,
    cancellation: SignalCancellation | None = None,
    cache: Cache | None = None,
) -> Capabilities:
    """Bundle production capabilities around an open *database*."""
    return Capabilities(
        database=database,
        logger=StructlogLogger(),
        clock=SystemClock(),
        cancellation=cancellation if cancellation is not None else SignalCancellation(),
        cache=cache if cache is not None else TtlCache(),
    )
