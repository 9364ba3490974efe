"""Cross-cutting decorators — ``Effect[T] -> Effect[T]``.

Each decorator adds side behavior around an effect without touching its
success value or its failure. Recommended stacking, innermost first::

    with_transaction -> with_cache -> with_metrics -> with_logging -> with_timeout

:func:`todofx.services.pipeline.decorate` applies exactly this order.

INVARIANT: A decorator never replaces, wraps, or drops a failure. The only
failure-adjacent behavior is the rollback in :func:`with_transaction`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING, Any, TypeVar

from todofx.effects.capabilities import MISS, Capability
from todofx.effects.core import (
    Effect,
    attempt,
    bind,
    call,
    fmap,
    from_outcome,
    log_error,
    log_info,
    log_warn,
    now,
    pure,
    requires,
    timeout,
)
from todofx.effects.outcome import Failure

if TYPE_CHECKING:
    from todofx.effects.outcome import Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decorator = Callable[[Effect[T]], Effect[T]]


def _declaring(inner: Effect[Any], *extra: Capability) -> frozenset[str]:
    return inner.requirements | {c.value for c in extra}


# ── Logging ──────────────────────────────────────────────────────────


def with_logging(start_msg: str, success_msg: Callable[[T], str]) -> Decorator[T]:
    """Log *start_msg* before and ``success_msg(value)`` after the effect.

    A failure is noted at warn level with its code and then returned as-is.
    """

    def decorate(effect: Effect[T]) -> Effect[T]:
        def finish(outcome: Outcome[T]) -> Effect[T]:
            if isinstance(outcome, Failure):
                note = log_warn(f"{start_msg} failed", code=outcome.error.code)
            else:
                note = log_info(success_msg(outcome.value))
            return bind(note, lambda _: from_outcome(outcome))

        return bind(
            log_info(start_msg),
            lambda _: bind(attempt(effect), finish),
            declares=_declaring(effect, Capability.LOGGER),
        )

    return decorate


# ── Metrics ──────────────────────────────────────────────────────────


def with_metrics(name: str) -> Decorator[T]:
    """Time the effect with the Clock and log ``Metrics - name: Nms``.

    Logged on success and on failure; the outcome passes through unchanged.
    """

    def decorate(effect: Effect[T]) -> Effect[T]:
        def measure(started: Any) -> Effect[T]:
            def report(outcome: Outcome[T]) -> Effect[T]:
                def emit(finished: Any) -> Effect[T]:
                    elapsed_ms = round((finished - started).total_seconds() * 1000, 2)
                    note = log_info(
                        f"Metrics - {name}: {elapsed_ms}ms",
                        metric=name,
                        duration_ms=elapsed_ms,
                        ok=outcome.ok,
                    )
                    return bind(note, lambda _: from_outcome(outcome))

                return bind(now(), emit)

            return bind(attempt(effect), report)

        return bind(
            now(),
            measure,
            declares=_declaring(effect, Capability.CLOCK, Capability.LOGGER),
        )

    return decorate


# ── Transaction ──────────────────────────────────────────────────────


def with_transaction() -> Decorator[T]:
    """Bracket the effect in begin/commit/rollback on the Database.

    Success commits, then propagates. Any failure (domain, Fault, or
    Cancelled) rolls back, then propagates the original failure; a failed
    commit rolls back and propagates the commit failure. When a transaction
    is already open, the effect runs inside it unwrapped, so only the
    outermost wrapper owns the bracket.

    ``begin`` and ``rollback`` are not cancellable: a cancel or a deadline
    surfaces inside the bracket, where it is rolled back like any failure.
    """

    def decorate(effect: Effect[T]) -> Effect[T]:
        def bracket(db: Any) -> Effect[T]:
            if db.in_transaction:
                return effect
            return bind(
                call(Capability.DATABASE, lambda d, _t: d.begin(), cancellable=False),
                lambda _: bind(attempt(effect), settle),
            )

        def settle(outcome: Outcome[T]) -> Effect[T]:
            if isinstance(outcome, Failure):
                return _rollback_then(outcome)

            def committed(done: Outcome[None]) -> Effect[T]:
                if isinstance(done, Failure):
                    return _rollback_then(done)
                return from_outcome(outcome)

            return bind(attempt(call(Capability.DATABASE, lambda d, _t: d.commit())), committed)

        return bind(
            requires(Capability.DATABASE),
            bracket,
            declares=_declaring(effect, Capability.DATABASE),
        )

    return decorate


def _rollback_then(original: Failure) -> Effect[Any]:
    """Roll back, then re-raise *original* whatever the rollback did."""
    rollback = call(Capability.DATABASE, lambda d, _t: d.rollback(), cancellable=False)

    def report(rolled: Outcome[Any]) -> Effect[Any]:
        if isinstance(rolled, Failure):
            note = log_error("Transaction rollback failed", code=rolled.error.code)
            return bind(note, lambda _: from_outcome(original))
        return from_outcome(original)

    return bind(attempt(rollback), report)


# ── Cache-aside ──────────────────────────────────────────────────────


def with_cache(key: str, ttl: timedelta | float) -> Decorator[T]:
    """Serve *key* from the Cache while fresh; otherwise run and store.

    A hit skips the wrapped effect entirely, side effects included.
    Cache errors degrade to a miss. Failures are never stored.
    """
    ttl = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)

    def decorate(effect: Effect[T]) -> Effect[T]:
        def lookup(ctx: tuple[Any, Any]) -> Effect[T]:
            cache, current = ctx
            try:
                hit = cache.get(key, current)
            except Exception as exc:
                logger.debug("Cache lookup failed for %s", key, exc_info=True)
                return bind(
                    log_warn("Cache lookup failed; treating as miss", key=key, error=str(exc)),
                    lambda _: _fill(cache, effect),
                )
            if hit is not MISS:
                return bind(log_info(f"Cache hit: {key}", key=key), lambda _: pure(hit))
            return _fill(cache, effect)

        def _fill(cache: Any, inner: Effect[T]) -> Effect[T]:
            return bind(attempt(inner), lambda outcome: _store(cache, outcome))

        def _store(cache: Any, outcome: Outcome[T]) -> Effect[T]:
            if isinstance(outcome, Failure):
                return from_outcome(outcome)

            def put(current: Any) -> Effect[T]:
                try:
                    cache.set(key, outcome.value, current + ttl)
                except Exception as exc:
                    logger.debug("Cache store failed for %s", key, exc_info=True)
                    return bind(
                        log_warn("Cache store failed", key=key, error=str(exc)),
                        lambda _: from_outcome(outcome),
                    )
                return from_outcome(outcome)

            return bind(now(), put)

        context = bind(requires(Capability.CACHE), lambda cache: fmap(now(), lambda t: (cache, t)))
        return bind(
            context,
            lookup,
            declares=_declaring(effect, Capability.CACHE, Capability.CLOCK, Capability.LOGGER),
        )

    return decorate


def invalidating(prefix: str) -> Decorator[T]:
    """Drop cache entries under *prefix* after the effect succeeds."""

    def decorate(effect: Effect[T]) -> Effect[T]:
        def drop(value: T) -> Effect[T]:
            def clear(cache: Any) -> Effect[T]:
                try:
                    cache.invalidate(prefix)
                except Exception as exc:
                    logger.debug("Cache invalidation failed for %s", prefix, exc_info=True)
                    return bind(
                        log_warn("Cache invalidation failed", prefix=prefix, error=str(exc)),
                        lambda _: pure(value),
                    )
                return pure(value)

            return bind(requires(Capability.CACHE), clear)

        return bind(
            effect, drop, declares=_declaring(effect, Capability.CACHE, Capability.LOGGER)
        )

    return decorate


# ── Timeout ──────────────────────────────────────────────────────────


def with_timeout(seconds: float) -> Decorator[T]:
    """Fail with ``DeadlineExceeded`` when the effect runs past *seconds*."""

    def decorate(effect: Effect[T]) -> Effect[T]:
        return timeout(effect, seconds)

    return decorate
