"""Effect values — inert descriptions of capability-scoped computations.

An :class:`Effect` is built from a handful of node types and does nothing
until handed to :func:`todofx.effects.runner.run`:

- :class:`Pure` / :class:`Fail` — finish immediately.
- :class:`Requires` — yields a bundled capability.
- :class:`Call` — awaits an async capability call (the only suspension point).
- :class:`Bind` — sequencing; a failure skips every later continuation.
- :class:`Attempt` — materializes the inner outcome so decorators can react
  to failures without changing them.
- :class:`Suspend` — builds an effect lazily at run time.
- :class:`Timeout` — races the inner effect against a deadline.

Effects are immutable and re-runnable. The :func:`do` decorator offers
generator-based notation on top of :func:`bind`::

    @do
    def rename(todo_id: int, title: str):
        todo = yield get_todo(todo_id)
        return todo.model_copy(update={"title": title})
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Generator, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from todofx.effects.capabilities import Capability
from todofx.effects.outcome import FieldError, Success, TodoError, ValidationFailed

if TYPE_CHECKING:
    from datetime import datetime

    from todofx.effects.capabilities import CancellationToken
    from todofx.effects.outcome import Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

_NONE: frozenset[str] = frozenset()


class Effect(Generic[T]):
    """Base for all effect nodes."""

    @property
    def requirements(self) -> frozenset[str]:
        """Capability names this effect declares up front."""
        return _NONE

    def bind(self, fn: Callable[[T], Effect[U]]) -> Effect[U]:
        return bind(self, fn)

    def map(self, fn: Callable[[T], U]) -> Effect[U]:
        return fmap(self, fn)


# ---------------------------------------------------------------------------
# Node types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pure(Effect[T]):
    value: T


@dataclass(frozen=True)
class Fail(Effect[Any]):
    error: TodoError


@dataclass(frozen=True)
class Requires(Effect[Any]):
    name: str

    @property
    def requirements(self) -> frozenset[str]:
        return frozenset({self.name})


@dataclass(frozen=True)
class Call(Effect[T]):
    """Await ``fn(capability, token)`` for the named capability."""

    name: str
    fn: Callable[[Any, CancellationToken | None], Awaitable[T]]
    cancellable: bool = True

    @property
    def requirements(self) -> frozenset[str]:
        return frozenset({self.name})


@dataclass(frozen=True)
class Bind(Effect[U]):
    inner: Effect[Any]
    fn: Callable[[Any], Effect[U]]
    declared: frozenset[str] = field(default=_NONE)
    _requirements: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Computed once per node so deep chains never recurse when checked.
        object.__setattr__(self, "_requirements", self.inner.requirements | self.declared)

    @property
    def requirements(self) -> frozenset[str]:
        return self._requirements


@dataclass(frozen=True)
class Attempt(Effect[Any]):
    inner: Effect[Any]

    @property
    def requirements(self) -> frozenset[str]:
        return self.inner.requirements


@dataclass(frozen=True)
class Suspend(Effect[T]):
    thunk: Callable[[], Effect[T]]
    declared: frozenset[str] = field(default=_NONE)

    @property
    def requirements(self) -> frozenset[str]:
        return self.declared


@dataclass(frozen=True)
class Timeout(Effect[T]):
    inner: Effect[T]
    seconds: float

    @property
    def requirements(self) -> frozenset[str]:
        return self.inner.requirements


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------


def pure(value: T) -> Effect[T]:
    """Succeed immediately with *value*."""
    return Pure(value)


def fail(error: TodoError) -> Effect[Any]:
    """Fail immediately with *error*."""
    return Fail(error)


def requires(name: str) -> Effect[Any]:
    """Yield the bundled capability registered under *name*."""
    return Requires(str(name))


def call(
    name: str,
    fn: Callable[[Any, CancellationToken | None], Awaitable[T]],
    *,
    cancellable: bool = True,
) -> Effect[T]:
    """Await an asynchronous capability call.

    *fn* receives the resolved capability and the execution's cancellation
    token (``None`` when no Cancellation capability is bundled). A
    non-cancellable call still runs after cancellation; rollbacks need that.
    """
    return Call(str(name), fn, cancellable)


def bind(
    effect: Effect[T],
    fn: Callable[[T], Effect[U]],
    *,
    declares: Iterable[str] = (),
) -> Effect[U]:
    """Run *effect*, then feed its value to *fn*.

    *declares* adds capability names that the continuation will need, so
    the runner can verify them before any step runs.
    """
    return Bind(effect, fn, frozenset(str(n) for n in declares))


def fmap(effect: Effect[T], fn: Callable[[T], U]) -> Effect[U]:
    """Transform the success value of *effect*."""
    return Bind(effect, lambda value: Pure(fn(value)))


def attempt(effect: Effect[T]) -> Effect[Outcome[T]]:
    """Run *effect* and succeed with its :class:`Outcome`, whatever it is."""
    return Attempt(effect)


def from_outcome(outcome: Outcome[T]) -> Effect[T]:
    """Turn a materialized outcome back into an effect."""
    if isinstance(outcome, Success):
        return Pure(outcome.value)
    return Fail(outcome.error)


def suspend(thunk: Callable[[], Effect[T]], *, declares: Iterable[str] = ()) -> Effect[T]:
    """Defer building an effect until it is run."""
    return Suspend(thunk, frozenset(str(n) for n in declares))


def timeout(effect: Effect[T], seconds: float) -> Effect[T]:
    return Timeout(effect, seconds)


def from_optional(value: T | None, error: TodoError) -> Effect[T]:
    """``pure(value)``, or ``fail(error)`` when *value* is None."""
    if value is None:
        return Fail(error)
    return Pure(value)


def validate(value: T, *rules: Callable[[T], FieldError | None]) -> Effect[T]:
    """Apply every rule to *value* and accumulate the violations.

    All rules run even after one fails, so the resulting
    :class:`ValidationFailed` lists every broken field.
    """
    errors = [err for err in (rule(value) for rule in rules) if err is not None]
    if errors:
        return Fail(ValidationFailed.from_errors(errors))
    return Pure(value)


# ---------------------------------------------------------------------------
# Generator notation
# ---------------------------------------------------------------------------

EffectGenerator = Generator[Effect[Any], Any, T]


def _drive(gen: EffectGenerator[T], sent: Any) -> Effect[T]:
    try:
        step = gen.send(sent)
    except StopIteration as stop:
        return Pure(stop.value)
    if not isinstance(step, Effect):
        gen.close()
        msg = f"do-block yielded {type(step).__name__}, expected an Effect"
        raise TypeError(msg)
    return Bind(step, lambda value: _drive(gen, value))


def do(
    func: Callable[..., EffectGenerator[T]] | None = None,
    *,
    requires: Iterable[str] = (),
) -> Any:
    """Turn a generator function into a function returning an effect.

    Each ``yield`` binds an effect and receives its value; ``return`` ends
    the block with :func:`pure`. A fresh generator is created every time
    the effect runs, so the returned effects stay re-runnable.

    ``@do(requires=[...])`` declares capabilities the block uses so that
    a bundle missing them is rejected before the block starts.
    """
    declared = frozenset(str(n) for n in requires)

    def decorate(fn: Callable[..., EffectGenerator[T]]) -> Callable[..., Effect[T]]:
        @functools.wraps(fn)
        def build(*args: Any, **kwargs: Any) -> Effect[T]:
            return Suspend(lambda: _drive(fn(*args, **kwargs), None), declared)

        return build

    if func is not None:
        return decorate(func)
    return decorate


# ---------------------------------------------------------------------------
# Capability accessors
# ---------------------------------------------------------------------------


def _log(level: str, msg: str, fields: dict[str, Any]) -> Effect[None]:
    def emit(log: Any) -> Effect[None]:
        try:
            getattr(log, level)(msg, **fields)
        except Exception:
            logger.debug("Logger capability raised for %r", msg, exc_info=True)
        return Pure(None)

    return Bind(Requires(Capability.LOGGER.value), emit)


def log_info(msg: str, **fields: Any) -> Effect[None]:
    """Log through the Logger capability. Never fails the enclosing effect."""
    return _log("info", msg, fields)


def log_warn(msg: str, **fields: Any) -> Effect[None]:
    return _log("warn", msg, fields)


def log_error(msg: str, cause: BaseException | None = None, **fields: Any) -> Effect[None]:
    return _log("error", msg, {"cause": cause, **fields})


def now() -> Effect[datetime]:
    """Current time from the Clock capability."""
    return fmap(Requires(Capability.CLOCK.value), lambda clock: clock.now())


def db_call(fn: Callable[[Any, CancellationToken | None], Awaitable[T]]) -> Effect[T]:
    """Shorthand for a :func:`call` against the Database capability."""
    return Call(Capability.DATABASE.value, fn)
