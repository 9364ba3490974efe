"""Effect runner — interprets an effect against a capability bundle.

The runner is iterative: :class:`Bind` continuations are kept on an
explicit stack, so arbitrarily long chains never approach the recursion
limit. Only :class:`~todofx.effects.core.Attempt` and
:class:`~todofx.effects.core.Timeout` evaluate a nested effect, and those
nest only as deep as the decorator stack.

Guarantees:

- Declared requirements are checked before the first step runs; a gap
  raises :class:`MissingCapabilityError`.
- Capabilities are resolved lazily, at the node that needs them.
- The first failure discards every pending continuation.
- The cancellation token is taken from the Cancellation capability once
  per execution and checked before every capability call.
- A deadline is cooperative: it interrupts the capability call in flight
  and fails later cancellable calls, but pending continuations still run.
  Non-cancellable calls such as rollbacks are never cut short.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from todofx.effects.capabilities import MissingCapabilityError
from todofx.effects.core import (
    Attempt,
    Bind,
    Call,
    Effect,
    Fail,
    Pure,
    Requires,
    Suspend,
    Timeout,
)
from todofx.effects.outcome import Cancelled, DeadlineExceeded, Failure, Fault, Success

if TYPE_CHECKING:
    from collections.abc import Callable

    from todofx.effects.capabilities import Capabilities, CancellationToken
    from todofx.effects.outcome import Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


@dataclass(frozen=True)
class _Deadline:
    """An absolute event-loop time and the timeout it came from."""

    when: float
    seconds: float

    def passed(self) -> bool:
        return asyncio.get_running_loop().time() >= self.when


class _Execution:
    """State for one run: the bundle, its token and the active deadline."""

    def __init__(self, capabilities: Capabilities) -> None:
        self._caps = capabilities
        self._token: CancellationToken | None = _UNSET
        self._deadline: _Deadline | None = None

    @property
    def token(self) -> CancellationToken | None:
        if self._token is _UNSET:
            source = self._caps.cancellation
            self._token = source.signal() if source is not None else None
        return self._token

    async def evaluate(self, effect: Effect[Any]) -> Outcome[Any]:
        pending: list[Callable[[Any], Effect[Any]]] = []
        current = effect

        while True:
            if isinstance(current, Bind):
                pending.append(current.fn)
                current = current.inner
                continue

            if isinstance(current, Suspend):
                built = self._step(current.thunk)
                if isinstance(built, Failure):
                    return built
                current = built
                continue

            if isinstance(current, Pure):
                value = current.value
            elif isinstance(current, Fail):
                return Failure(current.error)
            elif isinstance(current, Requires):
                value = self._caps.resolve(current.name)
            elif isinstance(current, Call):
                outcome = await self._call(current)
                if isinstance(outcome, Failure):
                    return outcome
                value = outcome.value
            elif isinstance(current, Attempt):
                value = await self.evaluate(current.inner)
            elif isinstance(current, Timeout):
                outcome = await self._race(current)
                if isinstance(outcome, Failure):
                    return outcome
                value = outcome.value
            else:
                msg = f"Not an effect: {current!r}"
                raise TypeError(msg)

            if not pending:
                return Success(value)
            nxt = pending.pop()
            built = self._step(lambda: nxt(value))
            if isinstance(built, Failure):
                return built
            current = built

    def _step(self, thunk: Callable[[], Effect[Any]]) -> Effect[Any] | Failure:
        """Run a pure continuation; unexpected exceptions become a Fault."""
        try:
            built = thunk()
        except MissingCapabilityError:
            raise
        except Exception as exc:
            logger.debug("Continuation raised", exc_info=True)
            return Failure(Fault.from_exception(exc))
        if not isinstance(built, Effect):
            exc = TypeError(f"Continuation returned {type(built).__name__}, expected an Effect")
            return Failure(Fault.from_exception(exc))
        return built

    async def _call(self, node: Call[Any]) -> Outcome[Any]:
        capability = self._caps.resolve(node.name)
        token = self.token
        deadline = self._deadline if node.cancellable else None
        if node.cancellable and token is not None and token.is_cancelled:
            return Failure(Cancelled())
        if deadline is not None and deadline.passed():
            return Failure(DeadlineExceeded.after(deadline.seconds))
        try:
            async with asyncio.timeout_at(deadline.when if deadline else None) as scope:
                value = await node.fn(capability, token)
        except TimeoutError as exc:
            if deadline is not None and scope.expired():
                return Failure(DeadlineExceeded.after(deadline.seconds))
            logger.debug("Capability %s raised", node.name, exc_info=True)
            return Failure(Fault.from_exception(exc))
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            return Failure(Cancelled())
        except Exception as exc:
            logger.debug("Capability %s raised", node.name, exc_info=True)
            return Failure(Fault.from_exception(exc))
        return Success(value)

    async def _race(self, node: Timeout[Any]) -> Outcome[Any]:
        """Evaluate the inner effect under a deadline.

        The deadline interrupts the capability call in flight and refuses
        later cancellable calls, while the surrounding continuations still
        run. A transaction bracket therefore rolls back and metrics still
        report before ``DeadlineExceeded`` reaches the caller.
        """
        loop = asyncio.get_running_loop()
        enclosing = self._deadline
        mine = _Deadline(loop.time() + node.seconds, node.seconds)
        if enclosing is None or mine.when < enclosing.when:
            self._deadline = mine
        try:
            return await self.evaluate(node.inner)
        finally:
            self._deadline = enclosing


async def run(effect: Effect[T], capabilities: Capabilities) -> Outcome[T]:
    """Execute *effect* against *capabilities*.

    Raises:
        MissingCapabilityError: The bundle lacks a declared or reached
            capability. Raised before any step when declared up front.
    """
    capabilities.check(effect.requirements)
    return await _Execution(capabilities).evaluate(effect)


def run_sync(effect: Effect[T], capabilities: Capabilities) -> Outcome[T]:
    """Blocking convenience wrapper around :func:`run` (own event loop)."""
    return asyncio.run(run(effect, capabilities))
