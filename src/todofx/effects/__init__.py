"""Capability-scoped effect pipeline.

Effects describe computations over a bundle of capabilities (Database,
Logger, Clock, Cancellation, Cache). They short-circuit on the first typed
failure and are decorated for logging, metrics, transactions, caching and
deadlines without changing their results.

This layer depends only on pydantic and the standard library. It must
never import from services, infrastructure, commands, or config.
"""

from todofx.effects.capabilities import (
    MISS,
    Cache,
    Cancellation,
    CancellationToken,
    Capabilities,
    Capability,
    Clock,
    Database,
    Logger,
    MissingCapabilityError,
)
from todofx.effects.core import (
    Effect,
    attempt,
    bind,
    call,
    db_call,
    do,
    fail,
    fmap,
    from_optional,
    from_outcome,
    log_error,
    log_info,
    log_warn,
    now,
    pure,
    requires,
    suspend,
    timeout,
    validate,
)
from todofx.effects.outcome import (
    Cancelled,
    DeadlineExceeded,
    Failure,
    Fault,
    FieldError,
    NotFound,
    Outcome,
    Success,
    TodoError,
    ValidationFailed,
)
from todofx.effects.runner import run, run_sync

__all__ = [
    "MISS",
    "Cache",
    "Cancellation",
    "CancellationToken",
    "Cancelled",
    "Capabilities",
    "Capability",
    "Clock",
    "Database",
    "DeadlineExceeded",
    "Effect",
    "Failure",
    "Fault",
    "FieldError",
    "Logger",
    "MissingCapabilityError",
    "NotFound",
    "Outcome",
    "Success",
    "TodoError",
    "ValidationFailed",
    "attempt",
    "bind",
    "call",
    "db_call",
    "do",
    "fail",
    "fmap",
    "from_optional",
    "from_outcome",
    "log_error",
    "log_info",
    "log_warn",
    "now",
    "pure",
    "requires",
    "run",
    "run_sync",
    "suspend",
    "timeout",
    "validate",
]
