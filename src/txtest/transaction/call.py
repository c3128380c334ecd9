"""
The two shapes a transaction call can take:

    manager.transaction(callback)
    manager.transaction(isolation_level, callback)

They are resolved once, where the call enters the library, and runners only
ever see one of the two dataclasses below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from .interfaces import IsolationLevel, MissingCallbackError, TransactionError

if TYPE_CHECKING:
    from txtest.manager import Manager

Callback = Callable[["Manager"], Union[Awaitable[Any], Any]]


@dataclass(frozen=True)
class RunInTransaction:
    callback: Callback


@dataclass(frozen=True)
class RunIsolated:
    isolation_level: IsolationLevel
    callback: Optional[Callback] = None


TransactionCall = Union[RunInTransaction, RunIsolated]


def resolve_call(
    isolation_or_callback: Union[IsolationLevel, str, Callback],
    callback: Optional[Callback] = None,
) -> TransactionCall:
    if callable(isolation_or_callback):
        if callback is not None:
            raise TransactionError(
                "The isolation level must come before the callback"
            )
        return RunInTransaction(isolation_or_callback)

    try:
        isolation_level = IsolationLevel(isolation_or_callback)
    except ValueError as e:
        raise TransactionError(
            f"Unknown isolation level: {isolation_or_callback!r}"
        ) from e
    return RunIsolated(isolation_level, callback)


def require_callback(call: TransactionCall) -> Callback:
    if call.callback is None:
        raise MissingCallbackError(
            "Transaction method requires callback in second parameter if "
            "isolation level is supplied."
        )
    return call.callback


def isolation_level_of(call: TransactionCall) -> Optional[IsolationLevel]:
    if isinstance(call, RunIsolated):
        return call.isolation_level
    return None
