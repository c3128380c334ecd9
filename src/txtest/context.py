from __future__ import annotations

import logging
from enum import Enum, auto
from inspect import isawaitable
from typing import Any, Callable, Optional

from txtest.base.interface import BaseInterface
from txtest.exception import AlreadyStartedError, NotStartedError
from txtest.handle import SharedHandle
from txtest.registry import Strategies, StrategyRegistry
from txtest.transaction.strategy import (
    FixedResourceFactory,
    ForcedTransactionRunner,
)

logger = logging.getLogger(__name__)


class ContextState(Enum):
    IDLE = auto()
    STARTING = auto()
    ACTIVE = auto()
    FINISHING = auto()


class TransactionalTestContext:
    """Runs a test inside one database transaction that is always rolled
    back.

    While the context is active, every handle requested from any interface
    is the context's own handle, and every `transaction(...)` call runs its
    unit of work directly on that handle instead of opening a transaction of
    its own. This catches application code that opens connections or
    transactions internally. When the context finishes, the transaction is
    rolled back and the previous strategies are put back.

    Only one context may be active in a process at a time.

    Example:

    ```python
    context = TransactionalTestContext(pool)
    await context.start()
    await pool.manager.execute("INSERT INTO person (name) VALUES ('Sam')")
    await context.finish()  # person is empty again
    ```

    Or, as a scope:

    ```python
    async with TransactionalTestContext(pool):
        ...
    ```
    """

    def __init__(self, interface: BaseInterface) -> None:
        self._interface = interface
        self._handle: Optional[SharedHandle] = None
        self._previous: Optional[Strategies] = None
        self._state = ContextState.IDLE

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self._interface}>"

    @property
    def interface(self) -> BaseInterface:
        return self._interface

    @property
    def state(self) -> ContextState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is ContextState.ACTIVE

    @property
    def handle(self) -> Optional[SharedHandle]:
        """The handle every caller is redirected to while active"""
        return self._handle

    async def start(self) -> None:
        """Open the test transaction and redirect the interfaces to it

        Raises:
            AlreadyStartedError: If the context has been started and not
                finished
        """
        if self._state is not ContextState.IDLE:
            raise AlreadyStartedError("Context already started")

        self._state = ContextState.STARTING
        try:
            self._handle = SharedHandle(self._interface.new_handle())
            await self._handle.connect()
            self._previous = StrategyRegistry.install(
                FixedResourceFactory(self._handle),
                ForcedTransactionRunner(self._handle),
                owner=self,
            )
            await self._handle.start_transaction()
        except Exception:
            error = await self._run_all(self._restore, self._release)
            if error is not None:
                logger.warning(
                    "Cleanup after failed start of %s also failed: %s",
                    self,
                    error,
                )
            raise

        self._state = ContextState.ACTIVE
        logger.info("%s started on %s", self, self._handle)

    async def finish(self) -> None:
        """Roll back the test transaction and undo the redirection

        Restoring the strategies and releasing the handle happen even when
        the rollback fails. The first error raised along the way is the one
        that propagates.

        Raises:
            NotStartedError: If the context is not active
        """
        if self._state is not ContextState.ACTIVE or self._handle is None:
            raise NotStartedError(
                'Context not started. You must call "start" before '
                "finishing it."
            )

        self._state = ContextState.FINISHING
        error = await self._run_all(
            self._handle.rollback_transaction, self._restore, self._release
        )
        if error is not None:
            raise error
        logger.info("%s finished", self)

    async def __aenter__(self) -> TransactionalTestContext:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if not self.is_active:
            return False
        try:
            await self.finish()
        except Exception as e:
            logger.error("Error finishing %s: %s", self, e)
            # The body's exception, if any, is the one worth seeing
            if exc_type is None:
                raise
        return False

    def _restore(self) -> None:
        previous, self._previous = self._previous, None
        if previous is not None:
            StrategyRegistry.restore(previous, owner=self)

    async def _release(self) -> None:
        handle, self._handle = self._handle, None
        self._state = ContextState.IDLE
        if handle is not None:
            await handle.release_shared()

    async def _run_all(
        self, *steps: Callable[[], Any]
    ) -> Optional[Exception]:
        first: Optional[Exception] = None
        for step in steps:
            try:
                result = step()
                if isawaitable(result):
                    await result
            except Exception as e:
                if first is None:
                    first = e
                else:
                    logger.warning(
                        "%s failed on %s after an earlier error: %s",
                        getattr(step, "__name__", step),
                        self,
                        e,
                    )
        return first
