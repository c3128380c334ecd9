"""
Strategies consulted by every interface when it needs a resource handle or
is asked to run a unit of work in a transaction. The active pair lives on
the `StrategyRegistry`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from inspect import isawaitable
from typing import TYPE_CHECKING, Any

from .call import TransactionCall, isolation_level_of, require_callback

if TYPE_CHECKING:
    from txtest.base.interface import BaseInterface
    from txtest.handle import Handle, SharedHandle

logger = logging.getLogger(__name__)


class ResourceFactory(ABC):
    @abstractmethod
    def create_handle(self, interface: BaseInterface) -> Handle: ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class PoolResourceFactory(ResourceFactory):
    """Hands out a fresh handle from the interface every time"""

    def create_handle(self, interface: BaseInterface) -> Handle:
        return interface.new_handle()


class FixedResourceFactory(ResourceFactory):
    """Hands out the same handle, whichever interface is asking"""

    def __init__(self, handle: SharedHandle) -> None:
        self.handle = handle

    def create_handle(self, interface: BaseInterface) -> Handle:
        return self.handle  # type: ignore

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.handle}>"


class TransactionRunner(ABC):
    @abstractmethod
    async def run(
        self, interface: BaseInterface, call: TransactionCall
    ) -> Any: ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class BeginTransactionRunner(TransactionRunner):
    """Runs the unit of work inside its own transaction on a new handle.
    Commits when it returns, rolls back and re-raises when it fails.
    """

    async def run(self, interface: BaseInterface, call: TransactionCall):
        callback = require_callback(call)
        handle = interface.create_handle()
        try:
            await handle.connect()
            await handle.start_transaction(isolation_level_of(call))
            try:
                result = callback(handle.manager)
                if isawaitable(result):
                    result = await result
            except Exception:
                try:
                    await handle.rollback_transaction()
                except Exception as rollback_error:
                    logger.critical(
                        "Rollback after failed unit of work also failed: %s",
                        rollback_error,
                    )
                raise
            await handle.commit_transaction()
            return result
        finally:
            await handle.release()


class ForcedTransactionRunner(TransactionRunner):
    """Runs the unit of work directly against an already open transaction.

    No boundary is opened. Errors raised by the unit of work propagate as
    they are and roll back nothing; whatever it wrote stays in the outer
    transaction.
    """

    def __init__(self, handle: SharedHandle) -> None:
        self.handle = handle

    async def run(self, interface: BaseInterface, call: TransactionCall):
        callback = require_callback(call)
        logger.debug("Absorbing transaction into %s", self.handle)
        result = callback(self.handle.manager)
        if isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.handle}>"
