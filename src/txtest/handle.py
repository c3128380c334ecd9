from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence
from uuid import uuid4

from txtest.exception import (
    HandleNotConnectedError,
    HandleReleasedError,
    TransactionAlreadyStartedError,
    TransactionNotStartedError,
)
from txtest.transaction.interfaces import IsolationLevel

if TYPE_CHECKING:
    from txtest.base.interface import BaseInterface
    from txtest.manager import Manager

logger = logging.getLogger(__name__)


class Handle:
    """A single physical connection to the database, and whatever
    transaction is open on it.

    Handles are obtained from an interface with `create_handle()`, must be
    connected before use, and released once done.
    """

    def __init__(self, interface: BaseInterface) -> None:
        self.handle_id = f"handle_{uuid4().hex[:8]}"
        self._interface = interface
        self._connection: Any = None
        self._transaction_active = False
        self._isolation_level: Optional[IsolationLevel] = None
        self._released = False
        self._manager: Optional[Manager] = None

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.handle_id}>"

    @property
    def interface(self) -> BaseInterface:
        return self._interface

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def is_transaction_active(self) -> bool:
        return self._transaction_active

    @property
    def is_released(self) -> bool:
        return self._released

    @property
    def manager(self) -> Manager:
        """A manager that runs every statement on this handle"""
        if self._manager is None:
            from txtest.manager import Manager

            self._manager = Manager(self._interface, handle=self)
        return self._manager

    async def connect(self) -> Any:
        """Acquire the underlying connection. Calling it on a connected
        handle does nothing.

        Raises:
            HandleReleasedError: If the handle was already released

        Returns:
            Any: The driver connection
        """
        self._check_released()
        if self._connection is None:
            self._connection = await self._interface._acquire()
            logger.debug("%s connected to %s", self, self._interface)
        return self._connection

    async def start_transaction(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> None:
        self._check_connected()
        if self._transaction_active:
            raise TransactionAlreadyStartedError(
                f"Transaction already started on {self}"
            )
        for statement in self._interface._begin_statements(isolation_level):
            await self._interface._execute(self._connection, statement)
        self._transaction_active = True
        self._isolation_level = isolation_level
        logger.debug("Transaction started on %s", self)

    async def commit_transaction(self) -> None:
        self._check_connected()
        if not self._transaction_active:
            raise TransactionNotStartedError(
                f"No transaction to commit on {self}"
            )
        await self._interface._execute(self._connection, "COMMIT")
        self._transaction_active = False
        await self._end_transaction()
        logger.debug("Transaction committed on %s", self)

    async def rollback_transaction(self) -> None:
        self._check_connected()
        if not self._transaction_active:
            raise TransactionNotStartedError(
                f"No transaction to rollback on {self}"
            )
        try:
            await self._interface._execute(self._connection, "ROLLBACK")
        finally:
            self._transaction_active = False
        await self._end_transaction()
        logger.debug("Transaction rolled back on %s", self)

    async def release(self) -> None:
        """Give the connection back to the interface"""
        self._check_released()
        connection, self._connection = self._connection, None
        self._released = True
        if connection is not None:
            await self._interface._release(connection)
        logger.debug("%s released", self)

    async def execute(
        self,
        query: str,
        posargs: Optional[Sequence[Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._run(query, posargs, params, None)

    async def fetch_all(
        self,
        query: str,
        posargs: Optional[Sequence[Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        return await self._run(query, posargs, params, "fetchall")

    async def fetch_one(
        self,
        query: str,
        posargs: Optional[Sequence[Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        return await self._run(query, posargs, params, "fetchone")

    async def _run(
        self,
        query: str,
        posargs: Optional[Sequence[Any]],
        params: Optional[Dict[str, Any]],
        fetch: Optional[str],
    ):
        self._check_connected()
        values = list(posargs) if posargs else params
        return await self._interface._execute(
            self._connection,
            self._interface.convert(query),
            values,
            fetch,
        )

    async def _end_transaction(self) -> None:
        level, self._isolation_level = self._isolation_level, None
        for statement in self._interface._end_statements(level):
            await self._interface._execute(self._connection, statement)

    def _check_released(self) -> None:
        if self._released:
            raise HandleReleasedError(f"{self} has already been released")

    def _check_connected(self) -> None:
        self._check_released()
        if self._connection is None:
            raise HandleNotConnectedError(f"{self} is not connected")


class SharedHandle:
    """Wraps the one handle a test context forces on everybody.

    Everything is passed through, except `release()`: code that received
    this handle from an interface releases it as it would any other, which
    must not return the connection. The owner calls `release_shared()`.
    """

    def __init__(self, handle: Handle) -> None:
        self._handle = handle
        self._manager: Optional[Manager] = None

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self._handle.handle_id}>"

    @property
    def wrapped(self) -> Handle:
        return self._handle

    @property
    def interface(self) -> BaseInterface:
        return self._handle.interface

    @property
    def is_connected(self) -> bool:
        return self._handle.is_connected

    @property
    def is_transaction_active(self) -> bool:
        return self._handle.is_transaction_active

    @property
    def is_released(self) -> bool:
        return self._handle.is_released

    @property
    def manager(self) -> Manager:
        """A manager that runs every statement through this wrapper"""
        if self._manager is None:
            from txtest.manager import Manager

            self._manager = Manager(
                self.interface, handle=self  # type: ignore
            )
        return self._manager

    async def connect(self) -> Any:
        return await self._handle.connect()

    async def start_transaction(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> None:
        await self._handle.start_transaction(isolation_level)

    async def commit_transaction(self) -> None:
        await self._handle.commit_transaction()

    async def rollback_transaction(self) -> None:
        await self._handle.rollback_transaction()

    async def release(self) -> None:
        logger.debug("Ignoring release of %s", self)

    async def release_shared(self) -> None:
        await self._handle.release()

    async def execute(self, query, posargs=None, params=None) -> None:
        await self._handle.execute(query, posargs, params)

    async def fetch_all(self, query, posargs=None, params=None):
        return await self._handle.fetch_all(query, posargs, params)

    async def fetch_one(self, query, posargs=None, params=None):
        return await self._handle.fetch_one(query, posargs, params)
