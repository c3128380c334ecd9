from __future__ import annotations

from contextlib import asynccontextmanager
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Dict,
    List,
    Optional,
    Sequence,
    Type,
    Union,
)

from txtest.exception import RecordNotFound
from txtest.hydrator import Hydrator
from txtest.registry import StrategyRegistry
from txtest.transaction.call import Callback, resolve_call
from txtest.transaction.interfaces import IsolationLevel

if TYPE_CHECKING:
    from txtest.base.interface import BaseInterface
    from txtest.handle import Handle


class Manager:
    """Runs statements against the database and hands back rows.

    A manager is either bound to one handle, in which case every statement
    runs on it, or it belongs to an interface and asks the interface for a
    handle each time it needs one. Either way, queries are written with
    `$name` or `$1` placeholders.

    Example:

    ```python
    await pool.manager.execute(
        "INSERT INTO person (name) VALUES ($name)", params={"name": "Sam"}
    )

    async def work(manager):
        await manager.execute("DELETE FROM person")

    await pool.manager.transaction(work)
    ```
    """

    def __init__(
        self,
        interface: BaseInterface,
        handle: Optional[Handle] = None,
        hydrator: Optional[Hydrator] = None,
    ) -> None:
        self._interface = interface
        self._handle = handle
        self.hydrator = hydrator or Hydrator()

    @property
    def interface(self) -> BaseInterface:
        return self._interface

    @property
    def handle(self) -> Optional[Handle]:
        """The handle this manager is bound to, if any"""
        return self._handle

    async def execute(
        self,
        query: str,
        posargs: Optional[Sequence[Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> None:
        async with self._acquire() as handle:
            await handle.execute(query, posargs, params)

    async def fetch_all(
        self,
        query: str,
        posargs: Optional[Sequence[Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        model: Optional[Type[object]] = None,
    ) -> List[Any]:
        async with self._acquire() as handle:
            rows = await handle.fetch_all(query, posargs, params)
        return self.hydrator.hydrate_many(list(rows or []), model=model)

    async def fetch_one(
        self,
        query: str,
        posargs: Optional[Sequence[Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        model: Optional[Type[object]] = None,
        allow_none: bool = False,
    ) -> Any:
        async with self._acquire() as handle:
            row = await handle.fetch_one(query, posargs, params)
        if not row:
            if allow_none:
                return None
            raise RecordNotFound(
                f"Query did not find any record using "
                f"{posargs or ()} and {params or {}}"
            )
        return self.hydrator.hydrate(row, model=model)

    async def fetch_value(
        self,
        query: str,
        posargs: Optional[Sequence[Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Return the first column of the first row"""
        row = await self.fetch_one(query, posargs, params)
        return next(iter(row.values()))

    async def transaction(
        self,
        isolation_or_callback: Union[IsolationLevel, str, Callback],
        callback: Optional[Callback] = None,
    ) -> Any:
        """Run a unit of work in a transaction

        Either `transaction(callback)` or
        `transaction(isolation_level, callback)`. The callback receives a
        manager bound to the transaction's handle. What happens around it is
        decided by whichever transaction runner is currently installed.

        Args:
            isolation_or_callback (Union[IsolationLevel, str, Callback]):
                The unit of work, or the isolation level to run it with
            callback (Callback, optional): The unit of work, when an
                isolation level is given first. Defaults to `None`.

        Raises:
            MissingCallbackError: If an isolation level is given without
                a unit of work

        Returns:
            Any: Whatever the unit of work returns
        """
        call = resolve_call(isolation_or_callback, callback)
        runner = StrategyRegistry().transaction_runner
        return await runner.run(self._interface, call)

    @asynccontextmanager
    async def _acquire(self) -> AsyncIterator[Handle]:
        if self._handle is not None:
            yield self._handle
            return

        handle = self._interface.create_handle()
        await handle.connect()
        try:
            yield handle
        finally:
            await handle.release()
