from __future__ import annotations

from inspect import isawaitable
from typing import Any, Optional, Sequence

from txtest.base.interface import BaseInterface
from txtest.exception import TxTestError
from txtest.transaction.interfaces import IsolationLevel

try:
    from asyncmy import create_pool
    from asyncmy.cursors import DictCursor

    MYSQL_ENABLED = True
except ModuleNotFoundError:
    MYSQL_ENABLED = False
    DictCursor = None  # type: ignore


class MysqlPool(BaseInterface):
    """Interface for connecting to a MySQL database"""

    scheme = "mysql"

    def _setup_pool(self):
        if not MYSQL_ENABLED:
            raise TxTestError(
                "MySQL driver not found. Try reinstalling txtest: "
                "pip install txtest[mysql]"
            )
        self._pool = None

    async def open(self):
        """Open connections to the pool"""
        if self._pool is None:
            self._pool = await create_pool(
                user=self.user,
                password=self.password,
                host=self.host,
                port=self.port,
                db=self.db,
                minsize=self.min_size,
                maxsize=self.max_size or 10,
                autocommit=True,
            )

    async def close(self):
        """Close connections to the pool"""
        if self._pool is not None:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None

    async def _acquire(self) -> Any:
        if self._pool is None:
            raise TxTestError(f"{self} has not been opened")
        return await self._pool.acquire()

    async def _release(self, connection: Any) -> None:
        released = self._pool.release(connection)
        if isawaitable(released):
            await released

    async def _execute(
        self,
        connection: Any,
        query: str,
        values: Any = None,
        fetch: Optional[str] = None,
    ) -> Any:
        async with connection.cursor(cursor=DictCursor) as cursor:
            await cursor.execute(query, values)
            if fetch is None:
                return None
            rows = getattr(cursor, fetch)()
            if isawaitable(rows):
                rows = await rows
            return rows

    def _begin_statements(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> Sequence[str]:
        if isolation_level is None:
            return ["START TRANSACTION"]
        return [
            f"SET TRANSACTION ISOLATION LEVEL {isolation_level.value}",
            "START TRANSACTION",
        ]
