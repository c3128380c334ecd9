from typing import Any, Optional

from txtest.base.interface import BaseInterface
from txtest.exception import TxTestError

try:
    from psycopg.rows import dict_row
    from psycopg_pool import AsyncConnectionPool

    POSTGRES_ENABLED = True
except ModuleNotFoundError:
    POSTGRES_ENABLED = False
    dict_row = None  # type: ignore
    AsyncConnectionPool = type("Connection", (), {})  # type: ignore


class PostgresPool(BaseInterface):
    """Interface for connecting to a Postgres database

    Connections are kept in autocommit mode. Transactions are opened with an
    explicit `BEGIN` by whichever handle holds the connection.
    """

    scheme = "postgres"

    def _setup_pool(self):
        if not POSTGRES_ENABLED:
            raise TxTestError(
                "Postgres driver not found. Try reinstalling txtest: "
                "pip install txtest[postgres]"
            )
        self._pool = AsyncConnectionPool(
            self.full_dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            kwargs={"autocommit": True, "row_factory": dict_row},
            open=False,
        )

    async def open(self):
        """Open connections to the pool"""
        await self._pool.open()

    async def close(self):
        """Close connections to the pool"""
        await self._pool.close()

    async def _acquire(self) -> Any:
        return await self._pool.getconn()

    async def _release(self, connection: Any) -> None:
        await self._pool.putconn(connection)

    async def _execute(
        self,
        connection: Any,
        query: str,
        values: Any = None,
        fetch: Optional[str] = None,
    ) -> Any:
        cursor = await connection.execute(query, values)
        if fetch is None:
            return None
        return await getattr(cursor, fetch)()
