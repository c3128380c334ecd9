from __future__ import annotations

import logging
from sqlite3 import Cursor
from typing import Any, Dict, Optional, Sequence, Tuple

from txtest.base.interface import BaseInterface
from txtest.exception import TxTestError
from txtest.transaction.interfaces import IsolationLevel, TransactionError

try:
    import aiosqlite

    AIOSQLITE_ENABLED = True
except ModuleNotFoundError:
    AIOSQLITE_ENABLED = False

logger = logging.getLogger(__name__)


class SQLitePool(BaseInterface):
    """Interface for connecting to a SQLite database

    SQLite gets a single connection, shared by every handle. That is the only
    way for an in-memory database to be seen by more than one handle.
    """

    scheme = "sqlite"
    POSITIONAL_SUB = r"?"
    KEYWORD_SUB = r":\2"

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: Optional[Any] = None
        super().__init__()

    def _setup_pool(self):
        if not AIOSQLITE_ENABLED:
            raise TxTestError(
                "SQLite driver not found. Try reinstalling txtest: "
                "pip install txtest[sqlite]"
            )

    def _populate_connection_args(self): ...

    def _populate_dsn(self):
        self._dsn = f"{self.scheme}:///{self._db_path}"
        self._full_dsn = self._dsn

    @property
    def db_path(self) -> str:
        return self._db_path

    async def open(self):
        """Open the connection to the database"""
        if self._conn is None:
            self._conn = await aiosqlite.connect(
                self._db_path, isolation_level=None
            )
            self._conn.row_factory = self._dict_factory

    async def close(self):
        """Close the connection to the database"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def _acquire(self) -> Any:
        if self._conn is None:
            logger.debug("Opening %s on first use", self)
            await self.open()
        return self._conn

    async def _release(self, connection: Any) -> None:
        # The connection outlives its handles and is closed with the pool
        ...

    async def _execute(
        self,
        connection: Any,
        query: str,
        values: Any = None,
        fetch: Optional[str] = None,
    ) -> Any:
        async with connection.execute(query, values) as cursor:
            if fetch is None:
                return None
            return await getattr(cursor, fetch)()

    def _begin_statements(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> Sequence[str]:
        if isolation_level in (None, IsolationLevel.SERIALIZABLE):
            return ["BEGIN"]
        if isolation_level is IsolationLevel.READ_UNCOMMITTED:
            return ["PRAGMA read_uncommitted = true", "BEGIN"]
        raise TransactionError(
            "SQLite only supports SERIALIZABLE and READ UNCOMMITTED "
            f"isolation, not {isolation_level.value}"  # type: ignore
        )

    def _end_statements(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> Sequence[str]:
        # The pragma sticks to the connection, which every handle shares
        if isolation_level is IsolationLevel.READ_UNCOMMITTED:
            return ["PRAGMA read_uncommitted = false"]
        return []

    @staticmethod
    def _dict_factory(cursor: Cursor, row: Tuple[Any, ...]) -> Dict[str, Any]:
        return {val[0]: row[idx] for idx, val in enumerate(cursor.description)}
