from importlib.metadata import version

from .base.interface import BaseInterface
from .context import ContextState, TransactionalTestContext
from .exception import (
    AlreadyStartedError,
    NotStartedError,
    TxTestError,
)
from .handle import Handle, SharedHandle
from .hydrator import Hydrator
from .manager import Manager
from .sql.mysql.interface import MysqlPool
from .sql.postgres.interface import PostgresPool
from .sql.sqlite.interface import SQLitePool
from .transaction import IsolationLevel, MissingCallbackError

__version__ = version("txtest")

__all__ = (
    "AlreadyStartedError",
    "BaseInterface",
    "ContextState",
    "Handle",
    "Hydrator",
    "IsolationLevel",
    "Manager",
    "MissingCallbackError",
    "MysqlPool",
    "NotStartedError",
    "PostgresPool",
    "SQLitePool",
    "SharedHandle",
    "TransactionalTestContext",
    "TxTestError",
)
