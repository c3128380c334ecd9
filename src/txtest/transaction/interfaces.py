from enum import Enum

from txtest.exception import TxTestError


class IsolationLevel(Enum):
    """SQL transaction isolation levels"""

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class TransactionError(TxTestError):
    """Base exception for transaction errors"""

    pass


class MissingCallbackError(TransactionError):
    """Raised when an isolation level is supplied without a unit of work"""

    pass
