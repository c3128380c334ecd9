from .call import (
    RunInTransaction,
    RunIsolated,
    TransactionCall,
    resolve_call,
)
from .interfaces import IsolationLevel, MissingCallbackError, TransactionError
from .strategy import (
    BeginTransactionRunner,
    FixedResourceFactory,
    ForcedTransactionRunner,
    PoolResourceFactory,
    ResourceFactory,
    TransactionRunner,
)

__all__ = [
    "BeginTransactionRunner",
    "FixedResourceFactory",
    "ForcedTransactionRunner",
    "IsolationLevel",
    "MissingCallbackError",
    "PoolResourceFactory",
    "ResourceFactory",
    "RunInTransaction",
    "RunIsolated",
    "TransactionCall",
    "TransactionError",
    "TransactionRunner",
    "resolve_call",
]
