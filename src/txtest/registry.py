from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Tuple

if TYPE_CHECKING:
    from txtest.transaction.strategy import ResourceFactory, TransactionRunner

logger = logging.getLogger(__name__)

Strategies = Tuple["ResourceFactory", "TransactionRunner"]


class StrategyRegistry:
    """
    Process-wide owner of the strategies every interface consults when it
    needs a new resource handle or is asked to run a unit of work in a
    transaction.

    There is a single owner at a time. Whoever calls `install` must hand the
    returned strategies back to `restore` when done. Nothing here locks:
    two owners overlapping in one process will clobber each other.
    """

    _singleton = None
    _resource_factory: ResourceFactory
    _transaction_runner: TransactionRunner
    _owner: Optional[Any]

    def __new__(cls, *args, **kwargs):
        if cls._singleton is None:
            cls.reset()
        return cls._singleton

    @property
    def resource_factory(self) -> ResourceFactory:
        return self._resource_factory

    @property
    def transaction_runner(self) -> TransactionRunner:
        return self._transaction_runner

    @property
    def owner(self) -> Optional[Any]:
        return self._owner

    @classmethod
    def install(
        cls,
        resource_factory: ResourceFactory,
        transaction_runner: TransactionRunner,
        owner: Optional[Any] = None,
    ) -> Strategies:
        """Replace the active strategies

        Args:
            resource_factory (ResourceFactory): Used for every new handle
            transaction_runner (TransactionRunner): Used for every
                transaction call
            owner (Any, optional): Whoever holds the redirection. Only
                used for diagnostics. Defaults to `None`.

        Returns:
            Strategies: The strategies that were active before, to be passed
                back to `restore`
        """
        instance = cls()
        if instance._owner is not None and instance._owner is not owner:
            logger.warning(
                "Strategies owned by %s are being replaced by %s",
                instance._owner,
                owner,
            )
        previous = (instance._resource_factory, instance._transaction_runner)
        instance._resource_factory = resource_factory
        instance._transaction_runner = transaction_runner
        instance._owner = owner
        logger.debug(
            "Installed %s and %s", resource_factory, transaction_runner
        )
        return previous

    @classmethod
    def restore(
        cls, previous: Strategies, owner: Optional[Any] = None
    ) -> None:
        instance = cls()
        if owner is not None and instance._owner is not owner:
            logger.warning(
                "%s is restoring strategies currently owned by %s",
                owner,
                instance._owner,
            )
        instance._resource_factory, instance._transaction_runner = previous
        instance._owner = None
        logger.debug(
            "Restored %s and %s",
            instance._resource_factory,
            instance._transaction_runner,
        )

    @classmethod
    def reset(cls):
        from txtest.transaction.strategy import (
            BeginTransactionRunner,
            PoolResourceFactory,
        )

        cls._singleton = super().__new__(cls)
        cls._singleton._resource_factory = PoolResourceFactory()
        cls._singleton._transaction_runner = BeginTransactionRunner()
        cls._singleton._owner = None
