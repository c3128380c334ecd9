from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Any, Optional, Sequence, Union
from urllib.parse import urlparse

from txtest.exception import TxTestError
from txtest.handle import Handle
from txtest.manager import Manager
from txtest.registry import StrategyRegistry
from txtest.transaction.call import Callback
from txtest.transaction.interfaces import IsolationLevel

UrlMapping = namedtuple("UrlMapping", ("key", "cast"))


URLPARSE_MAPPING = {
    "hostname": UrlMapping("_host", str),
    "username": UrlMapping("_user", str),
    "password": UrlMapping("_password", str),
    "port": UrlMapping("_port", int),
    "path": UrlMapping("_db", lambda value: value.replace("/", "")),
    "query": UrlMapping("_query", str),
}

DOLLAR_KEYWORD = re.compile(r"(\$([a-z][a-z0-9_]*))")
DOLLAR_POSITIONAL = re.compile(r"(\$(\d+))")


class BaseInterface(ABC):
    """The connection-like object every handle and manager comes from.

    Subclasses wrap a concrete async driver. Everything that wants a
    connection goes through `create_handle()`, and everything that wants a
    transaction goes through `transaction()`; both consult whatever
    strategies the `StrategyRegistry` currently holds.
    """

    scheme = "dummy"
    POSITIONAL_SUB: str = r"%s"
    KEYWORD_SUB: str = r"%(\2)s"

    @abstractmethod
    def _setup_pool(self): ...

    @abstractmethod
    async def open(self): ...

    @abstractmethod
    async def close(self): ...

    @abstractmethod
    async def _acquire(self) -> Any: ...

    @abstractmethod
    async def _release(self, connection: Any) -> None: ...

    @abstractmethod
    async def _execute(
        self,
        connection: Any,
        query: str,
        values: Any = None,
        fetch: Optional[str] = None,
    ) -> Any: ...

    def __init__(
        self,
        dsn: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        db: Optional[str] = None,
        query: Optional[str] = None,
        min_size: int = 1,
        max_size: Optional[int] = None,
    ) -> None:
        """DB class initialization.

        Args:
            dsn (str, optional): DB data source name
            host (str, optional): DB address URL or IP
            port (int, optional): DB port
            user (str, optional): DB user
            password (str, optional): DB password
            db (str, optional): DB name
            query (str, optional): DB query parameters. Defaults to None
            min_size (int, optional): Minimum number of connections in pool. Defaults to 1
            max_size (int, optional): Maximum number of connections in pool. Defaults to None
        """  # noqa

        if dsn and host:
            raise TxTestError("Cannot connect to DB using host and dsn")

        if not dsn:
            if port and (
                not isinstance(port, int) or port not in range(0, 65536)
            ):
                raise TxTestError(
                    "port: must be an integer between 0 and 65535"
                )

            if host and (not isinstance(host, str) or not len(host) > 0):
                raise TxTestError(
                    "host: must be a string at least 1 character long"
                )

        if password is not None and (
            not isinstance(password, str) or not len(password) > 0
        ):
            raise TxTestError(
                "password: must be a string at least 1 character long"
            )

        if max_size is not None and max_size < min_size:
            raise TxTestError("max_size: cannot be smaller than min_size")

        self._dsn = dsn
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._db = db
        self._query = query
        self._min_size = min_size
        self._max_size = max_size
        self._full_dsn: Optional[str] = None
        self._manager: Optional[Manager] = None

        self._populate_connection_args()
        self._populate_dsn()
        self._setup_pool()

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.dsn}>"

    def _populate_connection_args(self):
        dsn = self.dsn or ""
        if dsn:
            parts = urlparse(dsn)
            defaults = {
                "port": (
                    5432
                    if "postgres" in dsn
                    else 3306 if "mysql" in dsn else None
                ),
                "hostname": "localhost",
                "path": "/",
                "query": "",
            }
            for key, mapping in URLPARSE_MAPPING.items():
                if not getattr(self, mapping.key):
                    value = getattr(parts, key, None)
                    if value is None:
                        value = defaults.get(key)
                    if value is not None:
                        setattr(self, mapping.key, mapping.cast(value))

    def _populate_dsn(self):
        self._dsn = (
            (
                f"{self.scheme}://{self.user}:...@"
                f"{self.host}:{self.port}/{self.db}"
            )
            if self.password
            else (
                f"{self.scheme}://{self.user}@"
                f"{self.host}:{self.port}/{self.db}"
            )
        )
        self._full_dsn = (
            (
                f"{self.scheme}://{self.user}:{self.password}@"
                f"{self.host}:{self.port}/{self.db}"
            )
            if self.password
            else self.dsn
        )
        self._full_dsn += f"?{self._query}" if self._query else ""

    @property
    def dsn(self):
        return self._dsn

    @property
    def host(self):
        return self._host

    @property
    def port(self):
        return self._port

    @property
    def user(self):
        return self._user

    @property
    def password(self):
        return self._password

    @property
    def db(self):
        return self._db

    @property
    def full_dsn(self):
        return self._full_dsn

    @property
    def min_size(self):
        return self._min_size

    @property
    def max_size(self):
        return self._max_size

    def new_handle(self) -> Handle:
        """A fresh, unconnected handle on this interface. Bypasses any
        redirection; most callers want `create_handle()`.
        """
        return Handle(self)

    def create_handle(self) -> Handle:
        """Obtain a handle from the active resource factory

        Returns:
            Handle: An unconnected handle, or the handle a running test
                context is forcing on everybody
        """
        return StrategyRegistry().resource_factory.create_handle(self)

    @property
    def manager(self) -> Manager:
        """The interface's own manager, not bound to any handle"""
        if self._manager is None:
            self._manager = Manager(self)
        return self._manager

    async def transaction(
        self,
        isolation_or_callback: Union[IsolationLevel, str, Callback],
        callback: Optional[Callback] = None,
    ) -> Any:
        """Shortcut for `manager.transaction(...)`"""
        return await self.manager.transaction(isolation_or_callback, callback)

    def convert(self, query: str) -> str:
        """Rewrite `$name` and `$1` placeholders into the driver's style

        Raises:
            TxTestError: If both placeholder styles are mixed in one query
        """
        matches = 0
        if DOLLAR_KEYWORD.search(query):
            matches += 1
            query = DOLLAR_KEYWORD.sub(self.KEYWORD_SUB, query, 0)
        if DOLLAR_POSITIONAL.search(query):
            matches += 1
            query = DOLLAR_POSITIONAL.sub(self.POSITIONAL_SUB, query, 0)
        if matches > 1:
            raise TxTestError(
                f"Could not properly convert SQL params {matches}"
            )
        return query

    def _begin_statements(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> Sequence[str]:
        if isolation_level is None:
            return ["BEGIN"]
        return [f"BEGIN ISOLATION LEVEL {isolation_level.value}"]

    def _end_statements(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> Sequence[str]:
        return []
