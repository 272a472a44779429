"""Query builder wired by the container.

Demonstrates:
1. A singleton database connection shared by every query builder
2. An abstract logging capability bound to a console implementation
3. Autowiring a class that was never registered
4. Passing a scalar constructor argument as an explicit parameter
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from wirebox import Container


class Connection(ABC):
    @abstractmethod
    def execute(self, query: str) -> list[tuple[Any, ...]]: ...


class SqliteConnection(Connection):
    def __init__(self, database: str) -> None:
        self._conn = sqlite3.connect(database, check_same_thread=False)

    def execute(self, query: str) -> list[tuple[Any, ...]]:
        with self._conn:
            return self._conn.execute(query).fetchall()


class Log(ABC):
    @abstractmethod
    def info(self, message: str) -> None: ...

    @abstractmethod
    def warning(self, message: str) -> None: ...


class ConsoleLogger(Log):
    def info(self, message: str) -> None:
        print(f"{datetime.now():%Y-%m-%d %I:%M:%S%p} : {message}")

    def warning(self, message: str) -> None:
        print(f"{datetime.now():%Y-%m-%d %I:%M:%S%p} : WARNING {message}")


class QueryBuilder:
    def __init__(self, connection: Connection, logger: Log) -> None:
        self.connection = connection
        self.logger = logger
        self._select = ""
        self._from = ""

    def select(self, select: str) -> QueryBuilder:
        self._select = f"select {select}"
        return self

    def from_(self, table: str) -> QueryBuilder:
        self._from = f" from {table}"
        return self

    def get(self) -> list[tuple[Any, ...]]:
        if not self._from:
            self.logger.warning(f"Query has no from clause: {self._select}")
        query = self._select + self._from
        self.logger.info(f"Executed {query}")
        return self.connection.execute(query)


def build_container(database: str = ":memory:") -> Container:
    container = Container()
    container.singleton(
        Connection,
        lambda c: c.make(SqliteConnection, {"database": database}),
    )
    # QueryBuilder itself is never registered: it is autowired
    container.bind(Log, ConsoleLogger)
    return container


def main() -> None:
    container = build_container()

    connection = container.make(Connection)
    connection.execute("create table users (id integer primary key, name text)")
    connection.execute("insert into users (name) values ('ada'), ('grace')")

    first = container.make(QueryBuilder)
    print(first.select("*").from_("users").get())  # => [(1, 'ada'), (2, 'grace')]

    # A new builder, but the same connection
    second = container.make(QueryBuilder)
    print(second.select("name").from_("users").get())  # => [('ada',), ('grace',)]

    print(f"Different builders: {first is not second}")  # => Different builders: True
    print(f"Same connection: {first.connection is second.connection}")  # => Same connection: True


if __name__ == "__main__":
    main()
