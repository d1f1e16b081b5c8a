"""
Shared fixtures: in-memory stand-ins for the data-access collaborator so the
channel, dispatcher and web tier run without MySQL.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from src.wikidb.catalog import Action, QueryCatalog, Statement, load_query_catalog
from src.wikidb.executor import QueryError, QueryExecutor, QueryResult


# ==================== Executors ====================

class InMemoryPagesExecutor(QueryExecutor):
    """Behaves like the pages table for the five catalog statements."""

    def __init__(self):
        self.pages: Dict[int, str] = {}
        self.next_uid = 1
        self.calls: List[Tuple[Action, Tuple[Any, ...]]] = []
        self.closed = False

    def add(self, name: str) -> int:
        uid = self.next_uid
        self.next_uid += 1
        self.pages[uid] = name
        return uid

    @staticmethod
    def _uid(value: Any) -> Optional[int]:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    async def execute(self, statement: Statement, params: Sequence[Any] = ()) -> QueryResult:
        self.calls.append((statement.action, tuple(params)))
        action = statement.action
        columns = ["uid", "name"]

        if action is Action.ALL_PAGES:
            rows = list(self.pages.items())
            return QueryResult(columns=columns, rows=rows, rowcount=len(rows))

        if action is Action.GET_PAGE:
            uid = self._uid(params[0])
            rows = [(uid, self.pages[uid])] if uid in self.pages else []
            return QueryResult(columns=columns, rows=rows, rowcount=len(rows))

        if action is Action.SAVE_PAGE:
            if params[0] is None:
                raise QueryError("Column 'name' cannot be null")
            uid = self.add(params[0])
            return QueryResult(rowcount=1, last_insert_id=uid)

        if action is Action.UPDATE_PAGE:
            name, uid = params[0], self._uid(params[1])
            if uid in self.pages:
                self.pages[uid] = name
                return QueryResult(rowcount=1)
            return QueryResult(rowcount=0)

        if action is Action.DELETE_PAGE:
            uid = self._uid(params[0])
            return QueryResult(rowcount=1 if self.pages.pop(uid, None) is not None else 0)

        raise QueryError(f"unexpected statement {action}")

    async def close(self) -> None:
        self.closed = True


class StaticExecutor(QueryExecutor):
    """Returns the same rows (or raises the same error) for every statement."""

    def __init__(self, rows=None, rowcount: int = 0, error: Optional[Exception] = None):
        self.rows = list(rows or [])
        self.rowcount = rowcount
        self.error = error
        self.calls: List[Tuple[Action, Tuple[Any, ...]]] = []

    async def execute(self, statement: Statement, params: Sequence[Any] = ()) -> QueryResult:
        self.calls.append((statement.action, tuple(params)))
        if self.error is not None:
            raise self.error
        return QueryResult(columns=["uid", "name"], rows=list(self.rows), rowcount=self.rowcount)

    async def close(self) -> None:
        pass


class UnreachableExecutor(QueryExecutor):
    """Database that refuses every connection."""

    async def execute(self, statement: Statement, params: Sequence[Any] = ()) -> QueryResult:
        raise QueryError("Can't connect to MySQL server on '127.0.0.1'")

    async def ping(self) -> None:
        raise QueryError("Can't connect to MySQL server on '127.0.0.1'")

    async def close(self) -> None:
        pass


# ==================== Fixtures ====================

@pytest.fixture
def catalog() -> QueryCatalog:
    return load_query_catalog()


@pytest.fixture
def pages_executor() -> InMemoryPagesExecutor:
    return InMemoryPagesExecutor()


@pytest.fixture
def static_executor():
    """Factory: static_executor(rows=..., rowcount=..., error=...)."""
    return StaticExecutor


@pytest.fixture
def unreachable_executor() -> UnreachableExecutor:
    return UnreachableExecutor()
