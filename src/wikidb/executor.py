from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from src.wikidb.catalog import Statement


@dataclass
class QueryResult:
    """
    Rows come back as tuples in the column order of the statement, so
    handlers address cells positionally.
    """
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple[Any, ...]] = field(default_factory=list)
    rowcount: int = 0
    last_insert_id: Optional[int] = None

    @property
    def num_rows(self) -> int:
        return len(self.rows)


class QueryError(Exception):
    """
    The data layer failed a statement. The message text is what reaches
    the caller; the driver exception stays on __cause__.
    """


class QueryExecutor(ABC):
    """
    QueryExecutor owns the database connections and runs one statement
    per call on behalf of the handlers.
    """

    @abstractmethod
    async def execute(self, statement: Statement, params: Sequence[Any] = ()) -> QueryResult:
        """
        Run statement with positional params.

        Raises:
            QueryError: If the database rejects or cannot run the statement
        """
        pass

    async def ping(self) -> None:
        """
        Check the database answers; raises QueryError when it does not.
        """
        return None

    @abstractmethod
    async def close(self) -> None:
        """
        Release every connection held by the executor.
        """
        pass
