import logging
from typing import Any, Sequence

import pymysql
from sqlalchemy import event, exc
from sqlalchemy.pool import QueuePool
from starlette.concurrency import run_in_threadpool

from src.wikidb.catalog import Statement
from src.wikidb.executor import QueryError, QueryExecutor, QueryResult

logger = logging.getLogger(__name__)


class MySQLQueryExecutor(QueryExecutor):
    """
    Runs catalog statements on MySQL through a QueuePool of pymysql
    connections. pymysql is blocking, so every statement runs on the
    threadpool and at most pool_size statements are in flight.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        pool_size: int = 4,
        pool_timeout: float = 10.0,
        connect_timeout: int = 5,
    ):
        self._connect_args = dict(
            host=host,
            port=port,
            user=user,
            password=password,
            database=database,
            connect_timeout=connect_timeout,
            autocommit=True,
            charset="utf8mb4",
        )
        self.pool_size = pool_size
        self._pool = QueuePool(
            self._connect,
            pool_size=pool_size,
            max_overflow=0,
            timeout=pool_timeout,
        )
        event.listen(self._pool, "checkout", _ping_on_checkout)
        self._closed = False

        logger.info(
            "QueryExecutor initialized: host=%s port=%s database=%s pool_size=%d",
            host, port, database, pool_size,
        )

    def _connect(self) -> pymysql.connections.Connection:
        logger.debug("Opening MySQL connection")
        return pymysql.connect(**self._connect_args)

    # =========================================================
    # Statements
    # =========================================================

    def _run(self, statement: Statement, params: Sequence[Any]) -> QueryResult:
        if self._closed:
            raise pymysql.err.InterfaceError(0, "Executor is closed")
        conn = self._pool.connect()
        broken = None
        try:
            with conn.cursor() as cursor:
                cursor.execute(statement.sql, tuple(params))
                if cursor.description:
                    columns = [d[0] for d in cursor.description]
                    rows = [tuple(row) for row in cursor.fetchall()]
                else:
                    columns, rows = [], []
                return QueryResult(
                    columns=columns,
                    rows=rows,
                    rowcount=cursor.rowcount,
                    last_insert_id=cursor.lastrowid,
                )
        except (pymysql.err.OperationalError, pymysql.err.InterfaceError) as e:
            broken = e
            raise
        finally:
            if broken is not None:
                # drops the connection from the pool
                conn.invalidate(broken)
            else:
                conn.close()

    async def execute(self, statement: Statement, params: Sequence[Any] = ()) -> QueryResult:
        logger.debug("Executing %s params=%s", statement.action.value, list(params))
        try:
            result = await run_in_threadpool(self._run, statement, params)
        except pymysql.MySQLError as e:
            raise QueryError(_error_text(e)) from e
        except exc.SQLAlchemyError as e:
            raise QueryError(str(e)) from e
        logger.debug(
            "Executed %s rows=%d rowcount=%d",
            statement.action.value, result.num_rows, result.rowcount
        )
        return result

    async def ping(self) -> None:
        """
        Check out one connection (pinged on checkout) and return it.

        Raises:
            QueryError: If the database is unreachable
        """
        def _ping():
            self._pool.connect().close()

        try:
            await run_in_threadpool(_ping)
        except pymysql.MySQLError as e:
            raise QueryError(_error_text(e)) from e
        except exc.SQLAlchemyError as e:
            raise QueryError(str(e)) from e

    async def close(self) -> None:
        self._closed = True
        logger.info("QueryExecutor closing: %s", self._pool.status())
        self._pool.dispose()


def _ping_on_checkout(dbapi_connection, connection_record, connection_proxy) -> None:
    # a DisconnectionError makes the pool replace the connection and retry
    try:
        dbapi_connection.ping(reconnect=False)
    except pymysql.MySQLError as e:
        raise exc.DisconnectionError(_error_text(e)) from e


def _error_text(error: pymysql.MySQLError) -> str:
    # pymysql errors carry (errno, message)
    if len(error.args) > 1:
        return str(error.args[1])
    return str(error)
