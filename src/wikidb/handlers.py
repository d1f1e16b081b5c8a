"""
Operation handlers for the wikidb actions.

Each handler reads its fields from the message body, runs exactly one
catalog statement through the executor and completes the message with the
shaped reply, or with DB_ERROR when the statement fails. Field presence is
not checked here: a missing field goes to the database as NULL and the
database decides.
"""

import logging
from typing import Any, Sequence

from src.channel.errors import FailureCode
from src.channel.message import InboundMessage
from src.wikidb.catalog import Action, QueryCatalog
from src.wikidb.executor import QueryError, QueryExecutor, QueryResult

logger = logging.getLogger(__name__)

ACK = "ok"


class PageHandlers:

    def __init__(self, catalog: QueryCatalog, executor: QueryExecutor):
        self.catalog = catalog
        self.executor = executor

    async def _query(self, action: Action, params: Sequence[Any] = ()) -> QueryResult:
        return await self.executor.execute(self.catalog.statement(action), params)

    # =========================================================
    # Reads
    # =========================================================

    async def fetch_all_pages(self, message: InboundMessage) -> None:
        try:
            result = await self._query(Action.ALL_PAGES)
        except QueryError as e:
            self.report_query_error(message, e)
            return
        pages = [{"uid": row[0], "name": row[1]} for row in result.rows]
        message.reply({"pages": pages})

    async def fetch_page(self, message: InboundMessage) -> None:
        requested_page = message.body.get("uid")
        try:
            result = await self._query(Action.GET_PAGE, [requested_page])
        except QueryError as e:
            self.report_query_error(message, e)
            return

        if result.num_rows == 0:
            message.reply({"found": False})
            return
        row = result.rows[0]
        message.reply({"found": True, "uid": row[0], "name": row[1]})

    # =========================================================
    # Writes
    # =========================================================

    async def save_page(self, message: InboundMessage) -> None:
        await self._write(message, Action.SAVE_PAGE, [message.body.get("name")])

    async def update_page(self, message: InboundMessage) -> None:
        body = message.body
        await self._write(message, Action.UPDATE_PAGE, [body.get("name"), body.get("uid")])

    async def delete_page(self, message: InboundMessage) -> None:
        await self._write(message, Action.DELETE_PAGE, [message.body.get("uid")])

    async def _write(self, message: InboundMessage, action: Action, params: Sequence[Any]) -> None:
        try:
            result = await self._query(action, params)
        except QueryError as e:
            self.report_query_error(message, e)
            return
        # zero affected rows is still acknowledged
        logger.debug("%s affected %d row(s)", action.value, result.rowcount)
        message.reply(ACK)

    # =========================================================
    # Errors
    # =========================================================

    def report_query_error(self, message: InboundMessage, error: QueryError) -> None:
        logger.error(
            "Database query error",
            exc_info=error,
            extra={"action": message.headers.get("action"), "error": str(error)},
        )
        message.fail(FailureCode.DB_ERROR, str(error))
