import logging
from typing import Awaitable, Callable, Dict

from src.channel.errors import FailureCode
from src.channel.message import ACTION_HEADER, InboundMessage
from src.wikidb.catalog import Action
from src.wikidb.handlers import PageHandlers

logger = logging.getLogger(__name__)

Handler = Callable[[InboundMessage], Awaitable[None]]


class ActionDispatcher:
    """
    Channel consumer of the wikidb address.

    Routes each inbound message to the handler named by its "action"
    header. Missing or unknown actions are failed before any data access.
    """

    def __init__(self, handlers: PageHandlers):
        self.handlers = handlers
        self.routes: Dict[Action, Handler] = {
            Action.ALL_PAGES: handlers.fetch_all_pages,
            Action.GET_PAGE: handlers.fetch_page,
            Action.SAVE_PAGE: handlers.save_page,
            Action.UPDATE_PAGE: handlers.update_page,
            Action.DELETE_PAGE: handlers.delete_page,
        }

    async def __call__(self, message: InboundMessage) -> None:
        await self.dispatch(message)

    async def dispatch(self, message: InboundMessage) -> None:
        if ACTION_HEADER not in message.headers:
            logger.error(
                "No action header specified for message with headers %s and body %s",
                dict(message.headers), dict(message.body)
            )
            message.fail(FailureCode.NO_ACTION_SPECIFIED, "No action header specified")
            return

        value = message.headers[ACTION_HEADER]
        action = Action.parse(value)
        if action is None:
            logger.warning("Bad action %r for message to %s", value, message.address)
            message.fail(FailureCode.BAD_ACTION, f"Bad action: {value}")
            return

        logger.debug("Dispatching %s", action.value)
        await self.routes[action](message)
