"""
wikidb Client

This module provides the client the HTTP routes use to reach the wikidb
tier. Every call is one message on the channel, tagged with its action
header, and resolves to the single reply or raises a WikiException.
"""

import logging
from typing import Any, Dict, Optional

from src.channel.base import Channel
from src.channel.errors import (
    ChannelClosedError,
    ChannelError,
    NoConsumerError,
    ReplyException,
    ReplyTimeoutError,
)
from src.channel.message import ACTION_HEADER
from src.web.exceptions import (
    WikiDbCommunicationError,
    WikiDbFailureError,
    WikiDbTimeoutError,
    WikiDbUnavailableError,
)

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "request-id"


class WikiDbClient:
    """
    Client for the wikidb tier.

    **Actions** (header "action"):

    1. all-pages   body {}                  reply {"pages": [{"uid", "name"}, ...]}
    2. get-page    body {"uid"}             reply {"found": false} | {"found": true, "uid", "name"}
    3. save-page   body {"name"}            reply "ok"
    4. update-page body {"uid", "name"}     reply "ok"
    5. delete-page body {"uid"}             reply "ok"
    """

    def __init__(self, channel: Channel, address: str):
        """
        Initialize wikidb client.

        Args:
            channel: Channel carrying the requests (local or HTTP)
            address: Address the wikidb dispatcher consumes
        """
        self.channel = channel
        self.address = address

    def _build_headers(self, action: str, request_id: Optional[str] = None) -> Dict[str, str]:
        headers = {ACTION_HEADER: action}
        if request_id:
            headers[REQUEST_ID_HEADER] = request_id
        return headers

    async def send(
        self,
        action: str,
        body: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> Any:
        """
        Send one request and wait for its reply.

        Raises:
            WikiDbFailureError: If wikidb failed the request
            WikiDbUnavailableError: If no wikidb consumer is registered
            WikiDbTimeoutError: If the reply did not arrive in time
            WikiDbCommunicationError: If the channel broke
        """
        headers = self._build_headers(action, request_id)
        logger.info(
            f"Sending {action} to {self.address}",
            extra={"action": action, "request_id": request_id}
        )

        try:
            return await self.channel.send(self.address, body or {}, headers)

        except ReplyException as e:
            logger.warning(
                f"wikidb failed {action}: {e.code.label}",
                extra={"action": action, "request_id": request_id, "error": e.message}
            )
            raise WikiDbFailureError(e.code, details=e.message)

        except ChannelClosedError as e:
            logger.error(
                f"Channel closed while waiting for {action}",
                extra={"action": action, "request_id": request_id}
            )
            raise WikiDbUnavailableError(details=e.message)

        except NoConsumerError as e:
            logger.error(
                f"No wikidb consumer for {action}",
                extra={"action": action, "request_id": request_id}
            )
            raise WikiDbUnavailableError(details=e.message)

        except ReplyTimeoutError as e:
            logger.error(
                f"wikidb did not reply to {action}",
                extra={"action": action, "request_id": request_id, "timeout": e.timeout}
            )
            raise WikiDbTimeoutError(e.timeout, details=e.message)

        except ChannelError as e:
            logger.error(
                f"Channel error on {action}: {e.message}",
                extra={"action": action, "request_id": request_id}
            )
            raise WikiDbCommunicationError(details=e.message)

    async def all_pages(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.send("all-pages", {}, request_id)

    async def get_page(self, uid: Optional[str], request_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.send("get-page", {"uid": uid}, request_id)

    async def save_page(self, name: Optional[str], request_id: Optional[str] = None) -> Any:
        return await self.send("save-page", {"name": name}, request_id)

    async def update_page(
        self,
        uid: Optional[str],
        name: Optional[str],
        request_id: Optional[str] = None,
    ) -> Any:
        return await self.send("update-page", {"uid": uid, "name": name}, request_id)

    async def delete_page(self, uid: Optional[str], request_id: Optional[str] = None) -> Any:
        return await self.send("delete-page", {"uid": uid}, request_id)
