"""
Network request/reply channel.

HttpChannel posts a message to the bus endpoint of a remote service (see
src/channel/bridge.py) and turns the HTTP outcome back into a reply, a
ReplyException or a ChannelError, so callers cannot tell it apart from a
LocalChannel.

Wire format:
    POST {base_url}/bus/{address}   {"headers": {...}, "body": {...}}
    200 {"body": <reply>}
    400/500 {"failureCode": <int>, "message": <str>}
    404 no consumer, 502 consumer crashed, 503 channel closed,
    504 consumer-side timeout
"""

import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import ValidationError

from src.channel.base import Channel
from src.channel.errors import (
    ChannelClosedError,
    ChannelTransportError,
    ConsumerError,
    FailureCode,
    NoConsumerError,
    ReplyException,
    ReplyTimeoutError,
)
from src.channel.local import DEFAULT_REPLY_TIMEOUT
from src.channel.message import Message
from src.channel.models import BusFailure, BusReply, BusRequest

logger = logging.getLogger(__name__)


class HttpChannel(Channel):

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient,
        reply_timeout: float = DEFAULT_REPLY_TIMEOUT,
    ):
        """
        Args:
            base_url: Base URL of the service hosting the consumers
            http_client: Shared httpx client for connection pooling
            reply_timeout: Default seconds to wait for a reply
        """
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client
        self.reply_timeout = reply_timeout

    async def send(
        self,
        address: str,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        message = Message.create(address, body, headers)
        url = f"{self.base_url}/bus/{address}"
        wait = self.reply_timeout if timeout is None else timeout
        payload = BusRequest(headers=dict(message.headers), body=dict(message.body))

        logger.debug(
            f"Sending to {address}",
            extra={"url": url, "headers": dict(message.headers)}
        )

        try:
            response = await self.http_client.post(url, json=payload.model_dump(), timeout=wait)
        except httpx.TimeoutException:
            logger.warning(
                f"No reply within {wait}s from {address}",
                extra={"url": url}
            )
            raise ReplyTimeoutError(address, wait) from None
        except httpx.RequestError as e:
            logger.error(
                f"Failed to reach channel endpoint: {str(e)}",
                extra={"url": url}
            )
            raise ChannelTransportError(str(e), address) from e

        if response.status_code == 200:
            try:
                return BusReply.model_validate(response.json()).body
            except (ValueError, ValidationError) as e:
                raise ChannelTransportError(f"Malformed reply: {e}", address) from e

        if response.status_code == 404:
            raise NoConsumerError(address)
        if response.status_code == 504:
            raise ReplyTimeoutError(address, wait)
        if response.status_code == 502:
            raise ConsumerError(_detail(response), address)
        if response.status_code == 503:
            raise ChannelClosedError(address)

        try:
            failure = BusFailure.model_validate(response.json())
            code = FailureCode(failure.failureCode)
        except (ValueError, ValidationError):
            logger.error(
                f"Channel endpoint answered HTTP {response.status_code}",
                extra={"url": url, "status_code": response.status_code}
            )
            raise ChannelTransportError(f"HTTP {response.status_code}", address)

        raise ReplyException(code, failure.message)

    async def close(self) -> None:
        await self.http_client.aclose()


def _detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("detail", response.text))
    except ValueError:
        return response.text
