"""
In-process request/reply channel.

Consumers register on an address; each message sent to that address goes to
exactly one of them (round-robin when several are registered). Delivery runs
as its own asyncio task so the sender only suspends on its reply slot.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set

from src.channel.base import Channel
from src.channel.errors import (
    ChannelClosedError,
    ConsumerError,
    NoConsumerError,
    ReplyTimeoutError,
)
from src.channel.message import InboundMessage, Message

logger = logging.getLogger(__name__)

Consumer = Callable[[InboundMessage], Awaitable[None]]

DEFAULT_REPLY_TIMEOUT = 30.0


class ConsumerRegistration:
    """Handle returned by LocalChannel.consumer(); call unregister() to detach."""

    def __init__(self, channel: "LocalChannel", address: str, consumer: Consumer):
        self.channel = channel
        self.address = address
        self.consumer = consumer

    def unregister(self) -> None:
        self.channel._remove(self)


class LocalChannel(Channel):

    def __init__(self, reply_timeout: float = DEFAULT_REPLY_TIMEOUT):
        self.reply_timeout = reply_timeout
        self._consumers: Dict[str, List[ConsumerRegistration]] = {}
        self._next_index: Dict[str, int] = {}
        self._deliveries: Set[asyncio.Task] = set()
        # reply slot -> address, for senders still waiting
        self._pending: Dict[asyncio.Future, str] = {}

    # =========================================================
    # Registration
    # =========================================================

    def consumer(self, address: str, consumer: Consumer) -> ConsumerRegistration:
        registration = ConsumerRegistration(self, address, consumer)
        self._consumers.setdefault(address, []).append(registration)
        logger.info(
            "Consumer registered: address=%s consumers=%d",
            address, len(self._consumers[address])
        )
        return registration

    def has_consumer(self, address: str) -> bool:
        return bool(self._consumers.get(address))

    def _remove(self, registration: ConsumerRegistration) -> None:
        registrations = self._consumers.get(registration.address, [])
        if registration in registrations:
            registrations.remove(registration)
            logger.info("Consumer unregistered: address=%s", registration.address)
        if not registrations:
            self._consumers.pop(registration.address, None)
            self._next_index.pop(registration.address, None)

    def _pick(self, address: str) -> ConsumerRegistration:
        registrations = self._consumers.get(address)
        if not registrations:
            raise NoConsumerError(address)
        index = self._next_index.get(address, 0) % len(registrations)
        self._next_index[address] = index + 1
        return registrations[index]

    # =========================================================
    # Request / reply
    # =========================================================

    async def send(
        self,
        address: str,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        registration = self._pick(address)
        message = Message.create(address, body, headers)

        loop = asyncio.get_running_loop()
        reply_slot = loop.create_future()
        inbound = InboundMessage(message, reply_slot)

        task = loop.create_task(self._deliver(registration, inbound, reply_slot))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

        wait = self.reply_timeout if timeout is None else timeout
        logger.debug("Sending to %s headers=%s", address, dict(message.headers))
        self._pending[reply_slot] = address
        try:
            return await asyncio.wait_for(reply_slot, wait)
        except asyncio.TimeoutError:
            logger.warning(
                "No reply within %ss: address=%s headers=%s",
                wait, address, dict(message.headers)
            )
            raise ReplyTimeoutError(address, wait) from None
        finally:
            self._pending.pop(reply_slot, None)

    async def _deliver(
        self,
        registration: ConsumerRegistration,
        inbound: InboundMessage,
        reply_slot: asyncio.Future,
    ) -> None:
        try:
            await registration.consumer(inbound)
        except Exception as e:
            logger.exception("Consumer for %s raised: %s", inbound.address, e)
            if not reply_slot.done():
                reply_slot.set_exception(ConsumerError(str(e), inbound.address))
            return

        if not inbound.completed:
            logger.error("Consumer for %s returned without replying", inbound.address)
            if not reply_slot.done():
                reply_slot.set_exception(
                    ConsumerError("Consumer returned without replying", inbound.address)
                )

    async def close(self) -> None:
        for reply_slot, address in list(self._pending.items()):
            if not reply_slot.done():
                reply_slot.set_exception(ChannelClosedError(address))
        if self._pending:
            logger.warning("Channel closed with %d pending request(s)", len(self._pending))
        for task in list(self._deliveries):
            task.cancel()
        if self._deliveries:
            await asyncio.gather(*self._deliveries, return_exceptions=True)
        self._consumers.clear()
        self._next_index.clear()
