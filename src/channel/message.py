"""
Channel messages.

Message is what a sender hands to the channel: a JSON body plus string
headers. InboundMessage is what a consumer receives: the same data plus the
reply slot of the single caller waiting for it.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from src.channel.errors import FailureCode, ReplyAlreadySentError, ReplyException

logger = logging.getLogger(__name__)

ACTION_HEADER = "action"


@dataclass(frozen=True)
class Message:
    address: str
    body: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        address: str,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "Message":
        # the sender gives up the payload here; later mutation of its dict
        # does not reach the consumer
        return cls(
            address=address,
            body=MappingProxyType(copy.deepcopy(dict(body or {}))),
            headers=MappingProxyType({str(k): str(v) for k, v in (headers or {}).items()}),
        )

    @property
    def action(self) -> Optional[str]:
        return self.headers.get(ACTION_HEADER)

    def describe(self) -> dict:
        return {"address": self.address, "headers": dict(self.headers), "body": dict(self.body)}


class InboundMessage:
    """
    A message as seen by its consumer.

    reply() or fail() must be called exactly once. The outcome resolves the
    future the sender is awaiting; a second completion raises
    ReplyAlreadySentError.
    """

    def __init__(self, message: Message, reply_slot: asyncio.Future):
        self._message = message
        self._reply_slot = reply_slot
        self._completed = False

    @property
    def address(self) -> str:
        return self._message.address

    @property
    def body(self) -> Mapping[str, Any]:
        return self._message.body

    @property
    def headers(self) -> Mapping[str, str]:
        return self._message.headers

    @property
    def completed(self) -> bool:
        return self._completed

    def describe(self) -> dict:
        return self._message.describe()

    def reply(self, payload: Any) -> None:
        self._complete()
        if self._reply_slot.done():
            # caller gave up (timeout or cancellation)
            logger.debug("Discarding late reply for %s", self.address)
            return
        self._reply_slot.set_result(payload)

    def fail(self, code: FailureCode, message: str) -> None:
        self._complete()
        if self._reply_slot.done():
            logger.debug("Discarding late failure %s for %s", code.label, self.address)
            return
        self._reply_slot.set_exception(ReplyException(code, message))

    def _complete(self) -> None:
        if self._completed:
            raise ReplyAlreadySentError(
                f"Message to {self.address} was already completed", self.address
            )
        self._completed = True
