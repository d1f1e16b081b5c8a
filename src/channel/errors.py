"""
Channel failure codes and exceptions.

A request sent over the channel ends in exactly one reply or exactly one
failure. Failures raised by the consumer side carry a FailureCode; problems
of the transport itself (no consumer, timeout, crashed consumer) are
ChannelError subclasses.
"""

import enum
from typing import Optional


class FailureCode(enum.Enum):
    NO_ACTION_SPECIFIED = 0      # message arrived without an "action" header
    BAD_ACTION = 1               # "action" header outside the known set
    DB_ERROR = 2                 # data layer failed the query

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


class ReplyException(Exception):
    """
    Terminal failure delivered to the caller instead of a reply.

    Only the code and the message text cross the channel; the
    underlying cause stays in the consumer's log.
    """

    def __init__(self, code: FailureCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"ReplyException(code={self.code.label}, message={self.message!r})"


class ChannelError(Exception):
    """Base class for transport-level errors of the channel."""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.address = address


class NoConsumerError(ChannelError):
    """No consumer is registered for the address."""

    def __init__(self, address: str):
        super().__init__(f"No consumer registered for address: {address}", address)


class ReplyTimeoutError(ChannelError):
    """The reply did not arrive before the caller-side timeout."""

    def __init__(self, address: str, timeout: float):
        super().__init__(
            f"Timed out after {timeout}s waiting for a reply from {address}",
            address,
        )
        self.timeout = timeout


class ConsumerError(ChannelError):
    """The consumer raised before completing the message."""


class ReplyAlreadySentError(ChannelError):
    """A second reply or failure was attempted on the same message."""


class ChannelTransportError(ChannelError):
    """The network transport could not deliver the request or read its outcome."""


class ChannelClosedError(ChannelError):
    """The channel was closed while the request was waiting for its reply."""

    def __init__(self, address: Optional[str] = None):
        super().__init__("Channel closed", address)
