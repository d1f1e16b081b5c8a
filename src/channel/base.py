from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional


class Channel(ABC):
    """
    Channel defines how a request reaches the single consumer of an
    address and how its one reply (or failure) comes back.
    """

    @abstractmethod
    async def send(
        self,
        address: str,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Send body/headers to address and wait for the reply.

        Raises ReplyException when the consumer fails the request and a
        ChannelError subclass when the transport does.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Release the channel's resources.
        """
        pass
