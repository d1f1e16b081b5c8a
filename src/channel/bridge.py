"""
Bus endpoint: exposes the consumers of a LocalChannel to HttpChannel callers.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.channel.errors import (
    ChannelClosedError,
    ConsumerError,
    FailureCode,
    NoConsumerError,
    ReplyException,
    ReplyTimeoutError,
)
from src.channel.local import LocalChannel
from src.channel.models import BusFailure, BusReply, BusRequest

logger = logging.getLogger(__name__)

FAILURE_HTTP_MAP = {
    FailureCode.NO_ACTION_SPECIFIED: 400,
    FailureCode.BAD_ACTION: 400,
    FailureCode.DB_ERROR: 500,
}


def create_bus_router(channel: LocalChannel) -> APIRouter:
    router = APIRouter()

    @router.post("/bus/{address}", response_model=BusReply)
    async def deliver(address: str, request: BusRequest):
        try:
            reply = await channel.send(address, request.body, request.headers)
        except ReplyException as exc:
            return JSONResponse(
                status_code=FAILURE_HTTP_MAP.get(exc.code, 500),
                content=BusFailure(failureCode=exc.code.value, message=exc.message).model_dump(),
            )
        except NoConsumerError as exc:
            return JSONResponse(status_code=404, content={"detail": exc.message})
        except ReplyTimeoutError as exc:
            return JSONResponse(status_code=504, content={"detail": exc.message})
        except ConsumerError as exc:
            return JSONResponse(status_code=502, content={"detail": exc.message})
        except ChannelClosedError as exc:
            return JSONResponse(status_code=503, content={"detail": exc.message})
        return BusReply(body=reply)

    return router
