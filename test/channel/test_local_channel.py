import asyncio

import pytest

from src.channel.errors import (
    ChannelClosedError,
    ConsumerError,
    FailureCode,
    NoConsumerError,
    ReplyAlreadySentError,
    ReplyException,
    ReplyTimeoutError,
)
from src.channel.local import LocalChannel

ADDRESS = "test.queue"


# =========================================================
# Consumers
# =========================================================

async def echo(message):
    message.reply({"headers": dict(message.headers), "body": dict(message.body)})


async def reject(message):
    message.fail(FailureCode.BAD_ACTION, "Bad action: nope")


async def silent(message):
    await asyncio.sleep(0.2)
    message.reply("too late")


# =========================================================
# Tests
# =========================================================

def test_reply_reaches_the_sender():
    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, echo)
        reply = await channel.send(ADDRESS, {"uid": "7"}, {"action": "get-page"})
        await channel.close()
        return reply

    reply = asyncio.run(scenario())
    assert reply == {"headers": {"action": "get-page"}, "body": {"uid": "7"}}


def test_failure_is_raised_with_code_and_message():
    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, reject)
        try:
            await channel.send(ADDRESS, {}, {"action": "nope"})
        finally:
            await channel.close()

    with pytest.raises(ReplyException) as info:
        asyncio.run(scenario())
    assert info.value.code is FailureCode.BAD_ACTION
    assert info.value.message == "Bad action: nope"


def test_send_without_consumer_fails_immediately():
    async def scenario():
        channel = LocalChannel()
        await channel.send("nobody.home", {})

    with pytest.raises(NoConsumerError):
        asyncio.run(scenario())


def test_timeout_and_late_reply_is_discarded():
    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, silent)
        with pytest.raises(ReplyTimeoutError) as info:
            await channel.send(ADDRESS, {}, timeout=0.05)
        # let the consumer finish; its reply must not raise
        await asyncio.sleep(0.3)
        await channel.close()
        return info.value

    error = asyncio.run(scenario())
    assert error.timeout == 0.05
    assert error.address == ADDRESS


def test_second_completion_is_rejected():
    outcomes = []

    async def twice(message):
        message.reply("first")
        try:
            message.fail(FailureCode.DB_ERROR, "second")
        except ReplyAlreadySentError:
            outcomes.append("rejected")

    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, twice)
        reply = await channel.send(ADDRESS, {})
        await channel.close()
        return reply

    assert asyncio.run(scenario()) == "first"
    assert outcomes == ["rejected"]


def test_each_message_goes_to_one_consumer_round_robin():
    seen = []

    def named(name):
        async def consumer(message):
            seen.append(name)
            message.reply(name)
        return consumer

    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, named("a"))
        channel.consumer(ADDRESS, named("b"))
        replies = [await channel.send(ADDRESS, {}) for _ in range(4)]
        await channel.close()
        return replies

    assert asyncio.run(scenario()) == ["a", "b", "a", "b"]
    assert seen == ["a", "b", "a", "b"]


def test_unregistered_consumer_receives_nothing():
    async def scenario():
        channel = LocalChannel()
        registration = channel.consumer(ADDRESS, echo)
        registration.unregister()
        assert not channel.has_consumer(ADDRESS)
        await channel.send(ADDRESS, {})

    with pytest.raises(NoConsumerError):
        asyncio.run(scenario())


def test_body_is_detached_from_the_sender():
    received = {}

    async def capture(message):
        received["body"] = message.body
        try:
            message.body["name"] = "changed"
        except TypeError:
            received["read_only"] = True
        message.reply("ok")

    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, capture)
        body = {"name": "Home", "tags": ["a"]}
        pending = asyncio.ensure_future(channel.send(ADDRESS, body))
        await asyncio.sleep(0)
        body["name"] = "Mutated"
        body["tags"].append("b")
        await pending
        await channel.close()

    asyncio.run(scenario())
    assert received["read_only"] is True
    assert received["body"]["name"] == "Home"
    assert received["body"]["tags"] == ["a"]


def test_crashing_consumer_does_not_hang_the_sender():
    async def crash(message):
        raise RuntimeError("boom")

    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, crash)
        try:
            await channel.send(ADDRESS, {}, timeout=1)
        finally:
            await channel.close()

    with pytest.raises(ConsumerError) as info:
        asyncio.run(scenario())
    assert "boom" in info.value.message


def test_pending_request_does_not_block_others():
    async def scenario():
        channel = LocalChannel()
        released = asyncio.Event()

        async def consumer(message):
            if message.body.get("wait"):
                await released.wait()
                message.reply("slow")
            else:
                released.set()
                message.reply("fast")

        channel.consumer(ADDRESS, consumer)
        slow = asyncio.ensure_future(channel.send(ADDRESS, {"wait": True}, timeout=1))
        await asyncio.sleep(0)
        fast = await channel.send(ADDRESS, {}, timeout=1)
        result = (await slow, fast)
        await channel.close()
        return result

    assert asyncio.run(scenario()) == ("slow", "fast")


def test_close_fails_waiting_senders_at_once():
    async def stalled(message):
        await asyncio.sleep(10)

    async def scenario():
        loop = asyncio.get_running_loop()
        channel = LocalChannel(reply_timeout=3)
        channel.consumer(ADDRESS, stalled)
        pending = asyncio.ensure_future(channel.send(ADDRESS, {}))
        await asyncio.sleep(0.05)
        closed_at = loop.time()
        await channel.close()
        with pytest.raises(ChannelClosedError) as info:
            await pending
        return loop.time() - closed_at, info.value

    waited, error = asyncio.run(scenario())
    assert waited < 1
    assert error.address == ADDRESS
    assert error.message == "Channel closed"


def test_send_after_close_finds_no_consumer():
    async def scenario():
        channel = LocalChannel()
        channel.consumer(ADDRESS, echo)
        await channel.close()
        await channel.send(ADDRESS, {})

    with pytest.raises(NoConsumerError):
        asyncio.run(scenario())
