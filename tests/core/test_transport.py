import pytest

from hubspot_mcp.core.transport import HttpStreamableTransport, TransportClosedError


async def test_send_after_close_fails():
    transport = HttpStreamableTransport("session-1")
    await transport.start()
    await transport.send({"jsonrpc": "2.0", "id": 1, "result": {}})

    await transport.close()

    assert transport.is_closed
    with pytest.raises(TransportClosedError):
        await transport.send({"jsonrpc": "2.0", "id": 2, "result": {}})


async def test_close_is_idempotent():
    closed = []
    transport = HttpStreamableTransport("session-2")
    transport.on_close = lambda: closed.append(True)

    await transport.close()
    await transport.close()

    assert closed == [True]


async def test_messages_delivered_only_while_open():
    received = []

    async def on_message(message):
        received.append(message)

    transport = HttpStreamableTransport("session-3")
    transport.on_message = on_message

    await transport.handle_message({"id": 1})
    await transport.close()
    await transport.handle_message({"id": 2})

    assert received == [{"id": 1}]


async def test_callback_errors_go_to_on_error():
    errors = []

    def on_message(message):
        raise ValueError("bad message")

    transport = HttpStreamableTransport("session-4")
    transport.on_message = on_message
    transport.on_error = errors.append

    await transport.handle_message({"id": 1})

    assert [str(e) for e in errors] == ["bad message"]


async def test_callback_errors_raise_without_handler():
    transport = HttpStreamableTransport("session-5")
    transport.on_message = lambda message: 1 / 0

    with pytest.raises(ZeroDivisionError):
        await transport.handle_message({"id": 1})
