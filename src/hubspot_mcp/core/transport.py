"""
Session state for the HTTP request/response MCP transport.

HttpStreamableTransport only models the open/closed protocol state of one
session. It holds no queue; the HTTP handler that owns the session writes
the actual response bytes.
"""

import inspect
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger("hubspot-mcp-transport")


class TransportClosedError(RuntimeError):
    """Raised when sending on a closed transport"""


async def _invoke(callback: Optional[Callable], *args):
    if callback is None:
        return None
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class HttpStreamableTransport:
    def __init__(self, session_id: str):
        self.session_id = session_id
        self.on_message: Optional[Callable[[Any], Any]] = None
        self.on_close: Optional[Callable[[], Any]] = None
        self.on_error: Optional[Callable[[Exception], Any]] = None
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def start(self):
        pass

    async def send(self, message: Any):
        if self._closed:
            raise TransportClosedError(f"Transport {self.session_id} is closed")
        logger.debug(f"Session {self.session_id} accepted outbound message")

    async def handle_message(self, message: Any):
        """Deliver an inbound message; dropped once the transport is closed"""
        if self._closed:
            logger.debug(f"Session {self.session_id} dropped message after close")
            return
        try:
            await _invoke(self.on_message, message)
        except Exception as e:
            if self.on_error is None:
                raise
            await _invoke(self.on_error, e)

    async def close(self):
        if self._closed:
            return
        self._closed = True
        logger.info(f"Closed transport for session {self.session_id}")
        await _invoke(self.on_close)
