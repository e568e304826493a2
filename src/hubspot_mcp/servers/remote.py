"""
Streamable-HTTP runner: one JSON-RPC message per POST, answered with one
JSON response on the same request.

Each session owns a HttpStreamableTransport and an MCP server run fed through
in-memory streams. Server notifications that are not replies to a pending
request are dropped, since no stream is held open to deliver them.
"""

import argparse
import asyncio
import logging
import threading
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import anyio
import uvicorn
from mcp.server import Server
from mcp.shared.message import SessionMessage
from mcp.types import JSONRPCMessage, JSONRPCRequest
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from hubspot_mcp.config import configure_logging, get_settings
from hubspot_mcp.core.transport import HttpStreamableTransport, TransportClosedError
from hubspot_mcp.servers.server import SERVER_NAME, create_server, get_initialization_options

logger = logging.getLogger("hubspot-mcp-http")

SESSION_HEADER = "mcp-session-id"
REQUEST_TIMEOUT = 120

# Default metrics port
METRICS_PORT = 9091

active_sessions = Gauge("hubspot_mcp_active_sessions", "Number of open MCP HTTP sessions")
sessions_total = Counter("hubspot_mcp_sessions_total", "Total number of MCP HTTP sessions")


def _jsonrpc_error(request_id, code: int, message: str, status_code: int, headers=None):
    return JSONResponse(
        {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}},
        status_code=status_code,
        headers=headers,
    )


class McpHttpSession:
    """Bridges one HTTP session to a running MCP server"""

    def __init__(self, session_id: str, server: Server):
        self.session_id = session_id
        self.server = server
        self.transport = HttpStreamableTransport(session_id)
        self.last_seen = time.monotonic()
        self._pending: Dict[Any, asyncio.Future] = {}
        self._tasks = []
        self._closing = None
        self._read_send, self._read_recv = anyio.create_memory_object_stream(100)
        self._write_send, self._write_recv = anyio.create_memory_object_stream(100)

        self.transport.on_message = self._forward
        self.transport.on_close = self._shutdown

    async def start(self):
        await self.transport.start()
        self._tasks = [
            asyncio.create_task(
                self.server.run(
                    self._read_recv,
                    self._write_send,
                    get_initialization_options(self.server),
                )
            ),
            asyncio.create_task(self._pump()),
        ]
        for task in self._tasks:
            task.add_done_callback(self._task_done)

    def touch(self):
        self.last_seen = time.monotonic()

    def idle_for(self) -> float:
        return time.monotonic() - self.last_seen

    async def request(self, message: JSONRPCMessage, timeout: float = REQUEST_TIMEOUT):
        """Deliver a request and wait for the server's reply"""
        request_id = message.root.id
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self.transport.handle_message(message)
            if self.transport.is_closed:
                raise TransportClosedError(f"Transport {self.session_id} is closed")
            return await asyncio.wait_for(future, timeout)
        finally:
            self._pending.pop(request_id, None)

    async def notify(self, message: JSONRPCMessage):
        await self.transport.handle_message(message)

    async def close(self):
        await self.transport.close()

    async def _forward(self, message: JSONRPCMessage):
        await self._read_send.send(SessionMessage(message))

    async def _pump(self):
        async with self._write_recv:
            async for session_message in self._write_recv:
                payload = session_message.message.model_dump(
                    by_alias=True, mode="json", exclude_none=True
                )
                future = self._pending.get(payload.get("id"))
                if "method" in payload or future is None or future.done():
                    logger.debug(
                        f"Session {self.session_id} dropped unsolicited message: {payload.get('method')}"
                    )
                    continue
                try:
                    await self.transport.send(payload)
                except TransportClosedError as e:
                    future.set_exception(e)
                    continue
                future.set_result(payload)

    def _task_done(self, task: asyncio.Task):
        """A server run or pump that ends on its own takes the session down with it"""
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Session {self.session_id} task failed: {error!r}")
        else:
            logger.info(f"Session {self.session_id} task finished")
        if not self.transport.is_closed and self._closing is None:
            self._closing = asyncio.ensure_future(self.close())

    async def _shutdown(self):
        await self._read_send.aclose()
        for task in self._tasks:
            task.cancel()
        for future in self._pending.values():
            if not future.done():
                future.set_exception(
                    TransportClosedError(f"Transport {self.session_id} is closed")
                )
        self._pending.clear()
        current = asyncio.current_task()
        await asyncio.gather(
            *(task for task in self._tasks if task is not current), return_exceptions=True
        )


class SessionManager:
    def __init__(self, server: Server, max_sessions: int, idle_timeout: int):
        self.server = server
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self.sessions: Dict[str, McpHttpSession] = {}

    def __len__(self):
        return len(self.sessions)

    def get(self, session_id: Optional[str]) -> Optional[McpHttpSession]:
        return self.sessions.get(session_id) if session_id else None

    async def create(self) -> McpHttpSession:
        session = McpHttpSession(uuid.uuid4().hex, self.server)
        await session.start()
        self.sessions[session.session_id] = session
        sessions_total.inc()
        active_sessions.set(len(self.sessions))
        logger.info(f"Opened MCP session {session.session_id}")
        return session

    async def close(self, session_id: str) -> bool:
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        active_sessions.set(len(self.sessions))
        return True

    async def expire_idle(self):
        """Drop closed sessions and close those idle for longer than the timeout"""
        expired = [
            session_id
            for session_id, session in self.sessions.items()
            if session.transport.is_closed or session.idle_for() > self.idle_timeout
        ]
        for session_id in expired:
            logger.info(f"Expiring idle MCP session {session_id}")
            await self.close(session_id)

    async def close_all(self):
        for session_id in list(self.sessions):
            await self.close(session_id)


def create_metrics_app():
    """Create a separate Starlette app just for metrics"""

    async def metrics_endpoint(request):
        """Prometheus metrics endpoint"""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return Starlette(routes=[Route("/metrics", endpoint=metrics_endpoint)])


def create_starlette_app(server: Optional[Server] = None, settings: Optional[Dict[str, Any]] = None):
    """Create the Starlette app serving MCP over POST/DELETE /mcp"""
    settings = settings or get_settings()
    server = server or create_server()
    manager = SessionManager(
        server, settings["max_sessions"], settings["session_idle_timeout"]
    )

    async def handle_post(request: Request):
        await manager.expire_idle()

        try:
            body = await request.json()
        except ValueError:
            return _jsonrpc_error(None, -32700, "Parse error", 400)
        try:
            message = JSONRPCMessage.model_validate(body)
        except ValidationError:
            return _jsonrpc_error(body.get("id") if isinstance(body, dict) else None, -32600, "Invalid Request", 400)

        is_request = isinstance(message.root, JSONRPCRequest)
        request_id = message.root.id if is_request else None
        session_id = request.headers.get(SESSION_HEADER)

        if session_id is None:
            if not (is_request and message.root.method == "initialize"):
                return _jsonrpc_error(
                    request_id, -32000, "Bad Request: no valid session ID provided", 400
                )
            if len(manager) >= manager.max_sessions:
                logger.warning("Rejected new MCP session: session limit reached")
                return _jsonrpc_error(request_id, -32000, "Too many sessions", 503)
            session = await manager.create()
        else:
            session = manager.get(session_id)
            if session is None:
                return _jsonrpc_error(request_id, -32001, "Session not found", 404)

        session.touch()
        headers = {SESSION_HEADER: session.session_id}

        if not is_request:
            await session.notify(message)
            return Response(status_code=202, headers=headers)

        try:
            reply = await session.request(message)
        except asyncio.TimeoutError:
            logger.error(f"Session {session.session_id} timed out on {message.root.method}")
            return _jsonrpc_error(request_id, -32603, "Request timed out", 504, headers)
        except TransportClosedError:
            return _jsonrpc_error(request_id, -32001, "Session closed", 404, headers)
        except Exception as e:
            logger.error(f"Error handling {message.root.method}: {e}")
            return _jsonrpc_error(request_id, -32603, f"Internal error: {e}", 500, headers)

        return JSONResponse(reply, headers=headers)

    async def handle_delete(request: Request):
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id or not await manager.close(session_id):
            return Response("Session not found or expired", status_code=404)
        logger.info(f"Closed MCP session {session_id}")
        return Response(status_code=204)

    @asynccontextmanager
    async def lifespan(app):
        yield
        await manager.close_all()

    async def health_check(request):
        """Health check endpoint"""
        return JSONResponse(
            {
                "status": "ok",
                "server": SERVER_NAME,
                "tools": len(server.registry.all_tools()),
                "sessions": len(manager),
            }
        )

    async def root_handler(request):
        """Root endpoint that returns a simple 200 OK response"""
        return JSONResponse(
            {
                "status": "ok",
                "message": "HubSpot MCP server running",
                "endpoint": "/mcp",
                "tools": len(server.registry.all_tools()),
                "sessions": len(manager),
            }
        )

    app = Starlette(
        routes=[
            Route("/mcp", endpoint=handle_post, methods=["POST"]),
            Route("/mcp", endpoint=handle_delete, methods=["DELETE"]),
            Route("/health_check", endpoint=health_check),
            Route("/", endpoint=root_handler),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
                allow_headers=["*"],
                expose_headers=[SESSION_HEADER],
            )
        ],
        lifespan=lifespan,
    )
    app.state.sessions = manager
    return app


def run_metrics_server(host, port):
    """Run a separate metrics server on the specified port"""
    metrics_app = create_metrics_app()
    logger.info(f"Starting metrics server on {host}:{port}")
    uvicorn.run(metrics_app, host=host, port=port)


def serve_http(host: str, port: int, metrics_port: int = METRICS_PORT):
    metrics_thread = threading.Thread(
        target=run_metrics_server, args=(host, metrics_port), daemon=True
    )
    metrics_thread.start()
    logger.info(f"Starting Metrics server on http://{host}:{metrics_port}/metrics")

    app = create_starlette_app()
    logger.info(f"Starting HTTP MCP server on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


def main():
    """Main entry point for the HTTP server"""
    parser = argparse.ArgumentParser(description="HubSpot MCP HTTP Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host for Starlette server")
    parser.add_argument("--port", type=int, default=8000, help="Port for Starlette server")
    parser.add_argument("--metrics-port", type=int, default=METRICS_PORT, help="Port for metrics")
    args = parser.parse_args()

    configure_logging()
    serve_http(args.host, args.port, args.metrics_port)


if __name__ == "__main__":
    main()
