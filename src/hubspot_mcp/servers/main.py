import argparse
import asyncio
import logging

from hubspot_mcp.config import configure_logging
from hubspot_mcp.servers.local import serve_stdio
from hubspot_mcp.servers.remote import METRICS_PORT, serve_http

logger = logging.getLogger("hubspot-mcp")


def main():
    """Parse arguments and launch the HubSpot MCP server"""
    parser = argparse.ArgumentParser(description="HubSpot MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Serve over stdin/stdout or streamable HTTP",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Host for the HTTP server")
    parser.add_argument("--port", type=int, default=8000, help="Port for the HTTP server")
    parser.add_argument(
        "--metrics-port", type=int, default=METRICS_PORT, help="Port for Prometheus metrics"
    )
    args = parser.parse_args()

    configure_logging()

    if args.transport == "stdio":
        logger.info("Starting HubSpot MCP server on stdio")
        asyncio.run(serve_stdio())
    else:
        logger.info(f"Starting HubSpot MCP server on {args.host}:{args.port}")
        serve_http(args.host, args.port, args.metrics_port)


if __name__ == "__main__":
    main()
