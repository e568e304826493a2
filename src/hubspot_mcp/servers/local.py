import asyncio
import logging

import mcp.server.stdio

from hubspot_mcp.config import configure_logging
from hubspot_mcp.servers.server import create_server, get_initialization_options

logger = logging.getLogger("hubspot-mcp-stdio")


async def run_stdio_server(server, get_initialization_options):
    """Run the server using stdin/stdout streams"""
    logger.info("Starting stdio server")
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            get_initialization_options(),
        )


async def serve_stdio():
    server_instance = create_server()
    logger.info(f"Serving {len(server_instance.registry)} HubSpot tools over stdio")
    await run_stdio_server(
        server_instance, lambda: get_initialization_options(server_instance)
    )


def main():
    """Entry point for the stdio server"""
    configure_logging()
    asyncio.run(serve_stdio())


if __name__ == "__main__":
    main()
