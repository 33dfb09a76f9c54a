"""FastAPI application setup"""

import asyncio

import uvicorn

from .. import config
from ..runtime import RuntimeComponents, bootstrap
from ..telemetry import configure_logging, get_logger
from .server import WebServer

logger = get_logger(__name__)


def create_app(components: RuntimeComponents | None = None) -> WebServer:
    """Create the web application.

    Args:
        components: runtime to serve (a fresh bootstrap() when None)
    """
    components = components or bootstrap()
    return WebServer(components.supervisor, components.store, components.renderer)


async def start_server(
    host: str = config.WEB_HOST,
    port: int = config.WEB_PORT,
    components: RuntimeComponents | None = None,
) -> None:
    """Run the timer and the web server until the server exits."""
    components = components or bootstrap()
    server = create_app(components)

    timer_task = asyncio.create_task(components.timer.run())
    logger.info("[Timer] Timer started")

    uvicorn_config = uvicorn.Config(server.app, host=host, port=port, log_level="info")
    uvicorn_server = uvicorn.Server(uvicorn_config)

    logger.info(f"[Web] MultiStream server starting at http://localhost:{port}")

    try:
        await uvicorn_server.serve()
    finally:
        server.close()
        await components.shutdown()
        timer_task.cancel()


def main():
    """Entry point"""
    configure_logging()
    try:
        asyncio.run(start_server())
    except KeyboardInterrupt:
        print("\nServer stopped")
